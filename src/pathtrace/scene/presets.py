"""Ready-made scenes.

This module provides factory functions for the standard test scenes:

- random_scene: the "final render" scene, a large ground sphere, three big
  feature spheres (glass, diffuse, metal) and a grid of small spheres with
  randomly chosen materials
- two_sphere_scene: a small diffuse sphere resting on a huge ground sphere,
  viewed by the default camera; handy for smoke tests and normal shading
- material_showcase_scene: diffuse, metal and hollow glass spheres side by side

Each factory returns a freshly populated SceneManager together with a camera
framing the scene.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.scene.presets import random_scene
    >>> from pathtrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = random_scene(seed=7, aspect_ratio=1.5)
    >>> setup_camera(camera)
"""

import math

import numpy as np

from pathtrace.camera.thin_lens import ThinLensCamera, default_camera
from pathtrace.scene.manager import SceneManager

# =============================================================================
# Random Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.5, 0.5, 0.5)
GROUND_RADIUS = 1000.0

GLASS_IOR = 1.5
BIG_DIFFUSE_ALBEDO = (0.4, 0.2, 0.1)
BIG_METAL_ALBEDO = (0.7, 0.6, 0.5)

SMALL_SPHERE_RADIUS = 0.2

# Grid cells span [-GRID_EXTENT, GRID_EXTENT) on both x and z
GRID_EXTENT = 11

# Small spheres closer than this to the big metal sphere are skipped
CLEARANCE_POINT = (4.0, 0.2, 0.0)
CLEARANCE = 0.9

# Material choice thresholds: below DIFFUSE_CHANCE diffuse, below
# METAL_CHANCE metal, otherwise glass
DIFFUSE_CHANCE = 0.8
METAL_CHANCE = 0.95


def random_scene_camera(aspect_ratio: float = 2.0) -> ThinLensCamera:
    """Camera for the random scene: a low wide shot with slight defocus."""
    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )


def random_scene(
    seed: int = 0,
    aspect_ratio: float = 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Build the random sphere field.

    For every grid cell (a, b) with a, b in [-11, 11) a sphere of radius 0.2
    is placed at (a + 0.9 r1, 0.2, b + 0.9 r2) unless it would overlap the
    big metal sphere. Its material is diffuse (80%, albedo r*r per channel),
    fuzzy metal (15%, albedo 0.5 (1 + r), fuzz 0.5 r) or glass (5%).

    Args:
        seed: Seed for the numpy generator driving every random choice. The
            same seed always produces the same scene.
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    rng = np.random.default_rng(seed)
    scene = SceneManager()

    scene.add_lambertian_sphere((0.0, -GROUND_RADIUS, 0.0), GROUND_RADIUS, GROUND_ALBEDO)
    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, GLASS_IOR)
    scene.add_lambertian_sphere((-4.0, 1.0, 0.0), 1.0, BIG_DIFFUSE_ALBEDO)
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, BIG_METAL_ALBEDO)

    for a in range(-GRID_EXTENT, GRID_EXTENT):
        for b in range(-GRID_EXTENT, GRID_EXTENT):
            choose_mat = rng.random()
            center = (
                a + 0.9 * rng.random(),
                SMALL_SPHERE_RADIUS,
                b + 0.9 * rng.random(),
            )
            if math.dist(center, CLEARANCE_POINT) <= CLEARANCE:
                continue

            if choose_mat < DIFFUSE_CHANCE:
                albedo = tuple(float(x) for x in rng.random(3) * rng.random(3))
                scene.add_lambertian_sphere(center, SMALL_SPHERE_RADIUS, albedo)
            elif choose_mat < METAL_CHANCE:
                albedo = tuple(float(x) for x in 0.5 * (1.0 + rng.random(3)))
                fuzz = 0.5 * float(rng.random())
                scene.add_metal_sphere(center, SMALL_SPHERE_RADIUS, albedo, fuzz)
            else:
                scene.add_dielectric_sphere(center, SMALL_SPHERE_RADIUS, GLASS_IOR)

    return scene, random_scene_camera(aspect_ratio)


def two_sphere_scene() -> tuple[SceneManager, ThinLensCamera]:
    """A diffuse sphere at (0, 0, -1) on a ground sphere, default camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
    scene.add_lambertian_sphere((0.0, -100.5, -1.0), 100.0, (0.5, 0.5, 0.5))
    return scene, default_camera()


def material_showcase_scene() -> tuple[SceneManager, ThinLensCamera]:
    """Diffuse, metal and hollow glass spheres in a row on a ground sphere.

    The glass sphere is a shell: an outer sphere of radius 0.5 plus a
    negative-radius sphere of radius 0.45 sharing the same glass material,
    whose inward normals model the inner surface.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material((0.8, 0.8, 0.0))
    diffuse = scene.add_lambertian_material((0.1, 0.2, 0.5))
    metal = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
    glass = scene.add_dielectric_material(GLASS_IOR)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, diffuse)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)

    return scene, default_camera()
