"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the scanline rendering
kernel. Rays are traced from the camera through the scene, bouncing off
surfaces according to their material properties, until they escape to the
sky, are absorbed, or run out of depth budget.

The recursive formulation radiance(ray, depth) = attenuation * radiance(
scattered, depth - 1) is evaluated as a bounded loop carrying the product of
attenuations (the path throughput), so path length never touches the Python
or device call stack.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Hard depth bound; exhausted paths contribute black
    - Blue-white sky gradient as the only light source
    - Self-intersection avoidance with a t_min epsilon
    - Per-pixel random streams, so a render is reproducible for a given seed

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.core.integrator import render_row
    >>> from pathtrace.scene.presets import two_sphere_scene
    >>> from pathtrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = two_sphere_scene()
    >>> setup_camera(camera)
    >>> row = render_row(99, width=200, height=100, samples_per_pixel=4, max_depth=50)
"""

from enum import IntEnum

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtrace.camera.thin_lens import get_ray, is_camera_ready
from pathtrace.core.ray import Ray, unit_vector
from pathtrace.core.sampler import MAX_STREAMS, check_seed, next_float, seed_stream
from pathtrace.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from pathtrace.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from pathtrace.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from pathtrace.scene.intersection import intersect_scene
from pathtrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum ray bounces (path length)
DEFAULT_MAX_DEPTH = 50

# Hits closer than T_MIN are ignored to avoid self-intersection ("shadow acne")
T_MIN = 0.001
T_MAX = float(np.finfo(np.float32).max)

# Sky gradient endpoints (horizon and zenith)
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


class RenderMode(IntEnum):
    """What each camera sample evaluates."""

    RADIANCE = 0
    NORMALS = 1


# =============================================================================
# Render Target (one scanline)
# =============================================================================

# One slot per pixel column; each column also owns one random stream
MAX_IMAGE_WIDTH = MAX_STREAMS

_row_buffer = ti.Vector.field(3, dtype=ti.f32, shape=MAX_IMAGE_WIDTH)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point on the surface.
        normal: The outward sphere normal (unit length).
        stream: The random stream owned by the calling pixel task.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction, starting at hit_point.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Unknown material ids absorb
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered, attenuation, did_scatter = scatter_lambertian(
            albedo, hit_point, normal, stream
        )
        scattered_direction = scattered.direction

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, hit_point, normal, stream
        )
        scattered_direction = scattered.direction

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, hit_point, normal, stream
        )
        scattered_direction = scattered.direction

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Linearly blends white at the horizon to light blue overhead based on the
    y component of the unit direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_WHITE + t * SKY_BLUE


@ti.func
def radiance(ray: Ray, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The primary ray.
        max_depth: Maximum number of intersections along the path. A budget
            of 0 returns black without touching the scene.
        stream: The random stream owned by the calling pixel task.

    Returns:
        throughput * sky if the path escapes, black if it is absorbed or
        runs out of depth.
    """
    result = vec3(0.0, 0.0, 0.0)

    # Product of attenuations along the path
    throughput = vec3(1.0, 1.0, 1.0)

    origin = ray.origin
    direction = ray.direction

    # Active flag for path continuation (no break in Taichi loops)
    active = 1

    for depth in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(Ray(origin=origin, direction=direction), T_MIN, T_MAX)

            if hit_record.hit == 0:
                result = throughput * sky_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    direction,
                    hit_record.point,
                    hit_record.normal,
                    stream,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction

    return result


@ti.func
def normal_color(ray: Ray) -> vec3:
    """Debug shading: map the nearest hit's unit normal into [0, 1] color.

    Returns 0.5 * (normal + 1) on a hit and the sky color on a miss.
    """
    color = sky_color(ray.direction)
    hit_record = intersect_scene(ray, T_MIN, T_MAX)
    if hit_record.hit == 1:
        color = 0.5 * (hit_record.normal + vec3(1.0, 1.0, 1.0))
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_row(
    j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    jitter: ti.i32,
    mode: ti.i32,
    inv_gamma: ti.f32,
):
    """Render scanline j into the row buffer.

    Every pixel of the row is an independent task owning random stream i.
    """
    for i in range(width):
        seed_stream(i, seed, j * width + i)

        color = vec3(0.0, 0.0, 0.0)
        for sample_index in range(samples_per_pixel):
            du = 0.5
            dv = 0.5
            if jitter == 1:
                du = next_float(i)
                dv = next_float(i)

            s = (ti.cast(i, ti.f32) + du) / ti.cast(width, ti.f32)
            t = (ti.cast(j, ti.f32) + dv) / ti.cast(height, ti.f32)
            ray = get_ray(s, t, i)

            sample = vec3(0.0, 0.0, 0.0)
            if mode == int(RenderMode.NORMALS):
                sample = normal_color(ray)
            else:
                sample = radiance(ray, max_depth, i)

            # Check for NaN/Inf and replace with zero
            for c in ti.static(range(3)):
                if tm.isnan(sample[c]) or tm.isinf(sample[c]):
                    sample[c] = 0.0

            color += sample

        color /= ti.cast(samples_per_pixel, ti.f32)
        color = tm.clamp(color, 0.0, 1.0)

        if inv_gamma == 0.5:
            color = tm.sqrt(color)
        elif inv_gamma != 1.0:
            color = tm.pow(color, inv_gamma)

        _row_buffer[i] = color


@ti.kernel
def _trace_ray_kernel(
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    seed: ti.i32,
    mode: ti.i32,
) -> vec3:
    seed_stream(0, seed, 0)
    ray = Ray(origin=origin, direction=direction)
    color = vec3(0.0, 0.0, 0.0)
    if mode == int(RenderMode.NORMALS):
        color = normal_color(ray)
    else:
        color = radiance(ray, max_depth, 0)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


def render_row(
    j: int,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
    jitter: bool = True,
    gamma: float = 2.0,
    mode: RenderMode = RenderMode.RADIANCE,
) -> npt.NDArray[np.float32]:
    """Render one scanline.

    Args:
        j: Row index, 0 at the bottom of the image.
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Depth budget per sample.
        seed: Render seed; with the row and column it fixes every random draw.
        jitter: Randomize each sample within its pixel; False uses the pixel
            center for every sample.
        gamma: Gamma applied as c ** (1 / gamma); 2.0 is a square root and
            1.0 leaves colors linear.
        mode: Radiance estimate or normal visualization.

    Returns:
        Array of shape (width, 3), gamma-corrected colors in [0, 1], left to
        right.

    Raises:
        ValueError: If the row or the settings are out of range.
        RuntimeError: If no camera has been set up.
    """
    if width <= 0 or width > MAX_IMAGE_WIDTH:
        raise ValueError(f"Image width {width} is outside [1, {MAX_IMAGE_WIDTH}]")
    if height <= 0:
        raise ValueError(f"Image height {height} must be positive")
    if not 0 <= j < height:
        raise ValueError(f"Row {j} is outside [0, {height})")
    if samples_per_pixel <= 0:
        raise ValueError(f"Samples per pixel {samples_per_pixel} must be positive")
    if max_depth < 0:
        raise ValueError(f"Max depth {max_depth} must not be negative")
    if gamma <= 0.0:
        raise ValueError(f"Gamma {gamma} must be positive")
    check_seed(seed)
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")

    _render_row(
        j,
        width,
        height,
        samples_per_pixel,
        max_depth,
        seed,
        int(jitter),
        int(mode),
        1.0 / gamma,
    )
    return _row_buffer.to_numpy()[:width].copy()


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
    seed: int = 0,
    mode: RenderMode = RenderMode.RADIANCE,
) -> tuple[float, float, float]:
    """Evaluate a single ray against the current scene (no gamma, no clamping).

    Useful for testing and debugging individual paths.

    Returns:
        Tuple of (R, G, B) color values.
    """
    if max_depth < 0:
        raise ValueError(f"Max depth {max_depth} must not be negative")
    check_seed(seed)
    color = _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
        seed,
        int(mode),
    )
    return (float(color[0]), float(color[1]), float(color[2]))
