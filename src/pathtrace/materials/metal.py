"""Metal (specular reflective) material implementation.

Metals mirror the incoming direction about the surface normal:
    R = I - 2(I . N)N

An optional fuzz parameter perturbs the mirrored direction by a random point
in a ball of radius ``fuzz``, blurring the reflection. A perturbed direction
that ends up below the surface is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, hit_point, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.ray import (
    Ray,
    random_in_unit_sphere,
    reflect,
    unit_vector,
)

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: Reflection perturbation radius in [0, 1].
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point; origin of the scattered ray.
        normal: The surface normal (unit length).
        stream: The random stream owned by the calling pixel task.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: Ray from the hit point along the (fuzzed) reflection.
        - attenuation: The albedo.
        - did_scatter: 1 if the reflection leaves the surface, 0 if absorbed.
    """
    reflected = reflect(unit_vector(incident_direction), normal)

    if fuzz > 0.0:
        reflected += fuzz * random_in_unit_sphere(stream)

    did_scatter = 0
    if tm.dot(reflected, normal) > 0.0:
        did_scatter = 1

    scattered = Ray(origin=hit_point, direction=reflected)
    return scattered, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component must be in [0, 1].
        fuzz: Reflection perturbation radius in [0, 1]. Default is 0
            (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum blur)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz radius for a metal material by index."""
    return metal_fuzzes[material_idx]
