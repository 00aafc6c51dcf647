"""Dielectric (glass/water) material implementation.

Dielectrics either reflect or refract every incoming ray; they never absorb
and do not tint (attenuation is white).

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for the reflect probability
    - Total internal reflection when no refracted direction exists

Whether the ray enters or leaves the medium is decided from the sign of
dot(direction, normal) against the sphere's outward normal, so hollow shells
built from negative-radius spheres work without extra bookkeeping.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # scattered, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, hit_point, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.ray import (
    Ray,
    reflect,
    refract,
    schlick,
    unit_vector,
)
from pathtrace.core.sampler import next_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _interface(ior: ti.f32, unit_direction: vec3, normal: vec3):
    """Orient the interface for a ray entering or leaving the medium.

    Returns:
        A tuple (outward_normal, ni_over_nt, cosine) where outward_normal
        faces the incident side and cosine is the incident angle's cosine.
    """
    d_dot_n = tm.dot(unit_direction, normal)
    outward_normal = normal
    ni_over_nt = 1.0 / ior
    cosine = -d_dot_n
    if d_dot_n > 0.0:
        # Leaving the medium
        outward_normal = -normal
        ni_over_nt = ior
        cosine = d_dot_n
    return outward_normal, ni_over_nt, cosine


@ti.func
def _reflect_probability(can_refract: ti.i32, cosine: ti.f32, ior: ti.f32) -> ti.f32:
    """Schlick reflectance, 1 under total internal reflection.

    A matched medium (ior == 1) has no interface, so it never reflects.
    """
    reflect_prob = 1.0
    if can_refract == 1:
        reflect_prob = 0.0
        if ior != 1.0:
            reflect_prob = schlick(cosine, ior)
    return reflect_prob


@ti.func
def dielectric_reflectance(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.f32:
    """Probability that a ray hitting the dielectric is reflected.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The sphere's normal at the hit point (unit length).

    Returns:
        1.0 under total internal reflection, otherwise Schlick's reflectance.
    """
    unit_direction = unit_vector(incident_direction)
    outward_normal, ni_over_nt, cosine = _interface(ior, unit_direction, normal)
    can_refract, _ = refract(unit_direction, outward_normal, ni_over_nt)
    return _reflect_probability(can_refract, cosine, ior)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Scatter a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        hit_point: The intersection point; origin of the scattered ray.
        normal: The sphere's normal at the hit point (unit length).
        stream: The random stream owned by the calling pixel task.

    Returns:
        A tuple of (scattered, attenuation, did_scatter) where:
        - scattered: The reflected or refracted ray from the hit point.
        - attenuation: White (1, 1, 1).
        - did_scatter: Always 1 for dielectrics.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    unit_direction = unit_vector(incident_direction)
    outward_normal, ni_over_nt, cosine = _interface(ior, unit_direction, normal)
    can_refract, refracted = refract(unit_direction, outward_normal, ni_over_nt)

    reflect_prob = _reflect_probability(can_refract, cosine, ior)

    direction = refracted
    if next_float(stream) < reflect_prob:
        direction = reflect(unit_direction, normal)

    scattered = Ray(origin=hit_point, direction=direction)
    return scattered, attenuation, 1


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be positive; values below 1.0 model a bubble of a less dense
            medium.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(f"Index of refraction = {ior} must be positive.")

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]
