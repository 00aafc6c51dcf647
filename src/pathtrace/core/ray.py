"""Ray data structure and vector utilities for Monte Carlo path tracing.

This module provides the Ray dataclass, the vector algebra the rest of the
renderer is written in, and the random sampling helpers used by materials and
the camera. ``vec3`` doubles as a point and as an RGB color; its operators give
addition, subtraction, component-wise multiplication and division, and scaling
by a scalar from either side.

All functions are Taichi functions and must be called from inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from pathtrace.core.sampler import next_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Cap on rejection-sampling rounds (acceptance rate is ~52% for the ball
# and ~79% for the disk, so the cap is never reached in practice)
MAX_REJECTION_TRIES = 64


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes, as it avoids the
    square root.
    """
    return tm.dot(v, v)


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v, or the zero vector when v
        has zero length (instead of propagating NaN).
    """
    result = vec3(0.0, 0.0, 0.0)
    len_v = tm.length(v)
    if len_v > 0.0:
        result = v / len_v
    return result


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are below 1e-8 in magnitude, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Reflection and Refraction
# =============================================================================


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal: v - 2 (v . n) n.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The mirrored direction. Its component along n has the opposite sign
        and the same magnitude as v's.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, ni_over_nt: ti.f32):
    """Refract a unit direction through a surface using Snell's law.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal on the incident side (unit length, dot(uv, n) <= 0).
        ni_over_nt: Ratio of refractive indices, incident over transmitted.

    Returns:
        A tuple (ok, refracted). ok is 0 when total internal reflection
        occurs, in which case refracted is the zero vector.
    """
    dt = tm.dot(uv, n)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)
    ok = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if discriminant >= 0.0:
        ok = 1
        refracted = ni_over_nt * (uv - n * dt) - n * ti.sqrt(discriminant)
    return ok, refracted


@ti.func
def schlick(cosine: ti.f32, refractive_index: ti.f32) -> ti.f32:
    """Approximate Fresnel reflectance with Schlick's polynomial.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        refractive_index: Index of refraction of the dielectric.

    Returns:
        r0 + (1 - r0) (1 - cosine)^5 with r0 = ((1 - n) / (1 + n))^2.
    """
    r0 = (1.0 - refractive_index) / (1.0 + refractive_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit ball.

    Uses rejection sampling over the [-1, 1]^3 cube.

    Args:
        stream: The random stream owned by the calling pixel task.

    Returns:
        A random point with squared length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for attempt in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                next_float(stream) * 2.0 - 1.0,
                next_float(stream) * 2.0 - 1.0,
                next_float(stream) * 2.0 - 1.0,
            )
            if length_squared(p) < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a uniformly distributed point inside the unit disk (z = 0).

    Used for sampling the camera lens aperture.

    Args:
        stream: The random stream owned by the calling pixel task.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for attempt in range(MAX_REJECTION_TRIES):
        if not found:
            p = vec3(
                next_float(stream) * 2.0 - 1.0,
                next_float(stream) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    if not found:
        p = vec3(0.0, 0.0, 0.0)
    return p
