"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray data structure, vector algebra, reflection/refraction helpers
    sampler: Per-pixel random streams
    integrator: Radiance estimation and the scanline kernel
    scanline: Render settings and the row-by-row render driver

The integrator estimates incoming radiance with a bounded loop over
scattering events; rows are rendered one at a time with all pixels of a row
computed in parallel.
"""

from .ray import (
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick,
    unit_vector,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    next_float,
    sample_uniform,
    seed_stream,
    seed_stream_host,
)

# Note: integrator and scanline are NOT imported here to avoid circular imports
# (they depend on the scene and camera packages, which import from core).
#
# For rendering, use:
#   from pathtrace.core.scanline import render, RenderSettings, ScanlineRenderer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "near_zero",
    "reflect",
    "refract",
    "schlick",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "MAX_STREAMS",
    "seed_stream",
    "next_float",
    "seed_stream_host",
    "sample_uniform",
]
