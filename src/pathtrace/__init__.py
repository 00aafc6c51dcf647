"""Taichi-accelerated Monte Carlo path tracer for sphere scenes.

This package estimates the radiance arriving at every pixel of a virtual
camera by tracing jittered rays through a list of spheres and following their
scattering chains (diffuse, metal, glass) up to a fixed depth.

Subpackages:
    core: Vector utilities, rays, random streams, integrator and scanline driver
    geometry: Sphere primitive and ray-sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Scene storage, material registry and preset scenes
    camera: Thin-lens camera with depth of field
    preview: Pixel buffers, image export and on-screen preview

Taichi must be initialized (``ti.init``) before any subpackage is imported,
since most modules allocate Taichi fields at import time.
"""

__version__ = "0.1.0"
