"""Camera models for primary ray generation.

Components:
    thin_lens: Positionable perspective camera with defocus blur
"""

from .thin_lens import (
    ThinLensCamera,
    default_camera,
    get_camera_info,
    get_ray,
    is_camera_ready,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "default_camera",
    "setup_camera",
    "is_camera_ready",
    "get_ray",
    "get_camera_info",
]
