"""Preview module for output and visualization.

Components:
    image: In-memory pixel sink and 8-bit quantization
    export: PNG/BMP (Pillow) and plain-text PPM export
    display: Matplotlib-based preview display

Example:
    >>> from pathtrace.preview import ImageBuffer, save_image
    >>> from pathtrace.core.scanline import render
    >>>
    >>> buffer = ImageBuffer(400, 200)
    >>> render(scene, camera, 400, 200, samples_per_pixel=16, sink=buffer)
    >>> save_image(buffer.to_array(), "output.png")
"""

from pathtrace.preview.display import show_image
from pathtrace.preview.export import (
    compute_rmse,
    save_image,
    save_ppm,
    write_ppm,
)
from pathtrace.preview.image import ImageBuffer, quantize

__all__ = [
    # Pixel sink
    "ImageBuffer",
    "quantize",
    # Export functions
    "save_image",
    "save_ppm",
    "write_ppm",
    "compute_rmse",
    # Display
    "show_image",
]
