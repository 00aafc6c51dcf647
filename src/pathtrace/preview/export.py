"""Image export utilities for rendered images.

This module provides functions for saving rendered images to files. Images
are (height, width, 3) float arrays in [0, 1], top row first, already gamma
corrected by the renderer; export only quantizes and encodes them.

Supported formats:
    - PNG and BMP (8-bit via Pillow)
    - PPM (plain-text P3, one pixel per line)

Example:
    >>> from pathtrace.preview.export import save_image
    >>> from pathtrace.core.scanline import render
    >>>
    >>> image = render(scene, camera, 400, 200, samples_per_pixel=16)
    >>> save_image(image, "output.png")
"""

from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtrace.preview.image import quantize

# Extensions written through Pillow, and the format name Pillow expects
PILLOW_FORMATS = {".png": "PNG", ".bmp": "BMP"}

# Extension appended to paths with an unsupported suffix
DEFAULT_EXTENSION = ".png"


def _check_image(image: npt.NDArray[np.floating[npt.NBitBase]]) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def write_ppm(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    destination: TextIO,
) -> None:
    """Write an image as plain-text PPM (P3), top row first.

    Args:
        image: Image array of shape (H, W, 3) with values in [0, 1].
        destination: Text stream to write to.

    Raises:
        ValueError: If the array is not an RGB image.
    """
    _check_image(image)
    height, width, _ = image.shape
    pixels = quantize(image)

    destination.write("P3\n")
    destination.write(f"{width} {height}\n")
    destination.write("255\n")
    for r, g, b in pixels.reshape(-1, 3):
        destination.write(f"{r} {g} {b}\n")


def save_ppm(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    filepath: str | Path,
) -> Path:
    """Save an image as a plain-text PPM file.

    Returns:
        The path written.
    """
    path = Path(filepath)
    with path.open("w", encoding="ascii") as f:
        write_ppm(image, f)
    return path


def save_image(
    image: npt.NDArray[np.floating[npt.NBitBase]],
    filepath: str | Path,
) -> Path:
    """Save an image, choosing the format from the file extension.

    ``.png`` and ``.bmp`` go through Pillow, ``.ppm`` is written as plain
    text. Any other extension gets ``.png`` appended.

    Args:
        image: Image array of shape (H, W, 3) with values in [0, 1].
        filepath: Output file path.

    Returns:
        The path actually written.

    Raises:
        ValueError: If the array is not an RGB image.
    """
    _check_image(image)
    path = Path(filepath)
    suffix = path.suffix.lower()

    if suffix == ".ppm":
        return save_ppm(image, path)

    if suffix not in PILLOW_FORMATS:
        path = path.with_name(path.name + DEFAULT_EXTENSION)
        suffix = DEFAULT_EXTENSION

    pil_image = PILImage.fromarray(quantize(image))
    pil_image.save(path, format=PILLOW_FORMATS[suffix])
    return path


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(
            f"Image shapes must match: {image_a.shape} vs {image_b.shape}"
        )

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
