"""In-memory pixel buffer and 8-bit quantization.

ImageBuffer is the pixel sink handed to the scanline renderer. It is keyed the
way the renderer counts rows (y = 0 is the bottom row) but stores pixels top
row first, which is what image files and Matplotlib expect.

Example:
    >>> from pathtrace.preview.image import ImageBuffer, quantize
    >>> buffer = ImageBuffer(4, 2)
    >>> buffer.set_pixel(0, 0, (1.0, 0.0, 0.0))  # bottom-left
    >>> quantize(buffer.to_array())[1, 0]
    array([255,   0,   0], dtype=uint8)
"""

import numpy as np
import numpy.typing as npt


def quantize(image: npt.NDArray[np.floating[npt.NBitBase]]) -> npt.NDArray[np.uint8]:
    """Convert [0, 1] colors to 8-bit channels.

    Channels are clamped to [0, 1] and truncated after scaling by 255.99, so
    1.0 maps to 255 and 0.0 to 0.

    Args:
        image: Array of colors with channels last.

    Returns:
        Array of the same shape with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    return (255.99 * clamped).astype(np.uint8)


class ImageBuffer:
    """A width x height grid of RGB float colors.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Create a black image.

        Raises:
            ValueError: If either dimension is not positive.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
        self.width = width
        self.height = height
        self._pixels = np.zeros((height, width, 3), dtype=np.float32)

    def _row(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) is outside {self.width}x{self.height}")
        return self.height - 1 - y

    def set_pixel(self, x: int, y: int, color: tuple[float, float, float]) -> None:
        """Store the color of pixel (x, y), with y = 0 the bottom row."""
        self._pixels[self._row(x, y), x] = color

    def get_pixel(self, x: int, y: int) -> tuple[float, float, float]:
        """Read pixel (x, y), with y = 0 the bottom row."""
        r, g, b = self._pixels[self._row(x, y), x]
        return (float(r), float(g), float(b))

    def to_array(self) -> npt.NDArray[np.float32]:
        """Copy of the pixels as a (height, width, 3) array, top row first."""
        return self._pixels.copy()

    def to_uint8(self) -> npt.NDArray[np.uint8]:
        """The pixels quantized to 8 bits, top row first."""
        return quantize(self._pixels)

    def __repr__(self) -> str:
        return f"ImageBuffer(width={self.width}, height={self.height})"
