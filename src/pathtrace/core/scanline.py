"""Scanline render driver.

This module drives the integrator row by row:
- Rows are rendered from the top of the image (j = height - 1) down to 0
- All pixels of a row are computed in parallel, each with its own random stream
- After each row every pixel is handed to an optional pixel sink and an
  optional progress callback is notified

The ScanlineRenderer class owns the settings and the assembled image; the
render() function is the one-call entry point taking a scene and a camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtrace.core.scanline import render
    >>> from pathtrace.scene.presets import random_scene
    >>>
    >>> scene, camera = random_scene(seed=1, aspect_ratio=2.0)
    >>> image = render(scene, camera, 400, 200, samples_per_pixel=16, max_depth=50)
    >>> image.shape
    (200, 400, 3)
"""

from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Protocol

import numpy as np
import numpy.typing as npt

from pathtrace.camera.thin_lens import ThinLensCamera, setup_camera
from pathtrace.core.integrator import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_WIDTH,
    RenderMode,
    render_row,
)
from pathtrace.core.sampler import check_seed
from pathtrace.scene.manager import SceneManager

# Type alias for progress callback
# Callback receives (rows_completed, total_rows)
ProgressCallback = Callable[[int, int], None]


class PixelSink(Protocol):
    """Destination for finished pixels, keyed with y = 0 at the bottom row."""

    def set_pixel(self, x: int, y: int, color: tuple[float, float, float]) -> None: ...


@dataclass
class RenderSettings:
    """Parameters of one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Depth budget per sample.
        seed: Render seed; the same seed reproduces the same image.
        jitter: Randomize samples within each pixel. When False every sample
            goes through the pixel center.
        gamma: Output gamma; 2.0 applies a square root, 1.0 none.
        mode: Radiance estimate or normal visualization.
    """

    width: int
    height: int
    samples_per_pixel: int
    max_depth: int = DEFAULT_MAX_DEPTH
    seed: int = 0
    jitter: bool = True
    gamma: float = 2.0
    mode: RenderMode = RenderMode.RADIANCE

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be positive"
            )
        if self.width > MAX_IMAGE_WIDTH:
            raise ValueError(
                f"Image width {self.width} exceeds maximum supported ({MAX_IMAGE_WIDTH})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(
                f"Samples per pixel {self.samples_per_pixel} must be positive"
            )
        if self.max_depth < 0:
            raise ValueError(f"Max depth {self.max_depth} must not be negative")
        if self.gamma <= 0.0:
            raise ValueError(f"Gamma {self.gamma} must be positive")
        check_seed(self.seed)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class ScanlineRenderer:
    """Renders an image one scanline at a time.

    The scene and camera must already be loaded into the Taichi fields
    (SceneManager and setup_camera()); render() below does both checks.

    Attributes:
        settings: The render settings.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If the settings are invalid.
        """
        settings.validate()
        self.settings = settings
        self._image = np.zeros((settings.height, settings.width, 3), dtype=np.float32)
        self._rows_done = 0

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.height

    @property
    def rows_done(self) -> int:
        """Number of scanlines finished by the last render."""
        return self._rows_done

    @property
    def image(self) -> npt.NDArray[np.float32]:
        """The image as a (height, width, 3) array, top row first."""
        return self._image

    def render_rows(self) -> Generator[tuple[int, npt.NDArray[np.float32]], None, None]:
        """Render scanlines top to bottom, yielding each finished row.

        Yields:
            Tuple of (j, row) where j is the row index (0 = bottom) and row is
            a (width, 3) array of gamma-corrected colors.

        Example:
            >>> for j, row in renderer.render_rows():
            ...     print(f"row {j} done")
        """
        s = self.settings
        self._rows_done = 0
        for j in range(s.height - 1, -1, -1):
            row = render_row(
                j,
                s.width,
                s.height,
                s.samples_per_pixel,
                max_depth=s.max_depth,
                seed=s.seed,
                jitter=s.jitter,
                gamma=s.gamma,
                mode=s.mode,
            )
            self._image[s.height - 1 - j] = row
            self._rows_done += 1
            yield j, row

    def render(
        self,
        sink: PixelSink | None = None,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render the full image.

        Args:
            sink: Optional pixel buffer receiving every pixel exactly once via
                set_pixel(x, y, color), with y = 0 at the bottom.
            callback: Optional callback called after each row.
                Receives (rows_completed, total_rows).

        Returns:
            The (height, width, 3) image, top row first.
        """
        for j, row in self.render_rows():
            if sink is not None:
                for i in range(self.width):
                    r, g, b = row[i]
                    sink.set_pixel(i, j, (float(r), float(g), float(b)))
            if callback is not None:
                callback(self._rows_done, self.height)
        return self._image

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ScanlineRenderer(width={self.width}, height={self.height}, "
            f"spp={self.settings.samples_per_pixel}, rows_done={self.rows_done})"
        )


def render(
    scene: SceneManager,
    camera: ThinLensCamera,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    *,
    sink: PixelSink | None = None,
    callback: ProgressCallback | None = None,
    seed: int = 0,
    jitter: bool = True,
    gamma: float = 2.0,
    mode: RenderMode = RenderMode.RADIANCE,
) -> npt.NDArray[np.float32]:
    """Render a scene through a camera.

    Args:
        scene: The scene to render. Must be the most recently built scene,
            since scene storage is shared.
        camera: The camera; it is set up before rendering.
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Depth budget per sample.
        sink: Optional pixel buffer (see ScanlineRenderer.render).
        callback: Optional progress callback (rows_completed, total_rows).
        seed: Render seed.
        jitter: Randomize samples within each pixel.
        gamma: Output gamma.
        mode: Radiance estimate or normal visualization.

    Returns:
        The (height, width, 3) float32 image in [0, 1], top row first.

    Raises:
        ValueError: If the settings or the camera are invalid.
        RuntimeError: If the scene has been replaced by a newer SceneManager.
    """
    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=samples_per_pixel,
        max_depth=max_depth,
        seed=seed,
        jitter=jitter,
        gamma=gamma,
        mode=mode,
    )
    settings.validate()
    if not scene.is_active():
        raise RuntimeError(
            "Scene is not loaded; a newer SceneManager has replaced it. "
            "Call scene.clear() and rebuild it, or use the newer scene."
        )
    setup_camera(camera)

    renderer = ScanlineRenderer(settings)
    return renderer.render(sink=sink, callback=callback)
