"""Matplotlib-based preview display for rendered images.

Example:
    >>> from pathtrace.preview.display import show_image
    >>> show_image(image, title="Random scene - 16 SPP")
"""

import numpy as np
import numpy.typing as npt


def show_image(
    image: npt.NDArray[np.float32],
    *,
    title: str | None = None,
    figsize: tuple[float, float] | None = None,
    block: bool = True,
) -> None:
    """Display a rendered image as a Matplotlib figure.

    The renderer already gamma corrects its output, so the image is shown as
    is (clamped to [0, 1]).

    Args:
        image: Image array of shape (H, W, 3), top row first.
        title: Optional figure title.
        figsize: Figure size in inches (width, height). Defaults to 8 inches
            wide at the image's aspect ratio.
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    height, width = image.shape[:2]
    if figsize is None:
        figsize = (8.0, 8.0 * height / width)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(np.clip(image, 0.0, 1.0))
    ax.axis("off")
    if title is not None:
        ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
