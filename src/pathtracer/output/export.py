"""Image export utilities for rendered images.

The renderer stores gamma-corrected colors, so export only has to quantize
them to 8 bits (clamp to [0, 1], scale by 255.999, truncate) and hand the
result to Pillow, which picks the file format from the extension.

Example:
    >>> from src.pathtracer.output.export import save_png
    >>> from src.pathtracer.core.driver import TiledRenderer
    >>>
    >>> renderer = TiledRenderer(Raytracer(320, 180))
    >>> renderer.render()
    >>> save_png(renderer, "output.png")
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from src.pathtracer.core.driver import TiledRenderer

# Same scale as the in-kernel conversion, so both paths agree exactly
RGB8_SCALE = 255.999


def quantize_image(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a display-referred float image to 8-bit channel values.

    Args:
        image: Gamma-corrected image array of shape (H, W, 3).

    Returns:
        Array of the same shape with dtype uint8.
    """
    clamped = np.clip(np.nan_to_num(image, nan=0.0), 0.0, 1.0)
    return (clamped * RGB8_SCALE).astype(np.uint8)


def save_png(renderer: TiledRenderer, filepath: str | Path) -> None:
    """Save a renderer's current image as a PNG file.

    Args:
        renderer: The TiledRenderer whose image to save.
        filepath: Output file path (should end in .png).
    """
    save_png_from_array(renderer.get_image_uint8(), filepath)


def save_png_from_array(image: npt.NDArray, filepath: str | Path) -> None:
    """Save a NumPy image array to a file.

    Float arrays are treated as gamma-corrected colors and quantized first;
    uint8 arrays are written unchanged.

    Args:
        image: Image array of shape (H, W, 3), top row first.
        filepath: Output file path.

    Raises:
        ValueError: If the array is not (H, W, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")

    if image.dtype != np.uint8:
        image = quantize_image(image)

    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)


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
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
