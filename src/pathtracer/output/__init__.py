"""Output module for image export.

Components:
    export: 8-bit quantization, PNG export (Pillow) and image comparison
"""

from src.pathtracer.output.export import (
    compute_rmse,
    quantize_image,
    save_png,
    save_png_from_array,
)

__all__ = [
    "quantize_image",
    "save_png",
    "save_png_from_array",
    "compute_rmse",
]
