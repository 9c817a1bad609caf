"""Tiled render driver.

The driver splits the image into horizontal bands of rows and renders them
one kernel launch at a time. Inside a band the pixel loop is spread over the
Taichi CPU worker pool, and every pixel is written exactly once, so the
framebuffer needs no locking. Between bands the driver reports progress,
either through a callback or by yielding from a generator.

Example:
    >>> from src.pathtracer.core.driver import TiledRenderer
    >>> from src.pathtracer.core.integrator import Raytracer
    >>>
    >>> renderer = TiledRenderer(Raytracer(960, 540, samples=32), tile_rows=16)
    >>> seed = renderer.render(callback=lambda done, total: print(done, total))
    >>> renderer.save_image("spheres.png")
"""

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.pathtracer.core.integrator import (
    Raytracer,
    get_image_numpy,
    get_image_uint8,
    render_rows,
    setup_render_target,
)
from src.pathtracer.output.export import save_png

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_TILE_ROWS = 16

# Seeds are passed to kernels as i32
_MAX_SEED = 2**31 - 1


def _resolve_seed(seed: int | None) -> int:
    if seed is None:
        return int(np.random.default_rng().integers(0, _MAX_SEED))
    if not 0 <= seed <= _MAX_SEED:
        raise ValueError(f"seed must be in [0, {_MAX_SEED}], got {seed}")
    return seed


class TiledRenderer:
    """Renders a full image band by band.

    Attributes:
        raytracer: Screen and sampling settings.
        tile_rows: Number of image rows rendered per kernel launch.
        last_seed: Seed used by the most recent render, None before any.
    """

    def __init__(self, raytracer: Raytracer, tile_rows: int = DEFAULT_TILE_ROWS) -> None:
        """Initialize the driver and allocate the render target.

        Raises:
            ValueError: If tile_rows is not positive.
        """
        if tile_rows < 1:
            raise ValueError(f"tile_rows must be at least 1, got {tile_rows}")
        self.raytracer = raytracer
        self.tile_rows = tile_rows
        self.last_seed: int | None = None
        setup_render_target(raytracer.width, raytracer.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.raytracer.width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.raytracer.height

    def render_tiles(self, seed: int | None = None) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each band.

        Args:
            seed: Render seed. A fresh one is drawn when None; the value used
                is stored in last_seed before the first band is rendered.

        Yields:
            Tuple of (rows_done, total_rows).
        """
        seed = _resolve_seed(seed)
        self.last_seed = seed

        rt = self.raytracer
        total_rows = rt.height
        logger.info(
            "Rendering %dx%d, %d samples, max depth %d, seed %d",
            rt.width,
            rt.height,
            rt.samples,
            rt.max_depth,
            seed,
        )
        setup_render_target(rt.width, rt.height)

        start = time.perf_counter()
        rows_done = 0
        while rows_done < total_rows:
            row_count = min(self.tile_rows, total_rows - rows_done)
            render_rows(rows_done, row_count, rt.samples, rt.max_depth, seed)
            rows_done += row_count
            logger.debug("Rendered rows %d/%d", rows_done, total_rows)
            yield (rows_done, total_rows)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)

    def render(
        self,
        seed: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> int:
        """Render the whole image.

        Args:
            seed: Render seed. A fresh one is drawn when None.
            callback: Optional function called after each band with
                (rows_done, total_rows).

        Returns:
            The seed that was used. Rendering again with it reproduces the
            image exactly.
        """
        seed = _resolve_seed(seed)
        for rows_done, total_rows in self.render_tiles(seed):
            if callback is not None:
                callback(rows_done, total_rows)
        return seed

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the gamma-corrected image, shape (height, width, 3), top row first."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the quantized image, shape (height, width, 3), top row first."""
        return get_image_uint8()

    def save_image(self, filepath: str | Path) -> None:
        """Save the quantized image (format from the file extension)."""
        save_png(self, filepath)

    def __repr__(self) -> str:
        return (
            f"TiledRenderer(width={self.width}, height={self.height}, "
            f"samples={self.raytracer.samples}, tile_rows={self.tile_rows})"
        )
