#!/usr/bin/env python3
"""Render one of the sphere scenes to a PNG file.

The image is rendered in bands of rows on Taichi's CPU worker pool, with a
thin-lens camera looking at the origin from (13, 4, 3).

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH           Image width in pixels (default: 960)
    --height HEIGHT         Image height in pixels (default: 540)
    --samples SAMPLES       Samples per pixel (default: 32)
    --max-depth DEPTH       Maximum path segments per sample (default: 24)
    --threads N             CPU worker threads (default: one per core)
    --scene {basic,random}  Built-in scene (default: basic)
    --scene-file PATH       JSON scene written by World.to_dict()
    --seed SEED             Render seed; also seeds the scene generator
    --tile-rows ROWS        Rows rendered per kernel launch (default: 16)
    --output OUTPUT         Output file path (default: output.png)
    --log-level LEVEL       Logging level (default: INFO)

Example:
    python -m examples.render_spheres --width 480 --height 270 --samples 8 --seed 1
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

logger = logging.getLogger("src.pathtracer.examples.render_spheres")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=960, help="Image width in pixels (default: 960)")
    parser.add_argument(
        "--height", type=int, default=540, help="Image height in pixels (default: 540)"
    )
    parser.add_argument("--samples", type=int, default=32, help="Samples per pixel (default: 32)")
    parser.add_argument(
        "--max-depth",
        type=int,
        default=24,
        help="Maximum path segments per sample (default: 24)",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=None,
        help="CPU worker threads (default: one per core)",
    )
    scene_group = parser.add_mutually_exclusive_group()
    scene_group.add_argument(
        "--scene",
        choices=["basic", "random"],
        default="basic",
        help="Built-in scene (default: basic)",
    )
    scene_group.add_argument(
        "--scene-file",
        type=Path,
        default=None,
        help="JSON scene file (as written by World.to_dict())",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Render seed; also seeds the scene generator (default: random)",
    )
    parser.add_argument(
        "--tile-rows",
        type=int,
        default=16,
        help="Rows rendered per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--output", type=str, default="output.png", help="Output file path (default: output.png)"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def render_spheres(args: argparse.Namespace) -> Path:
    """Build the scene, render it and save the image.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports: Taichi must be initialized first
    import numpy as np

    from src.pathtracer.camera.thin_lens import setup_camera
    from src.pathtracer.core.driver import TiledRenderer
    from src.pathtracer.core.integrator import Raytracer
    from src.pathtracer.scene.presets import SCENE_PRESETS, default_camera
    from src.pathtracer.scene.world import World

    raytracer = Raytracer(
        width=args.width,
        height=args.height,
        samples=args.samples,
        max_depth=args.max_depth,
    )

    if args.scene_file is not None:
        world = World()
        world.from_dict(json.loads(args.scene_file.read_text()))
        world.log_summary()
    else:
        SCENE_PRESETS[args.scene](np.random.default_rng(args.seed))

    setup_camera(default_camera(raytracer.aspect_ratio))

    renderer = TiledRenderer(raytracer, tile_rows=args.tile_rows)

    def progress(rows_done: int, total_rows: int) -> None:
        print(f"\r{100.0 * rows_done / total_rows:6.2f}% done.", end="", file=sys.stderr, flush=True)

    seed = renderer.render(seed=args.seed, callback=progress)
    print(file=sys.stderr)

    output_file = Path(args.output)
    renderer.save_image(output_file)
    logger.info("Saved %s (seed %d)", output_file.absolute(), seed)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    from src.pathtracer.backend import init_backend
    from src.pathtracer.logging_config import setup_logging

    setup_logging(args.log_level)

    try:
        init_backend("cpu", num_threads=args.threads)
        render_spheres(args)
        return 0
    except Exception:
        logger.exception("Render failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
