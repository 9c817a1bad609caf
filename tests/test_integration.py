"""End-to-end tests: preset scenes through the tiled renderer and the CLI."""

import json

import numpy as np
import pytest
from PIL import Image


class TestPresetRender:
    """Small renders of the demonstration scenes."""

    @pytest.mark.parametrize("scene", ["basic", "random"])
    def test_preset_renders_cleanly(self, scene):
        from src.pathtracer.camera.thin_lens import setup_camera
        from src.pathtracer.core.driver import TiledRenderer
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.presets import SCENE_PRESETS, default_camera

        raytracer = Raytracer(width=32, height=18, samples=2, max_depth=6)
        SCENE_PRESETS[scene](np.random.default_rng(0))
        setup_camera(default_camera(raytracer.aspect_ratio))

        renderer = TiledRenderer(raytracer, tile_rows=5)
        renderer.render(seed=10)
        image = renderer.get_image_numpy()

        assert image.shape == (18, 32, 3)
        assert np.all(np.isfinite(image))
        assert image.min() >= 0.0
        # Something is visible and not everything is the sky
        assert image.max() > 0.1
        assert image.std() > 0.01

    def test_scene_file_matches_preset(self):
        """A scene reloaded from its dict renders exactly like the original."""
        from src.pathtracer.camera.thin_lens import setup_camera
        from src.pathtracer.core.driver import TiledRenderer
        from src.pathtracer.core.integrator import Raytracer
        from src.pathtracer.scene.presets import create_basic_scene, default_camera
        from src.pathtracer.scene.world import World

        raytracer = Raytracer(width=16, height=9, samples=2, max_depth=4)
        data = json.loads(json.dumps(create_basic_scene(np.random.default_rng(3)).to_dict()))
        setup_camera(default_camera(raytracer.aspect_ratio))
        renderer = TiledRenderer(raytracer)
        renderer.render(seed=5)
        original = renderer.get_image_uint8()

        World().from_dict(data)
        renderer.render(seed=5)
        assert np.array_equal(renderer.get_image_uint8(), original)


class TestCommandLine:
    """Tests for the example render script."""

    def test_parse_args_defaults(self):
        from examples.render_spheres import parse_args

        args = parse_args([])
        assert (args.width, args.height) == (960, 540)
        assert args.samples == 32
        assert args.max_depth == 24
        assert args.scene == "basic"
        assert args.scene_file is None
        assert args.seed is None
        assert args.tile_rows == 16
        assert args.output == "output.png"

    def test_scene_and_scene_file_are_exclusive(self):
        from examples.render_spheres import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--scene", "random", "--scene-file", "scene.json"])

    def test_render_spheres(self, tmp_path):
        from examples.render_spheres import parse_args, render_spheres

        output = tmp_path / "spheres.png"
        args = parse_args(
            [
                "--width", "24",
                "--height", "12",
                "--samples", "1",
                "--max-depth", "3",
                "--seed", "7",
                "--scene", "random",
                "--output", str(output),
            ]
        )
        assert render_spheres(args) == output
        with Image.open(output) as img:
            assert img.size == (24, 12)

    def test_render_from_scene_file(self, tmp_path):
        from examples.render_spheres import parse_args, render_spheres

        scene_file = tmp_path / "scene.json"
        scene_file.write_text(
            json.dumps(
                {
                    "materials": [
                        {"type": "lambertian", "albedo": [0.5, 0.5, 0.5]},
                        {"type": "metal", "albedo": [0.8, 0.8, 0.8], "fuzz": 0.1},
                    ],
                    "objects": [
                        {"type": "sphere", "center": [0, -1000, 0], "radius": 1000, "material_id": 0},
                        {"type": "sphere", "center": [0, 1, 0], "radius": 1, "material_id": 1},
                    ],
                }
            )
        )
        output = tmp_path / "file.png"
        args = parse_args(
            [
                "--width", "8",
                "--height", "8",
                "--samples", "1",
                "--max-depth", "2",
                "--seed", "1",
                "--scene-file", str(scene_file),
                "--output", str(output),
            ]
        )
        render_spheres(args)
        assert output.exists()
