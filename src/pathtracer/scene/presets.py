"""Demonstration scenes and the camera that frames them.

Both scenes stand on a very large diffuse "ground" sphere and draw their
random choices from a caller-supplied NumPy Generator, so passing the same
generator seed rebuilds the same scene.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.scene.presets import create_basic_scene, default_camera
    >>> world = create_basic_scene(np.random.default_rng(7))
    >>> camera = default_camera(16.0 / 9.0)
"""

import math

import numpy as np

from src.pathtracer.camera.thin_lens import Camera, CameraLens
from src.pathtracer.scene.objects import Dielectric, Lambertian, Metal, SphereShape
from src.pathtracer.scene.world import World

GROUND = SphereShape((0.0, -1000.5, -1.0), 1000.0)
GROUND_MATERIAL = Lambertian((0.5, 0.5, 0.5))

GLASS_INDEX = 1.5

DEFAULT_LOOKFROM = (13.0, 4.0, 3.0)
DEFAULT_LOOKAT = (0.0, 0.0, 0.0)
DEFAULT_VUP = (0.0, 1.0, 0.0)
DEFAULT_VFOV = 10.0
DEFAULT_APERTURE = 0.1


def _random_color(rng: np.random.Generator) -> np.ndarray:
    return rng.random(3)


def _as_tuple(values: np.ndarray) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


def create_basic_scene(rng: np.random.Generator, world: World | None = None) -> World:
    """Build the grid scene: a 17x17 wave of small balls and three metal spheres.

    The small balls (radius 0.2) follow the surface
    y = 0.5 + sin(i) * cos(j), halved with x and z, for i, j in -8..8. Four
    in five are diffuse with a pastel albedo, the rest are glass. Three
    metal spheres of increasing fuzz sit along the z axis.

    Args:
        rng: Source of the random material choices.
        world: World to fill. A new one is created when None; an existing
            one is cleared first.

    Returns:
        The populated World.
    """
    if world is None:
        world = World()
    else:
        world.clear()

    world.add(GROUND, GROUND_MATERIAL)

    for i in range(-8, 9):
        for j in range(-8, 9):
            center = (i / 2.0, (0.5 + math.sin(i) * math.cos(j)) / 2.0, j / 2.0)
            if rng.random() < 0.8:
                material = Lambertian(_as_tuple((1.0 + _random_color(rng)) / 2.0))
            else:
                material = Dielectric(GLASS_INDEX)
            world.add(SphereShape(center, 0.2), material)

    world.add(SphereShape((0.0, 0.0, -1.0), 0.5), Metal((1.0, 0.25, 0.5), fuzz=0.125))
    world.add(SphereShape((0.0, 0.0, 0.0), 0.5), Metal((0.25, 1.0, 0.5), fuzz=0.0))
    world.add(SphereShape((0.0, 0.0, 1.0), 0.5), Metal((0.5, 0.25, 1.0), fuzz=0.25))

    world.log_summary()
    return world


def create_random_scene(rng: np.random.Generator, world: World | None = None) -> World:
    """Build the random scene: a 23x23 field of small spheres and three large ones.

    Each small sphere (radius 0.2) is jittered inside its grid cell and gets
    a diffuse material with probability 0.8, a metal one with probability
    0.15 and glass otherwise. A glass, a diffuse and a mirror sphere of
    radius 1 stand in the middle.

    Args:
        rng: Source of the random positions and materials.
        world: World to fill. A new one is created when None; an existing
            one is cleared first.

    Returns:
        The populated World.
    """
    if world is None:
        world = World()
    else:
        world.clear()

    world.add(GROUND, GROUND_MATERIAL)

    for a in range(-11, 12):
        for b in range(-11, 12):
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())
            choose_material = rng.random()
            if choose_material < 0.8:
                albedo = _random_color(rng) * _random_color(rng)
                material = Lambertian(_as_tuple(albedo))
            elif choose_material < 0.95:
                albedo = (_random_color(rng) + 1.0) / 2.0
                fuzz = (rng.random() + 1.0) / 2.0
                material = Metal(_as_tuple(albedo), fuzz=float(fuzz))
            else:
                material = Dielectric(GLASS_INDEX)
            world.add(SphereShape(center, 0.2), material)

    world.add(SphereShape((0.0, 1.0, 0.0), 1.0), Dielectric(GLASS_INDEX))
    world.add(SphereShape((-4.0, 1.0, 0.0), 1.0), Lambertian((0.4, 0.2, 0.1)))
    world.add(SphereShape((4.0, 1.0, 0.0), 1.0), Metal((0.7, 0.6, 0.5), fuzz=0.0))

    world.log_summary()
    return world


SCENE_PRESETS = {
    "basic": create_basic_scene,
    "random": create_random_scene,
}


def default_camera(aspect_ratio: float) -> Camera:
    """Camera used for both presets.

    Looks at the origin from (13, 4, 3) with a 10 degree vertical field of
    view and a 0.1 aperture focused on the look-at point.
    """
    return Camera(
        lookfrom=DEFAULT_LOOKFROM,
        lookat=DEFAULT_LOOKAT,
        vup=DEFAULT_VUP,
        vfov=DEFAULT_VFOV,
        aspect_ratio=aspect_ratio,
        lens=CameraLens.from_distance(DEFAULT_APERTURE, DEFAULT_LOOKFROM, DEFAULT_LOOKAT),
    )
