"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    sampler: Per-sample random streams and sampling routines
    integrator: Path tracing estimator, render target and band kernels
    driver: Tiled render driver

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    RGB8_SCALE,
    Ray,
    color_to_rgb8,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import (
    init_rng,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
)

# Note: integrator and driver are NOT imported here; they declare Taichi
# fields and pull in the scene modules. Import them directly:
#   from src.pathtracer.core.driver import TiledRenderer
#   from src.pathtracer.core.integrator import Raytracer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "RGB8_SCALE",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "lerp",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "color_to_rgb8",
    "init_rng",
    "random_float",
    "random_range",
    "random_unit_vector",
    "random_in_unit_sphere",
    "random_in_unit_disk",
]
