"""Plain descriptors for scene content.

These are host-side value objects that describe a geometry or a material
before it is registered with a World. They hold no Taichi state, so they can
be built, compared and stored freely (for example by scene presets).

Example:
    >>> from src.pathtracer.scene.objects import Lambertian, SphereShape
    >>> world.add(SphereShape((0.0, 0.0, -1.0), 0.5), Lambertian((0.8, 0.3, 0.3)))
"""

from dataclasses import dataclass

Color = tuple[float, float, float]
Point = tuple[float, float, float]


@dataclass(frozen=True)
class SphereShape:
    """A sphere given by its center and radius."""

    center: Point
    radius: float


@dataclass(frozen=True)
class Lambertian:
    """Ideal diffuse material."""

    albedo: Color


@dataclass(frozen=True)
class Metal:
    """Specular reflector with optional fuzz (0 = perfect mirror)."""

    albedo: Color
    fuzz: float = 0.0


@dataclass(frozen=True)
class Dielectric:
    """Transparent refracting material such as glass (1.5) or water (1.33)."""

    refractive_index: float = 1.5


Geometry = SphereShape
Material = Lambertian | Metal | Dielectric
