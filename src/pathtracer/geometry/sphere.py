"""Sphere primitive with ray-sphere intersection.

This module provides the Sphere and HitRecord dataclasses and the
intersection routine used by the scene query.

The ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

in its half-b form: with oc = origin - center,

    a = |direction|^2,  half_b = dot(oc, direction),  c = |oc|^2 - radius^2

the roots are t = (-half_b -/+ sqrt(half_b^2 - a*c)) / a. The nearer root is
tested first and the first one inside [t_min, t_max) is reported. This
ordering decides whether a ray entering a glass sphere reports the entry or
the exit surface, so it must not change.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.ray import vec3
    >>> from src.pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import Ray, ray_at, real, vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (strictly positive; enforced when
            spheres are added to a scene).
    """

    center: vec3
    radius: real


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection position. Only valid if hit == 1.
        normal: The unit surface normal, flipped so that it always opposes
            the incoming ray. Only valid if hit == 1.
        front_face: 1 if the ray approached from outside the surface,
            0 if it hit the surface from inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def make_miss() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def make_face_hit(ray: Ray, t: real, point: vec3, outward_normal: vec3) -> HitRecord:
    """Build a HitRecord with the normal oriented against the ray.

    Args:
        ray: The incoming ray.
        t: The ray parameter of the hit.
        point: The hit position.
        outward_normal: The unit normal pointing out of the surface.

    Returns:
        A HitRecord whose front_face is dot(direction, outward_normal) < 0
        and whose normal is outward_normal on the front face, its negation
        otherwise.
    """
    front_face = 0
    normal = -outward_normal
    if tm.dot(ray.direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return HitRecord(hit=1, t=t, point=point, normal=normal, front_face=front_face)


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: real, t_max: real) -> HitRecord:
    """Test for ray-sphere intersection within [t_min, t_max).

    A discriminant of zero or less (a miss or an exactly tangent ray) is
    reported as no hit.

    Args:
        ray: The ray to test. The direction need not be normalized.
        sphere: The sphere to test against.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Upper bound on the ray parameter (exclusive).

    Returns:
        A HitRecord for the nearest root inside the interval, or a miss.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    half_b = tm.dot(oc, ray.direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    result = make_miss()
    if discriminant > 0.0:
        root = ti.sqrt(discriminant)

        t = (-half_b - root) / a
        valid = t >= t_min and t < t_max
        if not valid:
            t = (-half_b + root) / a
            valid = t >= t_min and t < t_max

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius
            result = make_face_hit(ray, t, point, outward_normal)

    return result

