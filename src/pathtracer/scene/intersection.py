"""Scene-level object storage and nearest-hit query.

The scene is an ordered table of objects. Each entry names a geometry kind,
an index into that kind's storage arrays, and a unified material ID. The
query walks the table in insertion order, shrinking the accepted interval to
the closest hit found so far, and returns that hit together with the
material ID of the object that produced it.

The sky colors shown by rays that escape the scene are stored here as well,
since they are part of the world the integrator queries.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.intersection import (
    ...     add_sphere, clear_scene, intersect_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # Use intersect_scene within a Taichi kernel
"""

from enum import IntEnum

import taichi as ti

from src.pathtracer.core.ray import Ray, lerp, normalize, real, vec3
from src.pathtracer.geometry.sphere import HitRecord, Sphere, hit_sphere, make_miss


class GeometryType(IntEnum):
    """Enumeration of supported geometry kinds.

    Used by the scene query to decide which intersection routine handles an
    object table entry.
    """

    SPHERE = 0


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Extends the basic HitRecord with material_id for scene-level queries.

    Attributes:
        hit: Whether the ray intersected any object (1 if hit, 0 if miss).
        t: The ray parameter of the nearest intersection.
        point: The intersection position.
        normal: The unit surface normal, opposing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        material_id: The material ID of the hit object.
            -1 when nothing was hit.
    """

    hit: ti.i32
    t: real
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


# Maximum number of primitives and objects supported in the scene
MAX_SPHERES = 1024
MAX_OBJECTS = 1024

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=real, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=real, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Object table, in insertion order
object_geometry_types = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_geometry_indices = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())

# Background gradient: horizon is seen looking straight down, zenith straight up
DEFAULT_SKY_HORIZON = (1.0, 1.0, 1.0)
DEFAULT_SKY_ZENITH = (0.5, 0.7, 1.0)

sky_horizon = ti.Vector.field(3, dtype=real, shape=())
sky_zenith = ti.Vector.field(3, dtype=real, shape=())


def set_sky(
    horizon: tuple[float, float, float] = DEFAULT_SKY_HORIZON,
    zenith: tuple[float, float, float] = DEFAULT_SKY_ZENITH,
) -> None:
    """Set the two colors of the background gradient.

    Args:
        horizon: Color returned for rays pointing straight down.
        zenith: Color returned for rays pointing straight up.
    """
    sky_horizon[None] = vec3(horizon[0], horizon[1], horizon[2])
    sky_zenith[None] = vec3(zenith[0], zenith[1], zenith[2])


def clear_scene() -> None:
    """Clear all objects from the scene and restore the default sky.

    Resets the counts to zero. The field data is not cleared but will be
    overwritten when new objects are added.
    """
    num_spheres[None] = 0
    num_objects[None] = 0
    set_sky()


def _add_object(geometry_type: GeometryType, geometry_index: int, material_id: int) -> int:
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_geometry_types[idx] = int(geometry_type)
    object_geometry_indices[idx] = geometry_index
    object_material_ids[idx] = material_id
    num_objects[None] = idx + 1
    return idx


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere.
        radius: The radius of the sphere. Must be positive.
        material_id: The material ID to associate with this sphere.

    Returns:
        The index of the added sphere.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of spheres or objects is exceeded.
    """
    if not radius > 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    _add_object(GeometryType.SPHERE, idx, material_id)
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_object_count() -> int:
    """Get the number of objects in the scene."""
    return int(num_objects[None])


@ti.func
def _hit_record_to_scene_hit_record(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        front_face=rec.front_face,
        material_id=material_id,
    )


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )


@ti.func
def hit_object(ray: Ray, object_idx: ti.i32, t_min: real, t_max: real) -> HitRecord:
    """Intersect a ray with one entry of the object table.

    Args:
        ray: The ray to test.
        object_idx: Index into the object table.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Upper bound on the ray parameter (exclusive).

    Returns:
        The HitRecord produced by the object's geometry routine.
    """
    rec = make_miss()
    geometry_type = object_geometry_types[object_idx]
    geometry_idx = object_geometry_indices[object_idx]

    if geometry_type == int(GeometryType.SPHERE):
        sphere = Sphere(center=sphere_centers[geometry_idx], radius=sphere_radii[geometry_idx])
        rec = hit_sphere(ray, sphere, t_min, t_max)

    return rec


@ti.func
def intersect_scene(ray: Ray, t_min: real, t_max: real) -> SceneHitRecord:
    """Find the nearest intersection of a ray with the scene.

    Objects are tested in insertion order; after each hit the upper bound
    becomes that hit's t, so a later object only wins when strictly closer.

    Args:
        ray: The ray to test.
        t_min: Smallest accepted ray parameter (inclusive).
        t_max: Upper bound on the ray parameter (exclusive).

    Returns:
        A SceneHitRecord for the closest intersection, or a miss record.
    """
    closest_t = t_max
    result = _make_miss_record()

    n_objects = num_objects[None]
    for i in range(n_objects):
        rec = hit_object(ray, i, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = _hit_record_to_scene_hit_record(rec, object_material_ids[i])

    return result


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background color seen along a direction that escapes the scene.

    Blends linearly from the horizon color (direction pointing down) to the
    zenith color (pointing up) by the normalized direction's y component.
    """
    unit_direction = normalize(direction)
    t = 0.5 * (unit_direction.y + 1.0)
    return lerp(sky_horizon[None], sky_zenith[None], t)
