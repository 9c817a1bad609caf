"""Scene module: object storage, the World builder and presets.

Components:
    intersection: Sphere storage, the ordered object table, the sky
        gradient and the nearest-hit query
    objects: Host-side geometry and material descriptors
    world: World builder with a unified material ID space
    presets: Demonstration scenes and their camera

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for geometric data
    - Object table of (geometry type, geometry index, material ID)
    - Material ID -> (material type, type-local index) lookup
"""

from .intersection import (
    MAX_OBJECTS,
    MAX_SPHERES,
    GeometryType,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_object_count,
    get_sphere_count,
    intersect_scene,
    set_sky,
    sky_color,
)
from .objects import Dielectric, Lambertian, Metal, SphereShape
from .presets import SCENE_PRESETS, create_basic_scene, create_random_scene, default_camera
from .world import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SphereInfo,
    World,
    get_material_type,
    get_material_type_index,
)

__all__ = [
    # Intersection module
    "GeometryType",
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_object_count",
    "get_sphere_count",
    "intersect_scene",
    "set_sky",
    "sky_color",
    "MAX_SPHERES",
    "MAX_OBJECTS",
    # Descriptors
    "SphereShape",
    "Lambertian",
    "Metal",
    "Dielectric",
    # World module
    "World",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "SCENE_PRESETS",
    "create_basic_scene",
    "create_random_scene",
    "default_camera",
]
