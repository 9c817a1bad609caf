"""World builder coordinating objects, materials and the sky.

This module provides the high-level scene API. It keeps a unified
material_id space on top of the per-type material registries, so that the
integrator can dispatch a hit to the right scattering routine, and it records
everything it is given so the scene can be serialized back to a plain dict.

The World maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The ordered object table (through the scene intersection storage)
- The sky gradient colors

Only one World is live at a time: the scene data lives in module-level
Taichi fields, and constructing a World clears them.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.scene.world import World
    >>> world = World()
    >>> mat_id = world.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> world.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
    >>> # Use get_material_type(mat_id) in kernels for dispatch
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from src.pathtracer.core.ray import vec3
from src.pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.pathtracer.scene.intersection import (
    DEFAULT_SKY_HORIZON,
    DEFAULT_SKY_ZENITH,
    add_sphere,
    clear_scene,
    get_object_count,
    get_sphere_count,
    set_sky,
)
from src.pathtracer.scene.objects import (
    Dielectric,
    Geometry,
    Lambertian,
    Material,
    Metal,
    SphereShape,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SphereInfo:
    """Information about a sphere in the scene.

    Attributes:
        sphere_index: The index in the sphere storage arrays.
        center: The center of the sphere.
        radius: The radius of the sphere.
        material_id: The material ID assigned to the sphere.
    """

    sphere_index: int
    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        objects: List of object configurations, in insertion order.
        sky: Horizon and zenith colors of the background.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    objects: list[dict[str, Any]] = field(default_factory=list)
    sky: dict[str, list[float]] = field(
        default_factory=lambda: {
            "horizon": list(DEFAULT_SKY_HORIZON),
            "zenith": list(DEFAULT_SKY_ZENITH),
        }
    )


def _triple(values: Any, name: str) -> tuple[float, float, float]:
    """Convert a 3-element sequence from a config dict to a float tuple."""
    if len(values) != 3:
        raise ValueError(f"'{name}' must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


class World:
    """Scene builder coordinating objects and materials.

    The World provides a high-level API for building scenes with automatic
    material tracking. It maintains a unified material_id space that maps to
    type-specific material registries, enabling the path tracer to dispatch
    to the correct scattering function.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereInfo for all spheres in the scene.
        sky: The (horizon, zenith) background colors.

    Example:
        >>> world = World()
        >>> red_diffuse = world.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = world.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = world.add_dielectric_material(refractive_index=1.5)
        >>> world.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> world.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> world.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        """Initialize an empty scene with the default sky."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereInfo] = []
        self.sky: tuple[tuple[float, float, float], tuple[float, float, float]] = (
            DEFAULT_SKY_HORIZON,
            DEFAULT_SKY_ZENITH,
        )
        self._clear_all()

    def _clear_all(self) -> None:
        # Primitive storage, object table and sky
        clear_scene()
        # Material registries
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        # Local tracking
        self.materials.clear()
        self.spheres.clear()
        self.sky = (DEFAULT_SKY_HORIZON, DEFAULT_SKY_ZENITH)

    def clear(self) -> None:
        """Clear the entire scene (objects, materials and sky)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
                Each component should be in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
                Each component should be in [0, 1].
            fuzz: The reflection perturbation radius in [0, 1].
                Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
            ValueError: If fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, refractive_index: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            refractive_index: Index of refraction. Default is 1.5 (typical
                glass). Common values: Air=1.0, Water=1.33, Diamond=2.4

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the refractive index is not positive.
        """
        type_index = add_dielectric_material(refractive_index)
        return self._register_material(
            MaterialType.DIELECTRIC,
            type_index,
            {"refractive_index": refractive_index},
        )

    def add_material(self, material: Material) -> int:
        """Register a material descriptor and return its unified ID."""
        if isinstance(material, Lambertian):
            return self.add_lambertian_material(material.albedo)
        if isinstance(material, Metal):
            return self.add_metal_material(material.albedo, material.fuzz)
        if isinstance(material, Dielectric):
            return self.add_dielectric_material(material.refractive_index)
        raise ValueError(f"Unknown material: {material!r}")

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.

        Returns:
            The MaterialType, or None for invalid material IDs.
        """
        info = self.get_material_info(material_id)
        if info is None:
            return None
        return info.material_type

    # =========================================================================
    # Object Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere. Must be positive.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid or the radius is not positive.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center_vec = vec3(center[0], center[1], center[2])
        sphere_index = add_sphere(center_vec, radius, material_id)

        self.spheres.append(
            SphereInfo(
                sphere_index=sphere_index,
                center=tuple(center),
                radius=radius,
                material_id=material_id,
            )
        )
        return sphere_index

    def add(self, geometry: Geometry, material: Material) -> tuple[int, int]:
        """Add an object from a geometry and a material descriptor.

        A new material is registered for every call.

        Args:
            geometry: The shape to add (currently a SphereShape).
            material: The material descriptor of the object.

        Returns:
            Tuple of (geometry_index, material_id).

        Raises:
            ValueError: If the geometry kind is unknown or the descriptors
                hold invalid values.
        """
        if not isinstance(geometry, SphereShape):
            raise ValueError(f"Unknown geometry: {geometry!r}")
        material_id = self.add_material(material)
        sphere_index = self.add_sphere(geometry.center, geometry.radius, material_id)
        return sphere_index, material_id

    def set_sky(
        self,
        horizon: tuple[float, float, float] = DEFAULT_SKY_HORIZON,
        zenith: tuple[float, float, float] = DEFAULT_SKY_ZENITH,
    ) -> None:
        """Set the background gradient shown by rays that leave the scene.

        Args:
            horizon: Color for rays pointing straight down.
            zenith: Color for rays pointing straight up.
        """
        set_sky(horizon, zenith)
        self.sky = (tuple(horizon), tuple(zenith))

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def get_object_count(self) -> int:
        """Get the total number of objects in the scene."""
        return get_object_count()

    def log_summary(self) -> None:
        """Log the scene size at INFO level."""
        logger.info(
            "Scene: %d objects, %d materials",
            self.get_object_count(),
            self.get_material_count(),
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.objects.append(
                {
                    "type": "sphere",
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        config.sky = {"horizon": list(self.sky[0]), "zenith": list(self.sky[1])}
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first, objects refer to them by ID
        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type == "lambertian":
                albedo = _triple(mat_config.get("albedo", [0.5, 0.5, 0.5]), "albedo")
                self.add_lambertian_material(albedo)
            elif mat_type == "metal":
                albedo = _triple(mat_config.get("albedo", [0.8, 0.8, 0.8]), "albedo")
                fuzz = float(mat_config.get("fuzz", 0.0))
                self.add_metal_material(albedo, fuzz)
            elif mat_type == "dielectric":
                refractive_index = float(mat_config.get("refractive_index", 1.5))
                self.add_dielectric_material(refractive_index)
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for obj_config in config.objects:
            obj_type = str(obj_config.get("type", "sphere")).lower()
            if obj_type != "sphere":
                raise ValueError(f"Unknown object type: {obj_type}")
            center = _triple(obj_config.get("center", [0.0, 0.0, 0.0]), "center")
            radius = float(obj_config.get("radius", 1.0))
            material_id = int(obj_config.get("material_id", 0))
            self.add_sphere(center, radius, material_id)

        horizon = _triple(config.sky.get("horizon", DEFAULT_SKY_HORIZON), "horizon")
        zenith = _triple(config.sky.get("zenith", DEFAULT_SKY_ZENITH), "zenith")
        self.set_sky(horizon, zenith)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {
            "materials": config.materials,
            "objects": config.objects,
            "sky": config.sky,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials', 'objects' and optional 'sky' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            objects=data.get("objects", []),
        )
        if "sky" in data:
            config.sky = data["sky"]
        self.from_config(config)
