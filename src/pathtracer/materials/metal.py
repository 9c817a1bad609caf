"""Metal (specular reflective) material implementation.

Metals reflect the incoming ray about the surface normal,

    R = I - 2(I . N)N

and perturb the mirror direction by a random offset inside a ball of radius
``fuzz`` to model surface roughness. With fuzz = 0 no random offset is
applied at all and the reflection is an exact mirror.

Fuzzed reflections that end up pointing below the surface are NOT absorbed;
they are handed back to the integrator unchanged.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, rng
    >>> # )
"""

import taichi as ti

from src.pathtracer.core.ray import normalize, real, reflect, vec3
from src.pathtracer.core.sampler import random_in_unit_sphere
from src.pathtracer.materials.lambertian import validate_albedo


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: real,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.u32,
):
    """Compute the scattered ray direction for a metal surface.

    Args:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Perturbation radius in [0, 1]. 0 = perfect mirror.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, oriented against the incoming ray.
        rng: The path's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: reflect(normalize(incident), normal) plus the
          fuzz offset (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1.
        - rng: The advanced generator state (unchanged when fuzz == 0).
    """
    reflected = reflect(normalize(incident_direction), normal)

    next_rng = rng
    scattered_direction = reflected
    if fuzz > 0.0:
        offset, next_rng = random_in_unit_sphere(rng)
        scattered_direction = reflected + fuzz * offset

    return scattered_direction, albedo, 1, next_rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=real, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=real, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: The surface roughness in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is outside [0, 1].
    """
    validate_albedo(albedo)

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(
            f"Fuzz = {fuzz} is outside [0, 1]. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> real:
    """Get the fuzz radius for a metal material by index."""
    return metal_fuzzes[material_idx]
