"""Lambertian (ideal diffuse) material implementation.

A Lambertian surface scatters incoming light into the hemisphere around the
surface normal. The scattered direction is the normal plus a uniformly
distributed unit vector, which yields a cosine-weighted distribution of
directions without building a tangent frame.

The surface always scatters; the attenuation is its albedo.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_lambertian(
    >>> #     albedo, normal, rng
    >>> # )
"""

import taichi as ti

from src.pathtracer.core.ray import near_zero, real, vec3
from src.pathtracer.core.sampler import random_unit_vector


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.u32):
    """Compute a scattered ray direction for a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The unit surface normal, oriented against the incoming ray.
        rng: The path's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: normal + random unit vector (not normalized).
        - attenuation: The albedo.
        - did_scatter: Always 1; Lambertian surfaces never absorb.
        - rng: The advanced generator state.
    """
    offset, next_rng = random_unit_vector(rng)
    scattered_direction = normal + offset

    # The random vector can cancel the normal almost exactly
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo, 1, next_rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=real, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that an albedo is an RGB triple with components in [0, 1].

    Raises:
        ValueError: If the albedo does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a Lambertian material by index."""
    return lambertian_albedos[material_idx]
