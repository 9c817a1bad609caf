"""Dielectric (glass/water) material implementation.

This module implements transparent materials that either reflect or refract
every incoming ray.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when eta * sin(theta) > 1

The choice between reflection and refraction is stochastic: the ray reflects
with probability equal to the Schlick reflectance. A medium whose refractive
index is 1.0 has zero reflectance and lets every ray through undeviated.

Glass absorbs nothing, so the attenuation is always white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter, rng = scatter_dielectric(
    >>> #     refractive_index, incident_dir, normal, front_face, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import (
    normalize,
    real,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from src.pathtracer.core.sampler import random_float


@ti.func
def refraction_ratio(refractive_index: real, front_face: ti.i32) -> real:
    """Ratio of refractive indices for a ray crossing the surface.

    Args:
        refractive_index: Index of refraction of the material.
        front_face: 1 if the ray enters the material from outside,
            0 if it is leaving the material.

    Returns:
        1 / refractive_index when entering, refractive_index when leaving.
    """
    eta = refractive_index
    if front_face == 1:
        eta = 1.0 / refractive_index
    return eta


@ti.func
def cannot_refract(eta: real, cos_theta: real) -> ti.i32:
    """Check for total internal reflection.

    Returns:
        1 if eta * sin(theta) > 1, 0 otherwise.
    """
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    return eta * sin_theta > 1.0


@ti.func
def scatter_dielectric(
    refractive_index: real,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if it hits the surface from inside the material.
        rng: The path's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White; dielectrics absorb nothing.
        - did_scatter: Always 1.
        - rng: The advanced generator state.
    """
    attenuation = vec3(1.0, 1.0, 1.0)

    eta = refraction_ratio(refractive_index, front_face)
    unit_direction = normalize(incident_direction)
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)

    # The draw happens unconditionally so the generator advances the same
    # way whichever branch is taken
    u, next_rng = random_float(rng)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract(eta, cos_theta) or u < schlick_reflectance(cos_theta, eta):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, eta)

    return scattered_direction, attenuation, 1, next_rng


@ti.func
def fresnel_reflectance(
    refractive_index: real,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> real:
    """Compute the Schlick reflectance for an incoming direction.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray hits the outside of the surface.

    Returns:
        The reflection probability in [0, 1].
    """
    eta = refraction_ratio(refractive_index, front_face)
    cos_theta = tm.min(tm.dot(-normalize(incident_direction), normal), 1.0)
    return schlick_reflectance(cos_theta, eta)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_indices = ti.field(dtype=real, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: Index of refraction. Default is 1.5 (typical glass).
            Must be positive. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    if refractive_index <= 0.0:
        raise ValueError(
            f"Refractive index = {refractive_index} must be greater than 0."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_refractive_index(material_idx: ti.i32) -> real:
    """Get the refractive index for a dielectric material by index."""
    return dielectric_indices[material_idx]
