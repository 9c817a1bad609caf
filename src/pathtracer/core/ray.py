"""Ray data structure and vector utilities for Taichi path tracing.

This module provides the fundamental Ray dataclass and the vector algebra the
rest of the renderer needs. Vectors are ``taichi.math.vec3`` values and are
used interchangeably as points, directions and linear RGB colors. All
operations are designed to be called from within Taichi kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.ray import make_ray, ray_at, vec3
    >>> @ti.kernel
    ... def probe() -> vec3:
    ...     ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))
    ...     return ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Scalar type of all geometry and color math. Single precision misplaces hit
# points on the radius-1000 ground sphere by more than T_MIN. ti.init() is
# called with default_fp=real so that literals match (see init_backend).
real = ti.f64

# 3D vector of reals. tm.vec3 is always f32, whatever default_fp is.
vec3 = ti.types.vector(3, real)

# Scale used when mapping a [0, 1] channel to an 8-bit value. Must stay
# 255.999 so that 1.0 maps to 255 and every channel is truncated, not rounded.
RGB8_SCALE = 255.999


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; camera rays are normalized on construction.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: real) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> real:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def length(v: vec3) -> real:
    """Compute the length (magnitude) of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The result is undefined (NaN components) for a zero-length vector;
    callers must only pass non-degenerate directions and normals.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> real:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def lerp(a: vec3, b: vec3, t: real) -> vec3:
    """Linearly interpolate between two vectors.

    Args:
        a: The value returned at t = 0.
        b: The value returned at t = 1.
        t: Interpolation parameter.

    Returns:
        a * (1 - t) + b * t.
    """
    return a * (1.0 - t) + b * t


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = 1e-8
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes v - 2 * dot(v, n) * n. The normal must be unit length; the
    magnitude of the incident vector is preserved.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_direction: vec3, normal: vec3, eta: real) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into a component perpendicular to the normal,
    eta * (d + cos_theta * n), and a parallel component of length
    sqrt(|1 - eta^2 * (1 - cos_theta^2)|) along -n. The absolute value keeps
    the result finite at grazing angles; callers detect total internal
    reflection themselves before refracting.

    Args:
        unit_direction: The incoming direction (unit length).
        normal: The surface normal, oriented against the incoming ray.
        eta: Ratio of refractive indices (incident side / transmitted side).

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.min(tm.dot(-unit_direction, normal), 1.0)
    perpendicular = eta * (unit_direction + cos_theta * normal)
    parallel = -ti.sqrt(ti.abs(1.0 - eta * eta * (1.0 - cos_theta * cos_theta))) * normal
    return perpendicular + parallel


@ti.func
def schlick_reflectance(cosine: real, eta: real) -> real:
    """Approximate Fresnel reflectance using Schlick's formula.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        eta: Ratio of refractive indices across the interface.

    Returns:
        r0 + (1 - r0) * (1 - cosine)^5 with r0 = ((1 - eta) / (1 + eta))^2,
        except for an index-matched interface (eta == 1, so r0 == 0), which
        reflects nothing at any angle.
    """
    r0 = (1.0 - eta) / (1.0 + eta)
    r0 = r0 * r0
    reflectance = 0.0
    if r0 > 0.0:
        reflectance = r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
    return reflectance


@ti.func
def color_to_rgb8(color: vec3) -> tm.ivec3:
    """Convert a [0, 1] color to 8-bit channel values.

    Each channel is clamped to [0, 1], scaled by 255.999 and truncated,
    independently per channel.

    Args:
        color: The display-referred color (already gamma corrected).

    Returns:
        Integer channel values in [0, 255].
    """
    clamped = tm.clamp(color, 0.0, 1.0)
    return ti.cast(clamped * RGB8_SCALE, ti.i32)
