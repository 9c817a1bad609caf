"""Thin-lens camera model for perspective ray generation with depth of field.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- An optional thin lens (aperture and focus distance) for depth of field

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at the focus distance in front of the camera (unit distance
without a lens). With a lens, each ray starts at a random point of the lens
disk and aims at the same viewport point, so only geometry at the focus
distance stays sharp.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.camera.thin_lens import Camera, CameraLens, setup_camera
    >>>
    >>> camera = Camera(
    ...     lookfrom=(13.0, 4.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=10.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     lens=CameraLens.from_distance(0.1, (13.0, 4.0, 3.0), (0.0, 0.0, 0.0)),
    ... )
    >>> setup_camera(camera)
    >>> # In a kernel: ray = get_ray(u, v, disk_point)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from src.pathtracer.core.ray import Ray, make_ray, normalize, real, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class CameraLens:
    """Thin lens parameters.

    Attributes:
        aperture: Lens diameter. Larger values blur out-of-focus geometry more.
        focus_dist: Distance from the camera to the plane in perfect focus.
    """

    aperture: float
    focus_dist: float

    def __post_init__(self) -> None:
        if self.aperture < 0.0:
            raise ValueError(f"Aperture must be non-negative, got {self.aperture}")
        if not self.focus_dist > 0.0:
            raise ValueError(f"Focus distance must be positive, got {self.focus_dist}")

    @classmethod
    def from_distance(
        cls,
        aperture: float,
        lookfrom: tuple[float, float, float],
        lookat: tuple[float, float, float],
    ) -> "CameraLens":
        """Create a lens focused on the look-at point."""
        focus_dist = float(np.linalg.norm(np.subtract(lookfrom, lookat)))
        return cls(aperture=aperture, focus_dist=focus_dist)


@dataclass
class Camera:
    """Configuration for a perspective camera with an optional thin lens.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees.
        aspect_ratio: Width divided by height of the output image.
        lens: Optional thin lens. None gives a pinhole camera.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float
    lens: CameraLens | None = None

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"Vertical field of view must be in (0, 180), got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"Aspect ratio must be positive, got {self.aspect_ratio}")
        if np.allclose(self.lookfrom, self.lookat):
            raise ValueError("lookfrom and lookat must be different points")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=real, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=real, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=real, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=real, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation, scaled to the focus distance
_viewport_horizontal = ti.Vector.field(3, dtype=real, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=real, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=real, shape=())

# Half the aperture; 0 disables the lens
_lens_radius = ti.field(dtype=real, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry
    from the provided camera parameters. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If vup is parallel to the viewing direction.
    """
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u_norm = np.linalg.norm(u)
    if u_norm < 1e-12:
        raise ValueError("vup must not be parallel to the viewing direction")
    u = u / u_norm

    # v points up in the camera's frame
    v = np.cross(w, u)

    focus_dist = 1.0
    lens_radius = 0.0
    if camera.lens is not None:
        focus_dist = camera.lens.focus_dist
        lens_radius = camera.lens.aperture / 2.0

    horizontal = focus_dist * viewport_width * u
    vertical = focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = lens_radius


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: real, t: real, disk_point: vec3) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge
    Values slightly outside [0, 1] are accepted.

    Args:
        s: Horizontal image coordinate.
        t: Vertical image coordinate.
        disk_point: A point of the unit disk (z = 0) choosing where on the
            lens the ray starts. Ignored when the camera has no lens.

    Returns:
        A Ray with a unit-length direction.
    """
    rd = _lens_radius[None] * disk_point
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None]
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    direction = normalize(target - origin - offset)

    return make_ray(origin + offset, direction)


@ti.func
def get_lens_radius() -> real:
    """Get the lens radius (0 for a pinhole camera)."""
    return _lens_radius[None]



# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _tuple(field) -> tuple[float, float, float]:
        value = field[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "origin": _tuple(_camera_origin),
        "u": _tuple(_camera_u),
        "v": _tuple(_camera_v),
        "w": _tuple(_camera_w),
        "horizontal": _tuple(_viewport_horizontal),
        "vertical": _tuple(_viewport_vertical),
        "lower_left": _tuple(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
