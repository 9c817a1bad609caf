"""Camera module for view and ray generation.

Components:
    thin_lens: Perspective camera with an optional thin lens

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    CameraLens,
    get_camera_info,
    get_lens_radius,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "CameraLens",
    "setup_camera",
    "get_ray",
    "get_lens_radius",
    "get_camera_info",
]
