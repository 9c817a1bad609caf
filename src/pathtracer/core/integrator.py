"""Path tracing integrator for Monte Carlo light transport.

This module implements the per-pixel estimator and the rendering kernels.

A path starts at the camera and bounces through the scene. Every bounce
multiplies the path's throughput by the attenuation of the surface it hit. A
path that escapes the scene picks up the sky color, scaled by its
throughput. A path that is absorbed, or that is still bouncing after
max_depth segments, contributes black.

Each pixel averages ``samples`` jittered paths and takes the square root of
the mean (gamma 2). The result is stored both as floats and as 8-bit channel
values.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Depth-bounded iterative bounce loop
    - Per-sample generator streams for seeded, thread-independent sampling
    - Thin-lens depth of field through the camera
    - Band (tile) kernels used by the tiled render driver

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from src.pathtracer.core.integrator import Raytracer
    >>> from src.pathtracer.scene.presets import create_basic_scene, default_camera
    >>> from src.pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> raytracer = Raytracer(width=320, height=180, samples=8)
    >>> world = create_basic_scene(np.random.default_rng(0))
    >>> setup_camera(default_camera(raytracer.aspect_ratio))
    >>> raytracer.get_pixel(0.5, 0.5, seed=1)
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.thin_lens import get_lens_radius, get_ray
from src.pathtracer.core.ray import color_to_rgb8, make_ray, real, vec3
from src.pathtracer.core.sampler import init_rng, random_float, random_in_unit_disk
from src.pathtracer.materials.dielectric import (
    get_dielectric_refractive_index,
    scatter_dielectric,
)
from src.pathtracer.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from src.pathtracer.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from src.pathtracer.scene.intersection import intersect_scene, sky_color
from src.pathtracer.scene.world import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

DEFAULT_SAMPLES = 32
DEFAULT_MAX_DEPTH = 24

# Closest accepted hit distance; keeps a scattered ray from re-hitting the
# surface it starts on (shadow acne)
T_MIN = 0.001
T_MAX = tm.inf

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Gamma-corrected pixel colors, indexed (i, j) with j = 0 at the bottom row
_color_buffer = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Quantized 8-bit channel values of the same pixels
_rgb8_buffer = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def _check_image_size(width: int, height: int) -> None:
    if width < 1 or height < 1:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.
    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT
    to avoid Taichi kernel recompilation issues.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum size.
    """
    _check_image_size(width, height)

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _rgb8_buffer.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image_numpy() -> np.ndarray:
    """Get the rendered (gamma-corrected) image as a NumPy array.

    Returns:
        float32 array of shape (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]
    # (width, height, 3) -> (height, width, 3), then bottom-up rows -> top-down
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.float32)


def get_image_uint8() -> np.ndarray:
    """Get the quantized image as a NumPy array.

    Returns:
        uint8 array of shape (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()

    image = _rgb8_buffer.to_numpy()[:width, :height, :]
    image = np.flipud(np.transpose(image, (1, 0, 2)))
    return np.ascontiguousarray(image, dtype=np.uint8)


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.u32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing against the ray).
        front_face: 1 if hit front face, 0 if back face.
        rng: The path's generator state.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter, rng).
        An unknown material ID absorbs the path.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    next_rng = rng

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter, next_rng = scatter_lambertian(
            albedo, normal, rng
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter, next_rng = scatter_metal(
            albedo, fuzz, incident_direction, normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        refractive_index = get_dielectric_refractive_index(type_index)
        scattered_direction, attenuation, did_scatter, next_rng = scatter_dielectric(
            refractive_index, incident_direction, normal, front_face, rng
        )

    return scattered_direction, attenuation, did_scatter, next_rng


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(origin: vec3, direction: vec3, max_depth: ti.i32, rng: ti.u32):
    """Estimate the light arriving along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        max_depth: Maximum number of path segments. 0 always yields black.
        rng: The path's generator state.

    Returns:
        A tuple of (color, rng) where color is the linear-light estimate.
    """
    ray_origin = origin
    ray_direction = direction
    state = rng

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(make_ray(ray_origin, ray_direction), T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter, next_state = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, state
                )
                state = next_state

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color, state


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace negative, NaN and Inf channels with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result[c] = 0.0
    return result


@ti.func
def sample_pixel(
    u: real,
    v: real,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    pixel_index: ti.i32,
) -> vec3:
    """Average jittered path estimates around an image coordinate.

    Sample k jitters (u, v) by up to one pixel's width and height, traces a
    camera ray through the jittered point and draws all of its randomness
    from the stream init_rng(seed, pixel_index, k).

    Returns:
        The gamma-corrected (square root of the mean) pixel color.
    """
    inv_width = 1.0 / ti.cast(width, real)
    inv_height = 1.0 / ti.cast(height, real)

    total = vec3(0.0, 0.0, 0.0)
    for k in range(samples):
        state = init_rng(seed, pixel_index, k)
        jitter_u, state = random_float(state)
        jitter_v, state = random_float(state)

        disk_point = vec3(0.0, 0.0, 0.0)
        if get_lens_radius() > 0.0:
            disk_point, state = random_in_unit_disk(state)

        ray = get_ray(u + jitter_u * inv_width, v + jitter_v * inv_height, disk_point)
        color, state = trace_path(ray.origin, ray.direction, max_depth, state)
        total += _sanitize(color)

    return ti.sqrt(total / ti.cast(samples, real))


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_count: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
):
    """Render a band of full rows into the render target.

    The outermost loop is parallelized across the CPU worker pool; each
    pixel is written by exactly one iteration.
    """
    for i, dj in ti.ndrange(width, row_count):
        j = row_start + dj
        u = ti.cast(i, real) / ti.cast(width, real)
        v = ti.cast(j, real) / ti.cast(height, real)

        color = sample_pixel(u, v, width, height, samples, max_depth, seed, j * width + i)

        _color_buffer[i, j] = color
        _rgb8_buffer[i, j] = color_to_rgb8(color)


def render_rows(
    row_start: int,
    row_count: int,
    samples: int,
    max_depth: int,
    seed: int,
) -> None:
    """Render rows [row_start, row_start + row_count) of the render target.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the band does not lie inside the image.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    if row_start < 0 or row_count < 0 or row_start + row_count > height:
        raise ValueError(
            f"Rows [{row_start}, {row_start + row_count}) outside image of height {height}"
        )
    _render_rows(row_start, row_count, width, height, samples, max_depth, seed)


@ti.kernel
def _get_pixel_kernel(
    u: real,
    v: real,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    seed: ti.i32,
    pixel_index: ti.i32,
) -> vec3:
    return sample_pixel(u, v, width, height, samples, max_depth, seed, pixel_index)


@ti.kernel
def _ray_color_kernel(
    ox: real,
    oy: real,
    oz: real,
    dx: real,
    dy: real,
    dz: real,
    max_depth: ti.i32,
    seed: ti.i32,
    sample_index: ti.i32,
) -> vec3:
    state = init_rng(seed, 0, sample_index)
    color, _ = trace_path(vec3(ox, oy, oz), vec3(dx, dy, dz), max_depth, state)
    return color


# =============================================================================
# Public Rendering API
# =============================================================================


@dataclass
class Raytracer:
    """Screen and sampling settings of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Camera samples averaged per pixel.
        max_depth: Maximum number of path segments per sample.
    """

    width: int
    height: int
    samples: int = DEFAULT_SAMPLES
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        _check_image_size(self.width, self.height)
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    def get_pixel(
        self,
        u: float,
        v: float,
        seed: int,
        pixel_index: int = 0,
    ) -> tuple[float, float, float]:
        """Estimate the gamma-corrected color around an image coordinate.

        Uses the current scene and camera. Not quantized.

        Args:
            u: Horizontal image coordinate (0 = left edge).
            v: Vertical image coordinate (0 = bottom edge).
            seed: Render seed.
            pixel_index: Selects the generator streams, as in a full render.

        Returns:
            Tuple of (R, G, B).
        """
        color = _get_pixel_kernel(
            u, v, self.width, self.height, self.samples, self.max_depth, seed, pixel_index
        )
        return (float(color[0]), float(color[1]), float(color[2]))

    def ray_color(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        seed: int,
        sample_index: int = 0,
    ) -> tuple[float, float, float]:
        """Estimate the linear light arriving along one explicit ray.

        Returns:
            Tuple of (R, G, B), neither sanitized nor gamma corrected.
        """
        color = _ray_color_kernel(
            origin[0],
            origin[1],
            origin[2],
            direction[0],
            direction[1],
            direction[2],
            self.max_depth,
            seed,
            sample_index,
        )
        return (float(color[0]), float(color[1]), float(color[2]))
