"""Random number generation for Monte Carlo sampling.

Every camera sample owns a private 32-bit generator state, derived by hashing
the render seed, the pixel index and the sample index. Draws take the current
state and return ``(value, new_state)``, so the state is threaded explicitly
through the integrator and nothing is shared between the worker threads that
run a kernel's parallel loop.

Because the state depends only on (seed, pixel, sample), rendering the same
pixel with the same seed reproduces bit-identical results, while different
seeds give independent images.

Example:
    >>> @ti.kernel
    ... def draw(seed: ti.i32) -> real:
    ...     rng = init_rng(seed, 0, 0)
    ...     x, rng = random_float(rng)
    ...     return x
"""

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import real, vec3

# Bounded attempts for rejection sampling (kernels have no unbounded loops).
# The acceptance rate is >52% for the ball and >78% for the disk, so the
# bound is never reached in practice.
MAX_REJECTION_ATTEMPTS = 64

# 2^-24: maps the top 24 bits of a u32 onto [0, 1) exactly.
_INV_2_POW_24 = 1.0 / 16777216.0


@ti.func
def _u32(x) -> ti.u32:
    return ti.cast(x, ti.u32)


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Scramble a 32-bit key (Thomas Wang's integer hash)."""
    h = key
    h = (h ^ _u32(61)) ^ (h >> 16)
    h = h * _u32(9)
    h = h ^ (h >> 4)
    h = h * _u32(668265261)
    h = h ^ (h >> 15)
    return h


@ti.func
def _xorshift32(state: ti.u32) -> ti.u32:
    x = state
    x = x ^ (x << 13)
    x = x ^ (x >> 17)
    x = x ^ (x << 5)
    return x


@ti.func
def init_rng(seed: ti.i32, pixel_index: ti.i32, sample_index: ti.i32) -> ti.u32:
    """Derive the generator state of one camera sample.

    Args:
        seed: The render seed.
        pixel_index: Linear index of the pixel being sampled.
        sample_index: Index of the sample within the pixel.

    Returns:
        A non-zero generator state.
    """
    state = wang_hash(_u32(seed) ^ wang_hash(_u32(pixel_index) ^ wang_hash(_u32(sample_index))))
    if state == _u32(0):
        # xorshift has a fixed point at zero
        state = _u32(1)
    return state


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple of (value, new_state).
    """
    next_state = _xorshift32(state)
    value = ti.cast(next_state >> 8, real) * _INV_2_POW_24
    return value, next_state


@ti.func
def random_range(state: ti.u32, lo: real, hi: real):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple of (value, new_state).
    """
    x, next_state = random_float(state)
    return lo + (hi - lo) * x, next_state


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a direction uniformly distributed on the unit sphere.

    Picks z uniformly in [-1, 1) and an azimuth uniformly in [0, 2*pi), which
    by Archimedes' hat-box theorem is uniform over the sphere's surface.

    Returns:
        A tuple of (unit_vector, new_state).
    """
    a, s1 = random_range(state, 0.0, 2.0 * tm.pi)
    z, s2 = random_range(s1, -1.0, 1.0)
    r = ti.sqrt(tm.max(1.0 - z * z, 0.0))
    return vec3(r * ti.cos(a), r * ti.sin(a), z), s2


@ti.func
def random_in_unit_sphere(state: ti.u32):
    """Draw a point uniformly distributed inside the unit ball.

    Uses rejection sampling from the enclosing cube.

    Returns:
        A tuple of (point, new_state) with |point| < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x, s1 = random_range(s, -1.0, 1.0)
            y, s2 = random_range(s1, -1.0, 1.0)
            z, s3 = random_range(s2, -1.0, 1.0)
            s = s3
            candidate = vec3(x, y, z)
            if tm.dot(candidate, candidate) < 1.0:
                p = candidate
                found = 1
    return p, s


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly distributed inside the unit disk (z = 0).

    Used to sample the camera lens for depth of field.

    Returns:
        A tuple of (point, new_state) with point.z == 0 and |point| < 1.
    """
    s = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x, s1 = random_range(s, -1.0, 1.0)
            y, s2 = random_range(s1, -1.0, 1.0)
            s = s2
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = 1
    return p, s
