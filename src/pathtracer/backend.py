"""Taichi backend initialisation.

Modules of this package declare Taichi fields at import time, so
init_backend() has to run before any of them is imported.

Example:
    >>> from src.pathtracer.backend import init_backend
    >>> init_backend("cpu", num_threads=8)
    >>> from src.pathtracer.core.driver import TiledRenderer
"""

import logging

import taichi as ti

from src.pathtracer.core.ray import real

logger = logging.getLogger(__name__)

_ARCHS = {
    "cpu": ti.cpu,
    "gpu": ti.gpu,
    "cuda": ti.cuda,
    "vulkan": ti.vulkan,
}


def init_backend(arch: str = "cpu", num_threads: int | None = None, debug: bool = False) -> None:
    """Initialize Taichi.

    Args:
        arch: Backend name: cpu, gpu, cuda or vulkan. The backend must support f64.
        num_threads: Size of the CPU worker pool. None lets Taichi use one
            thread per core.
        debug: Enable Taichi's bounds checking.

    Raises:
        ValueError: If the backend name is unknown or num_threads is not positive.
    """
    if arch not in _ARCHS:
        raise ValueError(f"Unknown backend '{arch}', expected one of {sorted(_ARCHS)}")

    kwargs: dict[str, object] = {"arch": _ARCHS[arch], "default_fp": real, "debug": debug}
    if num_threads is not None:
        if num_threads < 1:
            raise ValueError(f"num_threads must be at least 1, got {num_threads}")
        kwargs["cpu_max_num_threads"] = num_threads

    ti.init(**kwargs)
    logger.info(
        "Taichi initialized (arch=%s, threads=%s, debug=%s)",
        arch,
        num_threads if num_threads is not None else "auto",
        debug,
    )
