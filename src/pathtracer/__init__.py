"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres with diffuse, metal and glass
materials under a sky gradient, with:
- A depth-bounded path tracing integrator with gamma-2 output
- A thin-lens camera for depth of field
- A tiled render driver running on Taichi's CPU worker pool
- Seeded, per-sample random streams for reproducible renders

Subpackages:
    core: Vector utilities, sampling, the integrator and the tiled driver
    geometry: Sphere primitive and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Object storage, the World builder and demonstration scenes
    camera: Thin-lens camera with ray generation
    output: Image quantization and PNG export

Call src.pathtracer.backend.init_backend() before importing the
subpackages; they declare Taichi fields at import time.
"""

__version__ = "0.1.0"
