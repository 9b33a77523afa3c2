"""Parts catalog backend.

Catalog query and caching layer for products, assemblies ("conjuntos"),
vehicle applications and benchmarks, with a thin FastAPI surface.
"""

__version__ = "0.1.0"
