"""Field coupling tools for data shared on two-dimensional triangle meshes."""

__version__ = "0.1.0"