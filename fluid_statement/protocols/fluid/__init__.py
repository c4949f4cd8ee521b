from .adapter import FluidAdapter
from .resolver import FluidResolver

__all__ = ["FluidAdapter", "FluidResolver"]
