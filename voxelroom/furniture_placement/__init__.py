from .geometry import Primitive, build_geometry, local_bounds
from .resolver import ResolverConfig, remove_item, resolve, zone_anchor, zone_for

__all__ = [
    "Primitive",
    "build_geometry",
    "local_bounds",
    "ResolverConfig",
    "remove_item",
    "resolve",
    "zone_anchor",
    "zone_for",
]
