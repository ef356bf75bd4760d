"""Fixed furniture layouts used when image analysis cannot produce one.

- FALLBACK_FURNITURE: the 15-piece home-office/living layout returned by the
  analyze-room endpoint whenever the model call or its output fails. Treat it
  as a versioned constant; tests compare against it verbatim.
- SAMPLE_ROOM: the 3-piece desk setup shown when the browser cannot reach the
  service at all.
"""

from ..models.schemas import FurnitureDescriptor, NormalizedDimensions, ZoneLabel

FALLBACK_FURNITURE_VERSION = 1


def _item(type_: str, x: str, z: str, size: str, color: str, w: float, h: float, d: float) -> FurnitureDescriptor:
    return FurnitureDescriptor(
        type=type_,
        position=ZoneLabel(x=x, z=z),
        size=size,
        color=color,
        dimensions=NormalizedDimensions(width=w, height=h, depth=d),
    )


FALLBACK_FURNITURE: list[FurnitureDescriptor] = [
    _item("desk", "center", "back", "large", "#FFFFFF", 0.4, 0.15, 0.3),
    _item("monitor", "center", "back", "medium", "#2C3E50", 0.2, 0.15, 0.05),
    _item("keyboard", "center", "back", "small", "#34495E", 0.15, 0.02, 0.05),
    _item("chair", "center", "middle", "medium", "#FF6B9D", 0.15, 0.2, 0.15),
    _item("bed", "left", "back", "large", "#A8D8EA", 0.35, 0.12, 0.45),
    _item("side_table", "left", "middle", "small", "#C19A6B", 0.1, 0.1, 0.1),
    _item("lamp", "left", "middle", "small", "#F4D03F", 0.06, 0.18, 0.06),
    _item("bookshelf", "right", "back", "large", "#8B5A2B", 0.2, 0.35, 0.08),
    _item("plant", "right", "front", "small", "#27AE60", 0.08, 0.15, 0.08),
    _item("sofa", "right", "middle", "large", "#7F8C8D", 0.35, 0.12, 0.15),
    _item("rug", "center", "middle", "large", "#D7BDE2", 0.4, 0.01, 0.3),
    _item("shelf", "left", "front", "medium", "#BDC3C7", 0.15, 0.2, 0.06),
    _item("picture_frame", "right", "back", "small", "#E67E22", 0.1, 0.12, 0.02),
    _item("curtain", "left", "back", "medium", "#F5CBA7", 0.2, 0.3, 0.02),
    _item("plant", "center", "front", "medium", "#1E8449", 0.1, 0.2, 0.1),
]

SAMPLE_ROOM: list[FurnitureDescriptor] = [
    _item("desk", "center", "back", "large", "#FFFFFF", 0.4, 0.15, 0.3),
    _item("chair", "center", "middle", "medium", "#FF6B9D", 0.15, 0.2, 0.15),
    _item("monitor", "center", "back", "medium", "#2C3E50", 0.2, 0.15, 0.05),
]
