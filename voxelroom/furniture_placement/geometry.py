"""Voxel geometry for furniture types.

Each furniture type is a composition of axis-aligned boxes and cylinders in
the item's local frame:
- Origin at the footprint center, floor level.
- X = width, Y = up, Z = depth (positive Z faces the viewer).
- Units: scene units (normalized dimension × room scale).

Only the extents matter here; colors and materials belong to the renderer.
"""

from dataclasses import dataclass
from math import cos, pi, sin

from ..models.schemas import NormalizedDimensions

# Scene units per normalized room width
ROOM_SCALE = 10.0

LEG_SIZE = 0.2
THIN_LEG_SIZE = 0.15
LEAF_SIZE = 0.3
POLE_RADIUS = 0.1


@dataclass(frozen=True)
class Primitive:
    """An axis-aligned solid, described by its center and half extents."""
    kind: str  # "box" or "cylinder"
    center: tuple[float, float, float]
    half: tuple[float, float, float]

    @property
    def min_corner(self) -> tuple[float, float, float]:
        return tuple(c - h for c, h in zip(self.center, self.half))

    @property
    def max_corner(self) -> tuple[float, float, float]:
        return tuple(c + h for c, h in zip(self.center, self.half))


def box(width: float, height: float, depth: float, x: float = 0, y: float = 0, z: float = 0) -> Primitive:
    return Primitive("box", (x, y, z), (width / 2, height / 2, depth / 2))


def cylinder(radius_top: float, radius_bottom: float, height: float, y: float = 0) -> Primitive:
    r = max(radius_top, radius_bottom)
    return Primitive("cylinder", (0.0, y, 0.0), (r, height / 2, r))


def _corner_legs(size: float, height: float, spread_x: float, spread_z: float, y: float) -> list[Primitive]:
    return [
        box(size, height, size, x=sx * spread_x, y=y, z=sz * spread_z)
        for sx in (-1, 1)
        for sz in (-1, 1)
    ]


def build_geometry(item_type: str, dims: NormalizedDimensions, scale: float = ROOM_SCALE) -> list[Primitive]:
    """Return the primitives making up one furniture item of the given type.

    Unknown types get a single box of the full dimensions.
    """
    w = dims.width * scale
    h = dims.height * scale
    d = dims.depth * scale

    if item_type == "desk":
        return [
            box(w, h * 0.2, d, y=h * 0.5),
            *_corner_legs(LEG_SIZE, h * 0.8, w * 0.4, d * 0.4, y=h * 0.4),
        ]

    if item_type == "chair":
        return [
            box(w * 0.8, h * 0.15, d * 0.8, y=h * 0.4),
            box(w * 0.8, h * 0.5, d * 0.1, y=h * 0.65, z=-d * 0.35),
            *_corner_legs(THIN_LEG_SIZE, h * 0.4, w * 0.3, d * 0.3, y=h * 0.2),
        ]

    if item_type == "bed":
        return [
            box(w, h * 0.3, d, y=h * 0.5),
            box(w, h * 0.35, d, y=h * 0.175),
        ]

    if item_type == "monitor":
        return [
            box(w, h * 0.7, d * 0.3, y=h * 0.6),
            box(w * 0.9, h * 0.6, 0.05, y=h * 0.6, z=d * 0.16),
            box(0.3, h * 0.3, 0.3, y=h * 0.15),
        ]

    if item_type == "keyboard":
        return [
            box(w, h, d, y=h * 0.5),
            box(w * 0.9, 0.1, d * 0.9, y=h * 0.55),
        ]

    if item_type == "plant":
        radius = w * 0.3
        leaves = [
            box(LEAF_SIZE, LEAF_SIZE, LEAF_SIZE, x=cos(2 * pi * i / 5) * radius, y=h * 0.5 + 0.25, z=sin(2 * pi * i / 5) * radius)
            for i in range(5)
        ]
        return [cylinder(w * 0.4, w * 0.3, h * 0.3, y=h * 0.15), *leaves]

    if item_type == "lamp":
        return [
            cylinder(w * 0.5, w * 0.6, h * 0.15, y=h * 0.075),
            cylinder(POLE_RADIUS, POLE_RADIUS, h * 0.6, y=h * 0.45),
            cylinder(w * 0.8, w * 0.5, h * 0.25, y=h * 0.875),
        ]

    if item_type == "picture_frame":
        return [
            box(w, h, d, y=h * 0.5),
            box(w * 0.8, h * 0.8, 0.05, y=h * 0.5, z=d * 0.51),
        ]

    if item_type == "sofa":
        return [
            box(w, h * 0.25, d * 0.7, y=h * 0.125),
            box(w, h * 0.5, d * 0.15, y=h * 0.5, z=-d * 0.27),
            box(w * 0.1, h * 0.4, d * 0.7, x=-w * 0.45, y=h * 0.2),
            box(w * 0.1, h * 0.4, d * 0.7, x=w * 0.45, y=h * 0.2),
        ]

    if item_type == "bookshelf":
        dividers = [box(w * 0.95, 0.1, d * 0.9, y=(h / 4) * i) for i in range(1, 4)]
        return [box(w, h, d, y=h * 0.5), *dividers]

    if item_type == "side_table":
        return [
            box(w, h * 0.15, d, y=h * 0.9),
            *_corner_legs(THIN_LEG_SIZE, h * 0.85, w * 0.4, d * 0.4, y=h * 0.425),
        ]

    # shelf, rug, curtain and anything unrecognised
    return [box(w, h, d, y=h * 0.5)]


def local_bounds(parts: list[Primitive]) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Axis-aligned bounding box (min, max) of a set of primitives."""
    if not parts:
        return (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)
    mins = [p.min_corner for p in parts]
    maxs = [p.max_corner for p in parts]
    return (
        (min(m[0] for m in mins), min(m[1] for m in mins), min(m[2] for m in mins)),
        (max(m[0] for m in maxs), max(m[1] for m in maxs), max(m[2] for m in maxs)),
    )
