"""Resolve zone-labelled furniture into concrete scene coordinates.

The floor is a 3x3 grid of zones. Each zone has an anchor point; items that
share a zone are spread along X around that anchor. Every item is then lifted
so the bottom of its bounding box sits just above the floor plane.

Scene coordinates:
- Origin at the room center, floor level.
- X = left (-) to right (+)
- Z = back (-) to front (+)
- Y = up
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.schemas import (
    FurnitureDescriptor,
    GroupOffset,
    PlacedItem,
    PlacementZone,
    Vector3,
)
from .geometry import ROOM_SCALE, build_geometry, local_bounds

logger = logging.getLogger(__name__)

ZONE_X_LABELS = ("left", "center", "right")
ZONE_Z_LABELS = ("front", "middle", "back")
FALLBACK_ZONE = PlacementZone(x="center", z="middle")


@dataclass(frozen=True)
class ResolverConfig:
    scale: float = ROOM_SCALE
    spacing: float = 1.5  # scene units between items sharing a zone
    anchor_fraction: float = 0.35  # zone anchor distance from center, as a fraction of scale
    epsilon: float = 0.01  # lift above the floor plane to avoid z-fighting


DEFAULT_CONFIG = ResolverConfig()


def zone_for(item: FurnitureDescriptor) -> PlacementZone:
    """Map the model's zone labels onto the 3x3 grid; unknown combinations go to center-middle."""
    x = item.position.x.strip().lower()
    z = item.position.z.strip().lower()
    if x in ZONE_X_LABELS and z in ZONE_Z_LABELS:
        return PlacementZone(x=x, z=z)
    logger.warning("Unknown zone %r/%r for %s, using center-middle", item.position.x, item.position.z, item.type)
    return FALLBACK_ZONE


def zone_anchor(zone: PlacementZone, config: ResolverConfig = DEFAULT_CONFIG) -> tuple[float, float]:
    reach = config.scale * config.anchor_fraction
    x = {"left": -reach, "center": 0.0, "right": reach}[zone.x]
    z = {"front": reach, "middle": 0.0, "back": -reach}[zone.z]
    return x, z


def group_offset(index_in_zone: int, zone_count: int, spacing: float) -> float:
    """Linear X offset for the i-th of k items in one zone, centered on the anchor."""
    if zone_count <= 1:
        return 0.0
    return (index_in_zone - (zone_count - 1) / 2) * spacing


def partition_by_zone(zones: Sequence[PlacementZone]) -> dict[str, list[int]]:
    """Zone key -> input indices, in input order. All 9 zones are present."""
    buckets: dict[str, list[int]] = {
        PlacementZone(x=x, z=z).key: [] for x in ZONE_X_LABELS for z in ZONE_Z_LABELS
    }
    for index, zone in enumerate(zones):
        buckets[zone.key].append(index)
    return buckets


def floor_aligned_y(item: FurnitureDescriptor, config: ResolverConfig = DEFAULT_CONFIG) -> float:
    (_, min_y, _), _ = local_bounds(build_geometry(item.type, item.dimensions, config.scale))
    return -min_y + config.epsilon


def resolve(
    items: Sequence[FurnitureDescriptor],
    config: ResolverConfig = DEFAULT_CONFIG,
) -> list[PlacedItem]:
    """Place every item, in input order. Deterministic for a given input."""
    zones = [zone_for(item) for item in items]
    buckets = partition_by_zone(zones)

    placed: list[PlacedItem] = []
    for index, (item, zone) in enumerate(zip(items, zones)):
        group = buckets[zone.key]
        dx = group_offset(group.index(index), len(group), config.spacing)
        anchor_x, anchor_z = zone_anchor(zone, config)

        placed.append(
            PlacedItem(
                source_index=index,
                type=item.type,
                zone=zone,
                size=item.size,
                color=item.color,
                normalized_dimensions=item.dimensions,
                resolved_position=Vector3(
                    x=anchor_x + dx,
                    y=floor_aligned_y(item, config),
                    z=anchor_z,
                ),
                group_offset=GroupOffset(dx=dx, dz=0.0),
            )
        )

    logger.info(
        "Resolved %d items into %d occupied zones",
        len(placed),
        sum(1 for indices in buckets.values() if indices),
    )
    return placed


def remove_item(placed: Sequence[PlacedItem], index: int) -> list[PlacedItem]:
    """Drop the item at index and renumber the rest so indices stay contiguous.

    Remaining items keep their positions; call resolve() again to re-space a zone.
    """
    if not 0 <= index < len(placed):
        raise IndexError(f"No placed item at index {index}")
    remaining = [p for i, p in enumerate(placed) if i != index]
    return [p.model_copy(update={"source_index": i}) for i, p in enumerate(remaining)]
