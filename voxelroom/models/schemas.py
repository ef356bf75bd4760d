"""Pydantic models for the Voxel Room pipeline.

Python attributes are snake_case; the browser client speaks camelCase, so
wire-facing models carry camelCase aliases and accept either spelling.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Model requests ---


class PayloadKind(str, Enum):
    ROOM = "room"
    SINGLE_OBJECT = "single_object"
    ROOM_STATE = "room_state"
    PRODUCT_QUERY = "product_query"
    FURNITURE_LAYOUT = "furniture_layout"


class ModelRequest(BaseModel):
    """One outbound model call. Built once, reused for every attempt."""

    model_config = ConfigDict(frozen=True)

    payload_kind: PayloadKind
    prompt_text: str
    image_data: str | bytes | None = Field(
        default=None, description="Data URL, http(s) URL, raw base64 string or raw image bytes"
    )
    response_schema: dict | None = None
    system_prompt: str | None = None
    temperature: float = 0.7
    json_mode: bool = False
    auth_token: str | None = Field(
        default=None, description="Caller-supplied bearer token, overrides the configured key"
    )


# --- Voxel scene (room / single object) ---


class VoxelPart(WireModel):
    offset: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    dimensions: list[float] = Field(default_factory=lambda: [1.0, 1.0, 1.0])
    color: str = "#888888"


class VoxelObject(WireModel):
    id: str
    name: str = ""
    type: str = ""
    position: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    rotation: float = 0
    color: str | None = None
    description: str = ""
    visible: bool = True
    parts: list[VoxelPart] = Field(default_factory=list)


class SceneDimensions(WireModel):
    width: float
    depth: float


class RoomScene(WireModel):
    wall_color: str = "#cbd5e1"
    floor_color: str = "#94a3b8"
    dimensions: SceneDimensions
    objects: list[VoxelObject] = Field(default_factory=list)


# --- Room state (grounding context for recommendations) ---


class Position3D(WireModel):
    x: float = 0
    y: float = 0
    z: float = 0


class ItemDimensions(WireModel):
    width: float = 1
    depth: float = 1
    height: float = 1


class ExistingItem(WireModel):
    id: str
    product_id: str | None = None
    name: str = ""
    category: str = ""
    position: Position3D = Field(default_factory=Position3D)
    dimensions: ItemDimensions = Field(default_factory=ItemDimensions)


class EmptyZone(WireModel):
    id: str
    type: str = ""
    description: str = ""
    position: Position3D = Field(default_factory=Position3D)


class RoomDimensions(WireModel):
    length: float
    width: float
    height: float = 96


class RoomState(WireModel):
    id: str
    name: str = "Room"
    dimensions: RoomDimensions
    theme: str = "modern"
    color_palette: list[str] = Field(default_factory=lambda: ["white", "gray", "black"])
    existing_items: list[ExistingItem] = Field(default_factory=list)
    empty_zones: list[EmptyZone] = Field(default_factory=list)


# --- Furniture layout (zone-based placement) ---

ZoneX = Literal["left", "center", "right"]
ZoneZ = Literal["front", "middle", "back"]
SizeClass = Literal["small", "medium", "large"]


class ZoneLabel(WireModel):
    """Zone labels as the model wrote them. May hold values outside the grid."""

    x: str = "center"
    z: str = "middle"


class NormalizedDimensions(WireModel):
    """Fractions of the room width."""

    width: float = 0.2
    height: float = 0.2
    depth: float = 0.2


class FurnitureDescriptor(WireModel):
    type: str
    position: ZoneLabel = Field(default_factory=ZoneLabel)
    size: SizeClass = "medium"
    color: str = "#888888"
    dimensions: NormalizedDimensions = Field(default_factory=NormalizedDimensions)


class PlacementZone(WireModel):
    model_config = ConfigDict(frozen=True)

    x: ZoneX = "center"
    z: ZoneZ = "middle"

    @property
    def key(self) -> str:
        return f"{self.x}-{self.z}"


class Vector3(WireModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float


class GroupOffset(WireModel):
    model_config = ConfigDict(frozen=True)

    dx: float = 0
    dz: float = 0


class PlacedItem(WireModel):
    model_config = ConfigDict(frozen=True)

    source_index: int
    type: str
    zone: PlacementZone
    size: SizeClass
    color: str
    normalized_dimensions: NormalizedDimensions
    resolved_position: Vector3
    group_offset: GroupOffset


class LayoutAnalysis(WireModel):
    success: bool
    furniture: list[FurnitureDescriptor]
    used_fallback: bool = False
    message: str = ""


# --- Marketplace ---


class ProductDimensions(WireModel):
    width: float
    depth: float
    height: float


class MarketplaceProduct(WireModel):
    id: str
    name: str
    category: str
    subcategory: str = ""
    price: float = 0
    dimensions: ProductDimensions
    colors: list[str] = Field(default_factory=list)
    styles: list[str] = Field(default_factory=list)
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    image_url: str = ""


class SuggestedPosition(WireModel):
    x: float = 0
    y: float = 0
    z: float = 0
    rotation: float = 0


class AlternativeProduct(WireModel):
    product_id: str
    reason: str = ""
    product: MarketplaceProduct | None = None


class RecommendationItem(WireModel):
    product_id: str
    reasoning: str = ""
    compatibility_score: float = Field(default=0.85, ge=0.0, le=1.0)
    suggested_position: SuggestedPosition | None = None
    alternatives: list[AlternativeProduct] = Field(default_factory=list)
    product: MarketplaceProduct | None = None


class RecommendationSet(WireModel):
    recommendations: list[RecommendationItem] = Field(default_factory=list)
    overall_rationale: str = ""
