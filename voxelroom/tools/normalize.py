"""Turn raw model text into schema-complete pydantic values.

Models wrap JSON in markdown fences, prepend commentary, and drop fields.
Everything here is deterministic given the input text and a timestamp.
"""

import json
import logging
import re
import time
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_ROOM_SIZE_FEET
from ..errors import MalformedOutputError
from ..models.schemas import (
    EmptyZone,
    ExistingItem,
    FurnitureDescriptor,
    PayloadKind,
    RecommendationItem,
    RecommendationSet,
    RoomDimensions,
    RoomScene,
    RoomState,
    SceneDimensions,
    VoxelObject,
    VoxelPart,
)

logger = logging.getLogger(__name__)

ExtractionResult = RoomScene | VoxelObject | RoomState | RecommendationSet | list[FurnitureDescriptor]

DEFAULT_COMPATIBILITY_SCORE = 0.85
DEFAULT_THEME = "modern"
DEFAULT_PALETTE = ["white", "gray", "black"]
DEFAULT_WALL_COLOR = "#cbd5e1"
DEFAULT_FLOOR_COLOR = "#94a3b8"
DEFAULT_FURNITURE_TYPE = "generic"
ROOM_HEIGHT_INCHES = 96

_OPENING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*$")
_CLOSERS = {"[": "]", "{": "}"}


# ---------------------------------------------------------------------------
# Text cleanup
# ---------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    text = text.strip()
    text = _OPENING_FENCE.sub("", text)
    text = _CLOSING_FENCE.sub("", text)
    return text.strip()


def _balanced_end(text: str, start: int) -> int | None:
    """Index one past the bracket closing text[start], or None if unbalanced."""
    stack = [_CLOSERS[text[start]]]
    in_string = False
    escaped = False
    for i in range(start + 1, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("]", "}"):
            if ch != stack.pop():
                return None
            if not stack:
                return i + 1
    return None


def find_json_span(text: str, accept: Callable[[Any], bool] | None = None) -> Any:
    """Parse the first balanced [...] or {...} span that is valid JSON.

    Spans rejected by accept (e.g. a stray "[2]" in commentary) are skipped.
    Returns the parsed value, or raises ValueError if there is none.
    """
    for start, ch in enumerate(text):
        if ch not in _CLOSERS:
            continue
        end = _balanced_end(text, start)
        if end is None:
            continue
        try:
            value = json.loads(text[start:end])
        except json.JSONDecodeError:
            continue
        if accept is None or accept(value):
            return value
    raise ValueError("no balanced JSON span found")


def parse_json(raw_text: str, accept: Callable[[Any], bool] | None = None) -> Any:
    cleaned = strip_code_fences(raw_text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    try:
        value = find_json_span(cleaned, accept)
    except ValueError as exc:
        raise MalformedOutputError(f"Model output is not valid JSON: {exc}", raw_text=raw_text or "") from exc
    logger.info("Recovered JSON span from model output with surrounding text")
    return value


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _is_object(value: Any) -> bool:
    return isinstance(value, dict)


def _is_object_or_object_list(value: Any) -> bool:
    if isinstance(value, list):
        return all(isinstance(v, dict) for v in value)
    return isinstance(value, dict)


# Top-level shapes a recovered span must have, per payload kind
_SPAN_SHAPES = {
    PayloadKind.ROOM: _is_object,
    PayloadKind.SINGLE_OBJECT: _is_object,
    PayloadKind.ROOM_STATE: _is_object,
    PayloadKind.PRODUCT_QUERY: _is_object_or_object_list,
    PayloadKind.FURNITURE_LAYOUT: _is_object_or_object_list,
}


def _as_vec3(value: Any, default: list[float]) -> list[float]:
    if isinstance(value, list) and len(value) == 3 and all(isinstance(v, (int, float)) for v in value):
        return [float(v) for v in value]
    return list(default)


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _validate_each(model: type[BaseModel], entries: list[dict], label: str) -> list:
    valid = []
    for entry in entries:
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid %s entry: %s (%d errors)", label, entry, e.error_count())
    return valid


def _require_object(data: Any, payload_kind: PayloadKind, raw_text: str) -> dict:
    if not isinstance(data, dict):
        raise MalformedOutputError(
            f"Expected a JSON object for {payload_kind.value}, got {type(data).__name__}",
            raw_text=raw_text,
        )
    return data


def _parts(raw_parts: Any) -> list[VoxelPart]:
    entries = []
    for part in _as_list(raw_parts):
        part = _as_dict(part)
        entries.append(
            {
                "offset": _as_vec3(part.get("offset"), [0.0, 0.0, 0.0]),
                "dimensions": _as_vec3(part.get("dimensions"), [1.0, 1.0, 1.0]),
                "color": part.get("color") or "#888888",
            }
        )
    return _validate_each(VoxelPart, entries, "voxel part")


# ---------------------------------------------------------------------------
# Per-kind normalization
# ---------------------------------------------------------------------------


def normalize_room_scene(data: dict, size_feet: float, stamp: int) -> RoomScene:
    objects = []
    for idx, obj in enumerate(_as_list(data.get("objects"))):
        obj = _as_dict(obj)
        objects.append(
            VoxelObject(
                id=str(obj.get("id") or f"room-obj-{idx}-{stamp}"),
                name=str(obj.get("name") or ""),
                type=str(obj.get("type") or ""),
                position=_as_vec3(obj.get("position"), [0.0, 0.0, 0.0]),
                rotation=_as_float(obj.get("rotation"), 0),
                color=obj.get("color") if isinstance(obj.get("color"), str) else None,
                description=str(obj.get("description") or ""),
                visible=obj.get("visible") is not False,
                parts=_parts(obj.get("parts")),
            )
        )
    return RoomScene(
        wall_color=data.get("wallColor") or DEFAULT_WALL_COLOR,
        floor_color=data.get("floorColor") or DEFAULT_FLOOR_COLOR,
        dimensions=SceneDimensions(width=size_feet, depth=size_feet),
        objects=objects,
    )


def normalize_single_object(data: dict, spawn_position: list[float], stamp: int) -> VoxelObject:
    return VoxelObject(
        id=f"toolbox-{stamp}",
        name=str(data.get("name") or ""),
        type=str(data.get("type") or ""),
        position=list(spawn_position),
        rotation=0,
        color=data.get("color") if isinstance(data.get("color"), str) else None,
        description=str(data.get("description") or ""),
        visible=True,
        parts=_parts(data.get("parts")),
    )


def normalize_room_state(data: dict, size_feet: float, stamp: int) -> RoomState:
    existing = []
    for idx, item in enumerate(_as_list(data.get("existingItems"))):
        item = _as_dict(item)
        existing.append(
            {
                "id": f"item_{idx}_{stamp}",
                "product_id": item.get("productId"),
                "name": item.get("name") or "",
                "category": item.get("category") or "",
                "position": _as_dict(item.get("position")) or {"x": 0, "y": 0, "z": 0},
                "dimensions": _as_dict(item.get("dimensions")) or {"width": 1, "depth": 1, "height": 1},
            }
        )

    zones = []
    for idx, zone in enumerate(_as_list(data.get("emptyZones"))):
        zone = _as_dict(zone)
        zones.append(
            {
                "id": f"zone_{idx}_{stamp}",
                "type": zone.get("type") or "",
                "description": zone.get("description") or "",
                "position": _as_dict(zone.get("position")) or {"x": 0, "y": 0, "z": 0},
            }
        )

    palette = data.get("colorPalette")
    if not isinstance(palette, list):
        palette = DEFAULT_PALETTE
    return RoomState(
        id=f"room_{stamp}",
        name=data.get("name") or "Room",
        dimensions=RoomDimensions(
            length=size_feet * 12,
            width=size_feet * 12,
            height=ROOM_HEIGHT_INCHES,
        ),
        theme=data.get("theme") or DEFAULT_THEME,
        color_palette=[str(c) for c in palette],
        existing_items=_validate_each(ExistingItem, existing, "existing item"),
        empty_zones=_validate_each(EmptyZone, zones, "empty zone"),
    )


def _score(value: Any) -> float:
    score = _as_float(value, DEFAULT_COMPATIBILITY_SCORE)
    return min(1.0, max(0.0, score))


def normalize_recommendations(data: Any, raw_text: str) -> RecommendationSet:
    if isinstance(data, list):
        data = {"recommendations": data}
    data = _require_object(data, PayloadKind.PRODUCT_QUERY, raw_text)

    entries = []
    for rec in _as_list(data.get("recommendations")):
        rec = _as_dict(rec)
        product_id = rec.get("productId") or rec.get("product_id")
        if not product_id:
            logger.warning("Skipping recommendation without productId: %s", rec)
            continue
        entry = {
            "product_id": str(product_id),
            "reasoning": str(rec.get("reasoning") or ""),
            "compatibility_score": _score(rec.get("compatibilityScore")),
            "alternatives": [
                {"product_id": str(alt["productId"]), "reason": str(alt.get("reason") or "")}
                for alt in _as_list(rec.get("alternatives"))
                if isinstance(alt, dict) and alt.get("productId")
            ],
        }
        if isinstance(rec.get("suggestedPosition"), dict):
            entry["suggested_position"] = rec["suggestedPosition"]
        entries.append(entry)

    return RecommendationSet(
        recommendations=_validate_each(RecommendationItem, entries, "recommendation"),
        overall_rationale=str(data.get("overallRationale") or ""),
    )


def _positive(value: Any, default: float) -> float:
    number = _as_float(value, default)
    return number if number > 0 else default


def normalize_furniture_layout(data: Any, raw_text: str) -> list[FurnitureDescriptor]:
    if isinstance(data, dict):
        for key in ("furniture", "items", "objects"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise MalformedOutputError(
            f"Expected a JSON array of furniture, got {type(data).__name__}", raw_text=raw_text
        )

    entries = []
    for item in data:
        if not isinstance(item, dict):
            logger.warning("Skipping non-object furniture entry: %r", item)
            continue
        position = _as_dict(item.get("position"))
        dims = _as_dict(item.get("dimensions"))
        size = item.get("size")
        entries.append(
            {
                "type": str(item.get("type") or DEFAULT_FURNITURE_TYPE),
                "position": {
                    "x": str(position.get("x") or "center"),
                    "z": str(position.get("z") or "middle"),
                },
                "size": size if size in ("small", "medium", "large") else "medium",
                "color": item.get("color") if isinstance(item.get("color"), str) else "#888888",
                "dimensions": {
                    "width": _positive(dims.get("width"), 0.2),
                    "height": _positive(dims.get("height"), 0.2),
                    "depth": _positive(dims.get("depth"), 0.2),
                },
            }
        )
    return _validate_each(FurnitureDescriptor, entries, "furniture")


def normalize(
    raw_text: str,
    payload_kind: PayloadKind,
    *,
    size_feet: float = DEFAULT_ROOM_SIZE_FEET,
    spawn_position: list[float] | None = None,
    now_ms: int | None = None,
) -> ExtractionResult:
    """Parse raw model text and coerce it into the result type for payload_kind.

    Raises MalformedOutputError when no JSON can be recovered or the top-level
    shape is wrong for the payload kind.
    """
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    data = parse_json(raw_text, _SPAN_SHAPES[payload_kind])

    if payload_kind is PayloadKind.ROOM:
        return normalize_room_scene(_require_object(data, payload_kind, raw_text), size_feet, stamp)
    if payload_kind is PayloadKind.SINGLE_OBJECT:
        return normalize_single_object(
            _require_object(data, payload_kind, raw_text), spawn_position or [0.0, 0.0, 0.0], stamp
        )
    if payload_kind is PayloadKind.ROOM_STATE:
        return normalize_room_state(_require_object(data, payload_kind, raw_text), size_feet, stamp)
    if payload_kind is PayloadKind.PRODUCT_QUERY:
        return normalize_recommendations(data, raw_text)
    return normalize_furniture_layout(data, raw_text)
