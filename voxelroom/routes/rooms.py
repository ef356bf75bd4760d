"""Room photo endpoints: voxel rebuilds, room state and zone layouts."""

import logging

from fastapi import APIRouter, File, Form, HTTPException, UploadFile

from .. import db
from ..config import DEFAULT_ROOM_SIZE_FEET
from ..demo.fixtures import SAMPLE_ROOM
from ..errors import ExhaustedCandidatesError, MalformedOutputError
from ..furniture_placement import resolve
from ..models.schemas import FurnitureDescriptor
from ..workflow.room_analysis import (
    analyze_room_image,
    analyze_single_object,
    extract_room_state,
    generate_layout,
    to_data_url,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["rooms"])


async def _read_image(image: UploadFile) -> tuple[bytes, str]:
    content = await image.read()
    if not content:
        raise HTTPException(status_code=400, detail="No image provided")
    return content, image.content_type or "image/jpeg"


def _dump(items) -> list[dict]:
    return [item.model_dump(mode="json", by_alias=True) for item in items]


# ---------------------------------------------------------------------------
# Zone layout
# ---------------------------------------------------------------------------

@router.post("/analyze-room")
async def analyze_room(image: UploadFile = File(...)):
    """Furniture layout for the 3D viewer. Falls back to sample data instead of failing."""
    content, content_type = await _read_image(image)
    analysis, placements = await generate_layout(content, content_type)

    body = {"success": analysis.success, "placements": _dump(placements)}
    if analysis.used_fallback:
        body["fallbackData"] = _dump(analysis.furniture)
        body["message"] = analysis.message
    else:
        body["roomData"] = _dump(analysis.furniture)
    return body


@router.post("/layout/resolve")
async def resolve_layout(furniture: list[FurnitureDescriptor]):
    return {"placements": _dump(resolve(furniture))}


@router.get("/layout/sample")
async def sample_layout():
    return {"roomData": _dump(SAMPLE_ROOM), "placements": _dump(resolve(SAMPLE_ROOM))}


# ---------------------------------------------------------------------------
# Voxel rebuilds
# ---------------------------------------------------------------------------

@router.post("/rooms/analyze")
async def analyze_room_voxels(
    image: UploadFile = File(...),
    size_feet: float = Form(DEFAULT_ROOM_SIZE_FEET),
):
    content, content_type = await _read_image(image)
    try:
        scene = await analyze_room_image(to_data_url(content, content_type), size_feet)
    except (ExhaustedCandidatesError, MalformedOutputError) as e:
        logger.error("Room analysis failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return scene.model_dump(mode="json", by_alias=True)


@router.post("/objects/analyze")
async def analyze_object(
    image: UploadFile = File(...),
    x: float = Form(0.0),
    y: float = Form(0.0),
    z: float = Form(0.0),
):
    content, content_type = await _read_image(image)
    try:
        obj = await analyze_single_object(to_data_url(content, content_type), [x, y, z])
    except (ExhaustedCandidatesError, MalformedOutputError) as e:
        logger.error("Object analysis failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return obj.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Room state
# ---------------------------------------------------------------------------

@router.post("/room-state")
async def create_room_state(
    image: UploadFile = File(...),
    size_feet: float = Form(DEFAULT_ROOM_SIZE_FEET),
):
    content, content_type = await _read_image(image)
    try:
        state = await extract_room_state(to_data_url(content, content_type), size_feet)
    except (ExhaustedCandidatesError, MalformedOutputError) as e:
        logger.error("Room state extraction failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return state.model_dump(mode="json", by_alias=True)


@router.get("/room-state")
async def read_room_state():
    state = db.get_room_state()
    if state is None:
        raise HTTPException(status_code=404, detail="No room state saved")
    return state.model_dump(mode="json", by_alias=True)
