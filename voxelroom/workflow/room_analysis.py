"""Room photo workflows — voxel room, single object, room state and zone layout."""

import base64
import logging
import time

from .. import db
from ..demo.fixtures import FALLBACK_FURNITURE
from ..errors import ExhaustedCandidatesError, MalformedOutputError
from ..furniture_placement import resolve
from ..models.schemas import (
    LayoutAnalysis,
    ModelRequest,
    PayloadKind,
    PlacedItem,
    RoomScene,
    RoomState,
    VoxelObject,
)
from ..prompts.furniture_layout import furniture_layout_prompt
from ..prompts.voxel_scene import (
    OBJECT_SCHEMA,
    ROOM_SCHEMA,
    ROOM_STATE_SCHEMA,
    object_prompt,
    room_prompt,
    room_state_prompt,
)
from ..tools.llm import ExtractionClient, get_extraction_client
from ..tools.normalize import normalize

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Could not analyse the photo, showing a sample room instead"


def to_data_url(image: bytes, content_type: str = "image/jpeg") -> str:
    return f"data:{content_type};base64,{base64.b64encode(image).decode()}"


async def analyze_room_image(
    image: str | bytes,
    size_feet: float,
    client: ExtractionClient | None = None,
    auth_token: str | None = None,
) -> RoomScene:
    """Rebuild a room photo as a voxel scene."""
    client = client or get_extraction_client()
    request = ModelRequest(
        payload_kind=PayloadKind.ROOM,
        prompt_text=room_prompt(size_feet),
        image_data=image,
        response_schema=ROOM_SCHEMA,
        json_mode=True,
        auth_token=auth_token,
    )
    raw = await client.invoke(request)
    scene = normalize(raw, PayloadKind.ROOM, size_feet=size_feet)
    logger.info("Room analysis: %d objects", len(scene.objects))
    return scene


async def analyze_single_object(
    image: str | bytes,
    spawn_position: list[float],
    client: ExtractionClient | None = None,
    auth_token: str | None = None,
) -> VoxelObject:
    """Turn the main object of a photo into one voxel module at spawn_position."""
    client = client or get_extraction_client()
    request = ModelRequest(
        payload_kind=PayloadKind.SINGLE_OBJECT,
        prompt_text=object_prompt(),
        image_data=image,
        response_schema=OBJECT_SCHEMA,
        json_mode=True,
        auth_token=auth_token,
    )
    raw = await client.invoke(request)
    return normalize(raw, PayloadKind.SINGLE_OBJECT, spawn_position=spawn_position)


async def extract_room_state(
    image: str | bytes,
    size_feet: float,
    client: ExtractionClient | None = None,
    auth_token: str | None = None,
) -> RoomState:
    """Extract theme, palette and contents of a room, and persist them for later queries."""
    client = client or get_extraction_client()
    request = ModelRequest(
        payload_kind=PayloadKind.ROOM_STATE,
        prompt_text=room_state_prompt(size_feet),
        image_data=image,
        response_schema=ROOM_STATE_SCHEMA,
        json_mode=True,
        auth_token=auth_token,
    )
    raw = await client.invoke(request)
    state = normalize(raw, PayloadKind.ROOM_STATE, size_feet=size_feet)
    db.save_room_state(state)
    return state


async def analyze_furniture_layout(
    image: bytes,
    content_type: str = "image/jpeg",
    client: ExtractionClient | None = None,
) -> LayoutAnalysis:
    """Detect zone-labelled furniture in a photo.

    Never fails for model or parse problems: those return FALLBACK_FURNITURE
    with used_fallback=True so the browser always has a scene to draw.
    """
    client = client or get_extraction_client()
    request = ModelRequest(
        payload_kind=PayloadKind.FURNITURE_LAYOUT,
        prompt_text=furniture_layout_prompt(),
        image_data=to_data_url(image, content_type),
        temperature=0.3,
    )

    t0 = time.time()
    try:
        raw = await client.invoke(request)
        furniture = normalize(raw, PayloadKind.FURNITURE_LAYOUT)
    except (ExhaustedCandidatesError, MalformedOutputError) as exc:
        logger.warning("Furniture layout analysis failed, using fallback data: %s", exc)
        return LayoutAnalysis(
            success=False,
            furniture=[item.model_copy(deep=True) for item in FALLBACK_FURNITURE],
            used_fallback=True,
            message=FALLBACK_MESSAGE,
        )

    logger.info("Furniture layout: %d items in %.0fms", len(furniture), (time.time() - t0) * 1000)
    return LayoutAnalysis(success=True, furniture=furniture)


async def generate_layout(
    image: bytes,
    content_type: str = "image/jpeg",
    client: ExtractionClient | None = None,
) -> tuple[LayoutAnalysis, list[PlacedItem]]:
    """Analyse a photo and resolve whatever furniture came back (real or fallback)."""
    analysis = await analyze_furniture_layout(image, content_type, client=client)
    return analysis, resolve(analysis.furniture)
