"""Marketplace catalog and recommendation endpoints."""

import logging

from fastapi import APIRouter, Header, HTTPException

from .. import db
from ..config import DEFAULT_ROOM_SIZE_FEET
from ..errors import ExhaustedCandidatesError, MalformedOutputError, NoRoomContextError
from ..models.schemas import RoomScene, WireModel
from ..tools.catalog import load_catalog
from ..workflow.recommendations import RecommendationContext, match_products

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/marketplace", tags=["marketplace"])


class RecommendationQuery(WireModel):
    query: str
    room: RoomScene | None = None
    room_size_feet: float = DEFAULT_ROOM_SIZE_FEET


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.get("/products")
async def list_products():
    return [p.model_dump(mode="json", by_alias=True) for p in load_catalog()]


@router.post("/recommendations")
async def recommend(req: RecommendationQuery, authorization: str | None = Header(None)):
    context = RecommendationContext(
        room=req.room,
        room_state=db.get_room_state(),
        room_size_feet=req.room_size_feet,
        auth_token=_bearer_token(authorization),
    )
    try:
        recommendations = await match_products(req.query, context, load_catalog())
    except NoRoomContextError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (ExhaustedCandidatesError, MalformedOutputError) as e:
        logger.error("Recommendations failed for %r: %s", req.query, e)
        raise HTTPException(status_code=502, detail=str(e))

    return {"recommendations": [r.model_dump(mode="json", by_alias=True) for r in recommendations]}
