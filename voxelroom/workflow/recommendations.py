"""Marketplace recommendations — grounds a free-text query in the room and the catalog."""

import logging
import time
from dataclasses import dataclass

from ..config import DEFAULT_ROOM_SIZE_FEET
from ..errors import NoRoomContextError
from ..models.schemas import (
    MarketplaceProduct,
    ModelRequest,
    PayloadKind,
    RecommendationItem,
    RecommendationSet,
    RoomScene,
    RoomState,
)
from ..prompts.recommendations import RECOMMENDATION_SYSTEM_PROMPT, recommendation_prompt
from ..tools.catalog import find_product
from ..tools.llm import ExtractionClient, get_extraction_client
from ..tools.normalize import DEFAULT_THEME, normalize

logger = logging.getLogger(__name__)


@dataclass
class RecommendationContext:
    """What the matcher knows about the room. At least one of room / room_state is required."""
    room: RoomScene | None = None
    room_state: RoomState | None = None
    room_size_feet: float = DEFAULT_ROOM_SIZE_FEET
    auth_token: str | None = None

    @property
    def has_room(self) -> bool:
        return self.room is not None or self.room_state is not None


def _existing_item_names(context: RecommendationContext) -> list[str]:
    if context.room_state and context.room_state.existing_items:
        return [item.name for item in context.room_state.existing_items if item.name]
    if context.room and context.room.objects:
        return [obj.name for obj in context.room.objects if obj.name]
    return []


def build_recommendation_request(
    query: str,
    context: RecommendationContext,
    catalog: list[MarketplaceProduct],
) -> ModelRequest:
    state = context.room_state
    prompt = recommendation_prompt(
        query=query,
        room_size_feet=context.room_size_feet,
        theme=state.theme if state else DEFAULT_THEME,
        color_palette=state.color_palette if state else [],
        existing_items=_existing_item_names(context),
        catalog=catalog,
    )
    return ModelRequest(
        payload_kind=PayloadKind.PRODUCT_QUERY,
        prompt_text=prompt,
        system_prompt=RECOMMENDATION_SYSTEM_PROMPT,
        temperature=0.7,
        auth_token=context.auth_token,
    )


def attach_products(
    recommendations: RecommendationSet,
    catalog: list[MarketplaceProduct],
) -> list[RecommendationItem]:
    """Resolve every productId (and alternative) against the catalog, keeping model order."""
    enriched = []
    for rec in recommendations.recommendations:
        product = find_product(catalog, rec.product_id)
        if product is None:
            logger.warning("Recommended product %s not in catalog", rec.product_id)
        alternatives = [
            alt.model_copy(update={"product": find_product(catalog, alt.product_id)})
            for alt in rec.alternatives
        ]
        enriched.append(rec.model_copy(update={"product": product, "alternatives": alternatives}))
    return enriched


async def match_products(
    query: str,
    context: RecommendationContext,
    catalog: list[MarketplaceProduct],
    client: ExtractionClient | None = None,
) -> list[RecommendationItem]:
    """Ask the model for 2-3 catalog products that fit the query and the room.

    Raises NoRoomContextError (before any network call) when there is no room,
    ValueError for a blank query, ExhaustedCandidatesError / MalformedOutputError
    when the model cannot produce usable output.
    """
    if not context.has_room:
        raise NoRoomContextError("No room data available for recommendations")
    if not query.strip():
        raise ValueError("Query must not be empty")

    client = client or get_extraction_client()
    request = build_recommendation_request(query, context, catalog)

    t0 = time.time()
    raw = await client.invoke(request)
    duration_ms = (time.time() - t0) * 1000

    result = normalize(raw, PayloadKind.PRODUCT_QUERY)
    enriched = attach_products(result, catalog)
    logger.info(
        "Recommendations for %r: %d items in %.0fms (%d matched catalog)",
        query,
        len(enriched),
        duration_ms,
        sum(1 for r in enriched if r.product is not None),
    )
    return enriched
