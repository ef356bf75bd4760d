"""Static marketplace catalog, read once and never mutated."""

import json
import logging
from functools import lru_cache
from pathlib import Path

from ..config import CATALOG_PATH
from ..models.schemas import MarketplaceProduct

logger = logging.getLogger(__name__)


@lru_cache(maxsize=4)
def _load(path: Path) -> tuple[MarketplaceProduct, ...]:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError(f"Catalog at {path} is not a JSON array")
    products = tuple(MarketplaceProduct.model_validate(p) for p in raw)
    logger.info("Loaded %d marketplace products from %s", len(products), path)
    return products


def load_catalog(path: Path | str | None = None) -> list[MarketplaceProduct]:
    return list(_load(Path(path) if path else CATALOG_PATH))


def find_product(catalog: list[MarketplaceProduct], product_id: str) -> MarketplaceProduct | None:
    """Exact-id lookup. Unknown ids give None."""
    for product in catalog:
        if product.id == product_id:
            return product
    return None
