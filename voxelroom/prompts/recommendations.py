"""Prompt templates for marketplace product recommendations."""

import json

from ..models.schemas import MarketplaceProduct

RECOMMENDATION_SYSTEM_PROMPT = """\
You are an interior design AI recommending products from a marketplace.
CRITICAL: Return ONLY valid JSON with NO markdown, NO backticks, NO explanations.

Format:
{
  "recommendations": [
    {
      "productId": "prod_XXX",
      "reasoning": "1-2 sentences why this fits",
      "compatibilityScore": 0.95,
      "suggestedPosition": {"x": 10, "y": 0, "z": 10, "rotation": 0},
      "alternatives": [
        {"productId": "prod_YYY", "reason": "alternative reason"}
      ]
    }
  ],
  "overallRationale": "Summary of recommendations"
}

compatibilityScore, suggestedPosition, alternatives and overallRationale are optional."""


def catalog_projection(catalog: list[MarketplaceProduct]) -> list[dict]:
    """Reduced catalog view for the prompt: descriptions and images are left out."""
    return [
        {"id": p.id, "name": p.name, "category": p.category, "tags": p.tags}
        for p in catalog
    ]


def recommendation_prompt(
    query: str,
    room_size_feet: float,
    theme: str,
    color_palette: list[str],
    existing_items: list[str],
    catalog: list[MarketplaceProduct],
) -> str:
    """Build the user prompt. Use with RECOMMENDATION_SYSTEM_PROMPT."""
    palette = ", ".join(color_palette) if color_palette else "neutral"
    current = ", ".join(existing_items) if existing_items else "empty"
    products = json.dumps(catalog_projection(catalog), indent=2)
    return f"""\
User wants: "{query}"
Room size: {room_size_feet:g}x{room_size_feet:g} feet
Room theme: {theme}
Color palette: {palette}
Current items: {current}

Available products:
{products}

Recommend 2-3 best matching products as JSON only:"""
