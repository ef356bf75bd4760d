"""Prompt template for zone-based furniture detection from a room photo."""

FURNITURE_TYPES = (
    "desk",
    "chair",
    "bed",
    "monitor",
    "keyboard",
    "plant",
    "lamp",
    "shelf",
    "rug",
    "picture_frame",
    "curtain",
    "sofa",
    "bookshelf",
    "side_table",
)


def furniture_layout_prompt() -> str:
    """Return the fixed instruction sent with every uploaded room photo.

    The response is a JSON array parsed by `normalize(..., PayloadKind.FURNITURE_LAYOUT)`.
    """
    types = ", ".join(FURNITURE_TYPES)
    return f"""\
You are analysing a photo of a room so it can be rebuilt as a simple 3D voxel scene.

Identify every visible piece of furniture and decor. For each one return:
- "type": one of {types}
- "position": {{"x": "left" | "center" | "right", "z": "front" | "middle" | "back"}} — where the item sits when the room floor is split into a 3x3 grid seen from the camera
- "size": "small" | "medium" | "large"
- "color": the dominant color as a hex string, e.g. "#8B4513"
- "dimensions": {{"width": number, "height": number, "depth": number}} — each a fraction of the room width between 0 and 1

Return ONLY a JSON array (no markdown fences, no commentary), for example:
[
  {{"type": "desk", "position": {{"x": "center", "z": "back"}}, "size": "large", "color": "#FFFFFF", "dimensions": {{"width": 0.4, "height": 0.15, "depth": 0.3}}}}
]"""
