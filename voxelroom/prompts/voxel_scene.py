"""Prompt templates and response schemas for voxel room / object / room-state extraction."""

BASE_RULES = """\
The style must strictly match "Classic Detailed Voxel Art".
Sub-parts MUST touch or overlap (structural integrity).
Use vibrant, clean colors that represent the real object's materials."""

_VEC3 = {"type": "array", "items": {"type": "number"}, "minItems": 3, "maxItems": 3}
_XYZ = {
    "type": "object",
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}, "z": {"type": "number"}},
}

_PART_SCHEMA = {
    "type": "object",
    "properties": {
        "offset": {"type": "array", "items": {"type": "number"}},
        "dimensions": {"type": "array", "items": {"type": "number"}},
        "color": {"type": "string"},
    },
    "required": ["offset", "dimensions", "color"],
}

ROOM_SCHEMA = {
    "type": "object",
    "properties": {
        "wallColor": {"type": "string"},
        "floorColor": {"type": "string"},
        "objects": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "type": {"type": "string"},
                    "position": _VEC3,
                    "rotation": {"type": "number"},
                    "color": {"type": "string"},
                    "description": {"type": "string"},
                    "parts": {"type": "array", "items": _PART_SCHEMA},
                },
                "required": ["name", "type", "position", "parts"],
            },
        },
    },
    "required": ["wallColor", "floorColor", "objects"],
}

OBJECT_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string"},
        "color": {"type": "string"},
        "description": {"type": "string"},
        "parts": {"type": "array", "items": _PART_SCHEMA},
    },
    "required": ["name", "type", "parts"],
}

ROOM_STATE_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "theme": {"type": "string"},
        "colorPalette": {"type": "array", "items": {"type": "string"}},
        "existingItems": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "category": {"type": "string"},
                    "position": _XYZ,
                    "dimensions": {
                        "type": "object",
                        "properties": {
                            "width": {"type": "number"},
                            "depth": {"type": "number"},
                            "height": {"type": "number"},
                        },
                    },
                },
            },
        },
        "emptyZones": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string"},
                    "description": {"type": "string"},
                    "position": _XYZ,
                },
            },
        },
    },
    "required": ["name", "theme", "colorPalette", "existingItems", "emptyZones"],
}


def room_prompt(size_feet: float) -> str:
    """Prompt for rebuilding a whole room photo as a voxel scene.

    Send with ROOM_SCHEMA and the room photo.
    """
    return f"""\
Analyze this room photo and reconstruct it as a 3D modular isometric voxel environment.
The room is approximately {size_feet:g}x{size_feet:g} feet.
{BASE_RULES}
Assign objects positions on a grid where 1 unit = 1 foot.
Ensure major furniture pieces are correctly scaled relative to each other and the {size_feet:g}ft room size.
Return JSON with wallColor, floorColor, and objects array."""


def object_prompt() -> str:
    """Prompt for turning the main object of a photo into one voxel module."""
    return f"""\
Analyze the MAIN SINGLE OBJECT in this photo. Reconstruct it as a high-fidelity 3D voxel module with a "Voxel Toy" aesthetic.
{BASE_RULES}
Scaling: Assume the object is a standard size for its type (e.g., a chair is ~1.5x1.5x3 units, a desk is ~4x2x2.5 units). 1 unit = 1 foot.
Focus on EXAGGERATING and EMPHASIZING the object's unique silhouettes and most recognizable features.
Instead of raw complexity, use 20-40 well-placed blocks to create a stylized, cartoonish version.
Ignore the background environment completely.
Return JSON with a single object definition (name, type, parts, color, description)."""


def room_state_prompt(size_feet: float) -> str:
    """Prompt for extracting the grounding RoomState used by the marketplace."""
    return f"""\
Analyze this room photo and extract detailed information about the space and existing furniture.
The room is approximately {size_feet:g}x{size_feet:g} feet.

Return a JSON object with:
1. name: A descriptive name for the room (e.g., "Modern Living Room")
2. theme: The interior design style (e.g., "scandinavian-minimalist", "industrial", "bohemian", "modern-glam")
3. colorPalette: Array of 4-5 primary colors used in the room
4. existingItems: Array of furniture/objects visible, each with:
   - name: Item name
   - category: Category (seating, tables, storage, decor, lighting, etc.)
   - position: Estimated x,y,z coordinates in feet
   - dimensions: width, depth, height in feet
5. emptyZones: Array of empty spaces suitable for decoration, each with:
   - type: "corner", "wall", "floor", "nook"
   - description: Brief description of the location and lighting
   - position: Estimated x,y,z coordinates

Be specific and detailed. Position coordinates should be relative to a grid where the room is {size_feet:g}x{size_feet:g} feet."""
