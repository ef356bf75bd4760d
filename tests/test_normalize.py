"""Tests for turning raw model text into typed results."""

import pytest

from voxelroom.errors import MalformedOutputError
from voxelroom.models.schemas import FurnitureDescriptor, PayloadKind
from voxelroom.tools.normalize import (
    DEFAULT_PALETTE,
    find_json_span,
    normalize,
    parse_json,
    strip_code_fences,
)

STAMP = 1700000000000


# --- Text cleanup ---


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n[1, 2]\n```') == "[1, 2]"

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


class TestParseJson:
    def test_plain(self):
        assert parse_json('{"a": 1}') == {"a": 1}

    def test_prose_around_object(self):
        assert parse_json('Here is the room: {"a": [1, 2]} Hope this helps!') == {"a": [1, 2]}

    def test_brackets_inside_strings(self):
        assert parse_json('Sure. {"name": "shelf } [x]", "n": 2} done') == {"name": "shelf } [x]", "n": 2}

    def test_escaped_quote_inside_string(self):
        assert parse_json('ok {"name": "a \\"b\\" }"} end') == {"name": 'a "b" }'}

    def test_skips_invalid_span(self):
        assert find_json_span("{not json} then [1, 2]") == [1, 2]

    def test_garbage_raises(self):
        with pytest.raises(MalformedOutputError) as exc_info:
            parse_json("I could not see any furniture in this photo.")
        assert exc_info.value.raw_text.startswith("I could not")

    def test_raw_text_truncated(self):
        with pytest.raises(MalformedOutputError) as exc_info:
            parse_json("x" * 2000)
        assert len(exc_info.value.raw_text) == 500

    def test_unbalanced_raises(self):
        with pytest.raises(MalformedOutputError):
            parse_json('{"a": [1, 2}')


# --- Recommendations ---


class TestRecommendations:
    def test_fenced_recommendation_gets_defaults(self):
        raw = '```json\n{"recommendations":[{"productId":"prod_001","reasoning":"fits"}]}\n```'
        result = normalize(raw, PayloadKind.PRODUCT_QUERY)
        assert len(result.recommendations) == 1
        rec = result.recommendations[0]
        assert rec.product_id == "prod_001"
        assert rec.reasoning == "fits"
        assert rec.compatibility_score == 0.85
        assert rec.alternatives == []
        assert rec.suggested_position is None

    def test_top_level_list(self):
        result = normalize('[{"productId": "prod_002"}]', PayloadKind.PRODUCT_QUERY)
        assert [r.product_id for r in result.recommendations] == ["prod_002"]

    def test_score_clamped(self):
        raw = (
            '{"recommendations": ['
            '{"productId": "a", "compatibilityScore": 1.7},'
            '{"productId": "b", "compatibilityScore": "-0.2"},'
            '{"productId": "c", "compatibilityScore": "high"}]}'
        )
        scores = [r.compatibility_score for r in normalize(raw, PayloadKind.PRODUCT_QUERY).recommendations]
        assert scores == [1.0, 0.0, 0.85]

    def test_entries_without_product_id_skipped(self):
        raw = '{"recommendations": [{"reasoning": "no id"}, {"productId": "prod_003"}]}'
        result = normalize(raw, PayloadKind.PRODUCT_QUERY)
        assert [r.product_id for r in result.recommendations] == ["prod_003"]

    def test_alternatives_and_position(self):
        raw = (
            '{"recommendations": [{"productId": "prod_001", '
            '"suggestedPosition": {"x": 1, "y": 0, "z": -2, "reasoning": "by the window"}, '
            '"alternatives": [{"productId": "prod_004", "reason": "cheaper"}, {"reason": "no id"}]}], '
            '"overallRationale": "keeps it airy"}'
        )
        result = normalize(raw, PayloadKind.PRODUCT_QUERY)
        rec = result.recommendations[0]
        assert rec.suggested_position.z == -2
        assert [a.product_id for a in rec.alternatives] == ["prod_004"]
        assert rec.alternatives[0].reason == "cheaper"
        assert result.overall_rationale == "keeps it airy"

    def test_scalar_is_malformed(self):
        with pytest.raises(MalformedOutputError):
            normalize("42", PayloadKind.PRODUCT_QUERY)

    def test_bracketed_number_in_commentary_skipped(self):
        raw = 'Top [1] pick: {"recommendations": [{"productId": "prod_001", "reasoning": "fits"}]}'
        result = normalize(raw, PayloadKind.PRODUCT_QUERY)
        assert [r.product_id for r in result.recommendations] == ["prod_001"]

    def test_commentary_without_payload_is_malformed(self):
        with pytest.raises(MalformedOutputError):
            normalize("I would pick option [1] or [2].", PayloadKind.PRODUCT_QUERY)


# --- Room state ---


class TestRoomState:
    def test_empty_object_gets_defaults(self):
        state = normalize("{}", PayloadKind.ROOM_STATE, size_feet=10, now_ms=STAMP)
        assert state.id == f"room_{STAMP}"
        assert state.name == "Room"
        assert state.theme == "modern"
        assert state.color_palette == DEFAULT_PALETTE
        assert (state.dimensions.length, state.dimensions.width, state.dimensions.height) == (120, 120, 96)
        assert state.existing_items == []
        assert state.empty_zones == []

    def test_items_and_zones_get_ids(self):
        raw = (
            '{"theme": "scandinavian", "colorPalette": ["oak", "cream"], '
            '"existingItems": [{"name": "Sofa", "category": "seating"}, {"name": "Lamp"}], '
            '"emptyZones": [{"type": "corner", "description": "near window"}]}'
        )
        state = normalize(raw, PayloadKind.ROOM_STATE, size_feet=12, now_ms=STAMP)
        assert state.theme == "scandinavian"
        assert state.color_palette == ["oak", "cream"]
        assert [i.id for i in state.existing_items] == [f"item_0_{STAMP}", f"item_1_{STAMP}"]
        assert state.existing_items[1].category == ""
        assert state.existing_items[0].dimensions.width == 1
        assert state.empty_zones[0].id == f"zone_0_{STAMP}"
        assert state.dimensions.length == 144

    def test_empty_palette_kept(self):
        state = normalize('{"colorPalette": []}', PayloadKind.ROOM_STATE, now_ms=STAMP)
        assert state.color_palette == []

    def test_list_is_malformed(self):
        with pytest.raises(MalformedOutputError):
            normalize("[]", PayloadKind.ROOM_STATE)

    def test_camel_case_dump(self):
        state = normalize("{}", PayloadKind.ROOM_STATE, now_ms=STAMP)
        dumped = state.model_dump(by_alias=True)
        assert "colorPalette" in dumped
        assert "existingItems" in dumped


# --- Voxel scenes ---


class TestRoomScene:
    def test_defaults_and_generated_ids(self):
        raw = '{"objects": [{"name": "Desk", "parts": [{"offset": [0, 1, 0]}]}, {"id": "keep-me"}]}'
        scene = normalize(raw, PayloadKind.ROOM, size_feet=14, now_ms=STAMP)
        assert scene.wall_color == "#cbd5e1"
        assert scene.floor_color == "#94a3b8"
        assert (scene.dimensions.width, scene.dimensions.depth) == (14, 14)
        assert scene.objects[0].id == f"room-obj-0-{STAMP}"
        assert scene.objects[1].id == "keep-me"
        assert scene.objects[0].position == [0.0, 0.0, 0.0]
        assert scene.objects[0].visible is True
        assert scene.objects[0].parts[0].dimensions == [1.0, 1.0, 1.0]

    def test_bad_position_replaced(self):
        scene = normalize('{"objects": [{"position": [1, "a"]}]}', PayloadKind.ROOM, now_ms=STAMP)
        assert scene.objects[0].position == [0.0, 0.0, 0.0]


class TestSingleObject:
    def test_spawn_position_and_rotation(self):
        raw = '{"name": "Toolbox", "position": [9, 9, 9], "rotation": 45, "parts": []}'
        obj = normalize(raw, PayloadKind.SINGLE_OBJECT, spawn_position=[1, 0, 2], now_ms=STAMP)
        assert obj.id == f"toolbox-{STAMP}"
        assert obj.position == [1, 0, 2]
        assert obj.rotation == 0
        assert obj.name == "Toolbox"


# --- Furniture layout ---


class TestFurnitureLayout:
    def test_array_with_defaults(self):
        furniture = normalize('[{"type": "desk"}, {}]', PayloadKind.FURNITURE_LAYOUT)
        assert furniture[0] == FurnitureDescriptor(type="desk")
        assert furniture[1].type == "generic"
        assert furniture[1].position.x == "center"
        assert furniture[1].position.z == "middle"
        assert furniture[1].size == "medium"

    def test_wrapped_in_object(self):
        furniture = normalize('{"furniture": [{"type": "bed"}]}', PayloadKind.FURNITURE_LAYOUT)
        assert [f.type for f in furniture] == ["bed"]

    def test_bad_values_replaced(self):
        raw = '[{"type": "rug", "size": "huge", "dimensions": {"width": -1, "height": 0, "depth": "wide"}}]'
        item = normalize(raw, PayloadKind.FURNITURE_LAYOUT)[0]
        assert item.size == "medium"
        assert (item.dimensions.width, item.dimensions.height, item.dimensions.depth) == (0.2, 0.2, 0.2)

    def test_zone_labels_kept_verbatim(self):
        item = normalize('[{"type": "lamp", "position": {"x": "Upstairs", "z": "back"}}]', PayloadKind.FURNITURE_LAYOUT)[0]
        assert item.position.x == "Upstairs"

    def test_scalar_is_malformed(self):
        with pytest.raises(MalformedOutputError):
            normalize('"a desk"', PayloadKind.FURNITURE_LAYOUT)

    def test_bracketed_count_in_commentary_skipped(self):
        raw = (
            'I found [2] items: [{"type": "desk", "position": {"x": "left", "z": "back"}}, '
            '{"type": "chair"}]'
        )
        furniture = normalize(raw, PayloadKind.FURNITURE_LAYOUT)
        assert [(f.type, f.position.x, f.position.z) for f in furniture] == [
            ("desk", "left", "back"),
            ("chair", "center", "middle"),
        ]

    def test_non_object_entries_dropped(self):
        furniture = normalize('[{"type": "desk"}, 3, "lamp", null]', PayloadKind.FURNITURE_LAYOUT)
        assert [f.type for f in furniture] == ["desk"]

    def test_room_state_skips_array_in_commentary(self):
        state = normalize('Colors [1, 2] noted. {"theme": "boho"}', PayloadKind.ROOM_STATE, now_ms=STAMP)
        assert state.theme == "boho"
