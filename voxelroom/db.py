"""Persisted RoomState — one JSON document, one slot, overwritten wholesale."""

import json
import logging
import os
import tempfile
from pathlib import Path

from .config import ROOM_STATE_PATH
from .models.schemas import RoomState

logger = logging.getLogger(__name__)

ROOM_STATE_KEY = "roomState"


def _path(path: Path | None) -> Path:
    return path or ROOM_STATE_PATH


def _read_store(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# room_state
# ---------------------------------------------------------------------------


def get_room_state(path: Path | None = None) -> RoomState | None:
    raw = _read_store(_path(path)).get(ROOM_STATE_KEY)
    return RoomState.model_validate(raw) if raw else None


def save_room_state(state: RoomState, path: Path | None = None) -> None:
    """Replace the stored room state. Last writer wins."""
    target = _path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {ROOM_STATE_KEY: state.model_dump(mode="json", by_alias=True)}

    fd, tmp_path = tempfile.mkstemp(dir=target.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        os.replace(tmp_path, target)
    finally:
        Path(tmp_path).unlink(missing_ok=True)
    logger.info("Saved room state %s (%d items) to %s", state.id, len(state.existing_items), target)


def clear_room_state(path: Path | None = None) -> None:
    _path(path).unlink(missing_ok=True)
