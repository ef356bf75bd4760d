"""Configuration and environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent.parent / ".env"
if not _env_path.exists():
    _env_path = Path(__file__).parent / ".env"
load_dotenv(_env_path)

# --- API Keys ---
OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY", "")

# --- OpenRouter ---
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")

# Tried in order; earlier entries are preferred.
DEFAULT_MODELS = (
    "google/gemini-3-flash-preview",
    "meta-llama/llama-3.2-90b-vision-instruct:free",
    "anthropic/claude-3.5-sonnet",
)
OPENROUTER_MODELS = tuple(
    m.strip() for m in os.getenv("OPENROUTER_MODELS", ",".join(DEFAULT_MODELS)).split(",") if m.strip()
)
OPENROUTER_MAX_ATTEMPTS = int(os.getenv("OPENROUTER_MAX_ATTEMPTS", "3"))
OPENROUTER_BACKOFF_BASE = float(os.getenv("OPENROUTER_BACKOFF_BASE", "2.0"))
OPENROUTER_TIMEOUT = float(os.getenv("OPENROUTER_TIMEOUT", "120"))

# Attribution headers required by OpenRouter
APP_REFERER = os.getenv("APP_REFERER", "http://localhost:3000")
APP_TITLE = os.getenv("APP_TITLE", "Voxel Room Architect")

# --- Paths ---
PACKAGE_DATA_DIR = Path(__file__).parent / "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(Path(__file__).parent.parent / "data")))
ROOM_STATE_PATH = Path(os.getenv("ROOM_STATE_PATH", str(DATA_DIR / "room_state.json")))
CATALOG_PATH = Path(os.getenv("CATALOG_PATH", str(PACKAGE_DATA_DIR / "marketplace-products.json")))

# --- Scene ---
DEFAULT_ROOM_SIZE_FEET = int(os.getenv("DEFAULT_ROOM_SIZE_FEET", "10"))
