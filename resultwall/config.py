"""Configuration: env, data paths, sequencer timing, feed polling."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of resultwall package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so RESULTWALL_* overrides are set
load_dotenv(BASE_DIR / ".env")

DATA_DIR = Path(os.getenv("RESULTWALL_DATA_DIR", str(BASE_DIR / "data")))
RESULTS_PATH = DATA_DIR / "results.json"

# API
API_HOST = os.getenv("RESULTWALL_API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("RESULTWALL_API_PORT", "8000"))

# Announcement pacing (seconds)
PRESENTATION_SEC = float(os.getenv("RESULTWALL_PRESENTATION_SEC", "4.0"))
COOLDOWN_SEC = float(os.getenv("RESULTWALL_COOLDOWN_SEC", "1.0"))
# Upper bound on waiting for an image before presenting without it
ASSET_WAIT_TIMEOUT_SEC = float(os.getenv("RESULTWALL_ASSET_WAIT_TIMEOUT_SEC", "10.0"))
ASSET_FETCH_TIMEOUT_SEC = float(os.getenv("RESULTWALL_ASSET_FETCH_TIMEOUT_SEC", "8.0"))

# Gallery strip
HISTORY_CAPACITY = int(os.getenv("RESULTWALL_HISTORY_CAPACITY", "10"))
INITIAL_LOAD_LIMIT = int(os.getenv("RESULTWALL_INITIAL_LOAD_LIMIT", "10"))

# Change feed
FEED_POLL_INTERVAL_SEC = float(os.getenv("RESULTWALL_FEED_POLL_INTERVAL_SEC", "2.0"))

# Scores run 0..10; 10 is a full A+ sweep
MIN_SCORE = 0
PERFECT_SCORE = 10


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
