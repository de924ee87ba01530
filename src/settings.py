"""Configuration for Reddit Image Translator."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = BASE_DIR / "logs"
LOGS_DIR.mkdir(exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")
LOG_FILE = Path(os.getenv("LOG_FILE", str(LOGS_DIR / "translator.log")))
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))

# Reddit
REDDIT_CLIENT_ID = os.getenv("REDDIT_CLIENT_ID")
REDDIT_CLIENT_SECRET = os.getenv("REDDIT_CLIENT_SECRET")
REDDIT_REFRESH_TOKEN = os.getenv("REDDIT_REFRESH_TOKEN")
REDDIT_USER_AGENT = os.getenv("REDDIT_USER_AGENT", "reddit-image-translator/0.1")
REDDIT_USERNAME = os.getenv("REDDIT_USERNAME")
SUBREDDIT = os.getenv("SUBREDDIT", "testingground4bots")
STREAM_LIMIT = int(os.getenv("STREAM_LIMIT", "25"))
COMMENT_HISTORY_LIMIT = int(os.getenv("COMMENT_HISTORY_LIMIT", "100"))

# Translation service
TRANSLATION_API_URL = os.getenv("TRANSLATION_API_URL", "http://localhost:3001/translate")
TRANSLATION_API_KEY = os.getenv("TRANSLATION_API_KEY")

# Image hosting
IMGUR_CLIENT_ID = os.getenv("IMGUR_CLIENT_ID")

# Timers (seconds)
POLL_INTERVAL = int(os.getenv("POLL_INTERVAL", "600"))
PROCESS_INTERVAL = int(os.getenv("PROCESS_INTERVAL", "1200"))
SUBMISSION_AGE_LIMIT = int(os.getenv("SUBMISSION_AGE_LIMIT", str(24 * 60 * 60)))
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
REFRESH_WORKERS = int(os.getenv("REFRESH_WORKERS", "8"))

# Eligibility
MIN_VIEW_COUNT = int(os.getenv("MIN_VIEW_COUNT", "100"))
MIN_IMAGE_DIMENSION = int(os.getenv("MIN_IMAGE_DIMENSION", "375"))
SUPPORTED_HOSTNAMES = frozenset(
    h.strip() for h in os.getenv(
        "SUPPORTED_HOSTNAMES",
        "i.redd.it,preview.redd.it,external-preview.redd.it,i.imgur.com",
    ).split(",") if h.strip()
)
SUPPORTED_LANGUAGES = frozenset(
    lang.strip() for lang in os.getenv("SUPPORTED_LANGUAGES", "jp,kr,cn").split(",") if lang.strip()
)

# Rendering
FONT_PATH = os.getenv("FONT_PATH", str(BASE_DIR / "fonts" / "Bangers-Regular.ttf"))
MAX_FONT_SIZE = int(os.getenv("MAX_FONT_SIZE", "300"))
MIN_FONT_SIZE = int(os.getenv("MIN_FONT_SIZE", "8"))
BUBBLE_RADIUS = int(os.getenv("BUBBLE_RADIUS", "10"))
LINE_HEIGHT_MULTIPLIER = 1.375
FONT_SHRINK_FACTOR = 0.75


def validate_config():
    """Validate required configuration."""
    errors = []

    for name in ("REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "REDDIT_REFRESH_TOKEN", "REDDIT_USERNAME"):
        if not globals()[name]:
            errors.append(f"{name} is required")

    if not TRANSLATION_API_KEY:
        errors.append("TRANSLATION_API_KEY is required")

    if not IMGUR_CLIENT_ID:
        errors.append("IMGUR_CLIENT_ID is required")

    if MIN_FONT_SIZE < 1 or MIN_FONT_SIZE > MAX_FONT_SIZE:
        errors.append(f"MIN_FONT_SIZE must be between 1 and MAX_FONT_SIZE ({MAX_FONT_SIZE}): {MIN_FONT_SIZE}")

    if PROCESS_INTERVAL <= 0 or POLL_INTERVAL <= 0:
        errors.append("POLL_INTERVAL and PROCESS_INTERVAL must be positive")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
