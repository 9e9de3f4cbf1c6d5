import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = os.environ.get("ASSETFIND_DATA_DIR", str(BASE_DIR / "data"))
CATALOG_FILE = os.environ.get("ASSETFIND_CATALOG_FILE", "catalog.json")

# ---------- Search ----------
CANDIDATE_CAP = _env_int("ASSETFIND_CANDIDATE_CAP", 1200)
CACHE_TTL_SECONDS = _env_int("ASSETFIND_CACHE_TTL_SECONDS", 600)
CACHE_CAPACITY = _env_int("ASSETFIND_CACHE_CAPACITY", 200)
MIN_PAGE_SIZE = 10
MAX_PAGE_SIZE = 200
DEFAULT_PAGE_SIZE = _env_int("ASSETFIND_DEFAULT_PAGE_SIZE", 24)

# ---------- Files / logging ----------
CDN_BASE_URL = os.environ.get("ASSETFIND_CDN_BASE_URL", "")
LOG_LEVEL = os.environ.get("ASSETFIND_LOG_LEVEL", "INFO")
