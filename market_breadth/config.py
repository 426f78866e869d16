# market_breadth/config.py
import os
from dataclasses import dataclass
from dotenv import load_dotenv

from market_breadth.breadth.bucketer import max_window_minutes

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()

# Default universe: the fixed allow-list served by /api/stocks.
DEFAULT_UNIVERSE_IDS = (
    3499, 4306, 10604, 1363, 13538, 11723, 5097, 25, 2475, 1594, 2031,
    16669, 1964, 11483, 1232, 7229, 2885, 16675, 11536, 10999, 18143, 3432,
    3506, 467, 910, 3787, 15083, 21808, 1660, 3045, 157, 881, 4963, 383, 317,
    11532, 11630, 3351, 14977, 1922, 5258, 5900, 17963, 1394, 1333, 1348, 694,
    236, 3456,
)

DEFAULT_CLIENT_URL = "http://localhost:5173"


@dataclass(frozen=True)
class Settings:
    # App config
    app_env: str
    log_level: str
    host: str
    port: int

    # Record source
    record_source: str
    mongo_uri: str
    mongo_db_name: str
    mongo_collection: str
    fetch_timeout_seconds: float

    # Breadth pipeline
    window_minutes: int
    bucket_minutes: int
    universe_ids: tuple[int, ...]

    # HTTP edge
    allowed_origins: list[str]
    rate_limit_enabled: bool
    rate_limit_max_requests: int
    rate_limit_window_seconds: int
    trust_forwarded_for: bool


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if minimum is not None and value < minimum:
        raise RuntimeError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_ids(raw: str) -> tuple[int, ...]:
    ids = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            ids.append(int(item))
        except ValueError:
            raise RuntimeError(f"UNIVERSE_SECURITY_IDS has a non-integer entry: {item!r}")
    return tuple(ids)


def _allowed_origins() -> list[str]:
    origins = [os.getenv("CLIENT_URL", DEFAULT_CLIENT_URL).strip()]
    extra = os.getenv("ALLOWED_ORIGINS", "")
    for item in extra.split(","):
        item = item.strip()
        if item and item not in origins:
            origins.append(item)
    return [o for o in origins if o]


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    """
    record_source = os.getenv("RECORD_SOURCE", "MONGO").strip().upper()
    mongo_uri = os.getenv("MONGO_URI", "").strip()
    mongo_db_name = os.getenv("MONGO_DB_NAME", "").strip()

    if record_source == "MONGO" and (not mongo_uri or not mongo_db_name):
        raise RuntimeError("Missing MongoDB configuration. Set MONGO_URI and MONGO_DB_NAME in .env")

    raw_ids = os.getenv("UNIVERSE_SECURITY_IDS", "").strip()
    universe_ids = _parse_ids(raw_ids) if raw_ids else DEFAULT_UNIVERSE_IDS

    try:
        fetch_timeout = float(os.getenv("FETCH_TIMEOUT_SECONDS", "10"))
    except ValueError:
        raise RuntimeError("FETCH_TIMEOUT_SECONDS must be a number")

    window_minutes = _env_int("WINDOW_MINUTES", 60, minimum=1)
    bucket_minutes = _env_int("BUCKET_MINUTES", 1, minimum=1)
    # "HH:MM" labels carry no date, so the window must stay under a day.
    if window_minutes > max_window_minutes(bucket_minutes):
        raise RuntimeError(
            f"WINDOW_MINUTES must be <= {max_window_minutes(bucket_minutes)} "
            f"with BUCKET_MINUTES={bucket_minutes}, got {window_minutes}"
        )

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000, minimum=1),
        record_source=record_source,
        mongo_uri=mongo_uri,
        mongo_db_name=mongo_db_name,
        mongo_collection=os.getenv("MONGO_COLLECTION", "nse_equity"),
        fetch_timeout_seconds=fetch_timeout,
        window_minutes=window_minutes,
        bucket_minutes=bucket_minutes,
        universe_ids=universe_ids,
        allowed_origins=_allowed_origins(),
        rate_limit_enabled=_env_bool("RATE_LIMIT_ENABLED", True),
        rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 100, minimum=0),
        rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60, minimum=1),
        trust_forwarded_for=_env_bool("TRUST_FORWARDED_FOR", False),
    )
