import os
from dataclasses import dataclass


def parse_flag(value: str | None, default: bool = False):
    """
    Parse an environment flag into a boolean.

    Args:
        value (str | None): Raw environment value.
        default (bool): Fallback when the value is empty.

    Returns:
        bool: Parsed flag.
    """
    if value is None:
        return default
    normalized = value.strip().lower()
    if not normalized:
        return default
    return normalized in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    env: str = "development"
    port: int = 5000
    base_url: str = "http://localhost:5000"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "movies_api"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    cache_enabled: bool = True
    cache_ttl_seconds: int = 600
    auth_token: str | None = None
    debug: bool = False


def load_settings():
    """
    Build the application settings from environment variables.

    Returns:
        Settings: Settings for the current process.
    """
    env = os.getenv("APP_ENV", "development")
    port = int(os.environ.get("PORT", 5000))

    mongo_db = os.getenv("MONGO_DB", "movies_api")
    if env == "test":
        mongo_db = f"{mongo_db}-test"

    return Settings(
        env=env,
        port=port,
        base_url=os.getenv("BASE_URL", f"http://localhost:{port}").rstrip("/"),
        mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=mongo_db,
        redis_host=os.environ.get("REDIS_HOST", "localhost"),
        redis_port=int(os.environ.get("REDIS_PORT", 6379)),
        redis_db=int(os.environ.get("REDIS_DB", 0)),
        cache_enabled=parse_flag(os.getenv("CACHE_ENABLED"), True),
        cache_ttl_seconds=int(os.environ.get("CACHE_TTL_SECONDS", 600)),
        auth_token=os.getenv("AUTH_TOKEN") or None,
        debug=parse_flag(os.getenv("DEBUG")),
    )
