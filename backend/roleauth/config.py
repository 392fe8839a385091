import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

ROLE_CACHE_BACKENDS = frozenset({"redis", "memory"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


class Settings(BaseModel):
    app_name: str = Field(default="roleauth")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    redis_url: str = Field(default="redis://localhost:6379/0")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    role_cache_backend: str = Field(default="redis")
    role_cache_ttl_seconds: int = Field(default=0)
    role_cache_prefix: str = Field(default="role")
    space_max_hops: int = Field(default=8)
    space_class_name: str = Field(default="UBClassRoom")

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        redis_url = os.getenv("REDIS_URL", cls.model_fields["redis_url"].default).strip()
        if urlparse(redis_url).scheme not in {"redis", "rediss"}:
            raise ValueError("REDIS_URL must start with 'redis://' or 'rediss://'")

        db_pool_size = _parse_int("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default)
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = _parse_int(
            "DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = _parse_int(
            "DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)),
        )

        role_cache_backend = os.getenv(
            "ROLE_CACHE_BACKEND", cls.model_fields["role_cache_backend"].default
        ).strip().lower()
        if role_cache_backend not in ROLE_CACHE_BACKENDS:
            raise ValueError(
                "ROLE_CACHE_BACKEND must be one of: "
                + ", ".join(sorted(ROLE_CACHE_BACKENDS))
            )

        role_cache_ttl_seconds = _parse_int(
            "ROLE_CACHE_TTL_SECONDS", cls.model_fields["role_cache_ttl_seconds"].default
        )
        if role_cache_ttl_seconds < 0:
            raise ValueError("ROLE_CACHE_TTL_SECONDS must be greater than or equal to 0")

        role_cache_prefix = os.getenv(
            "ROLE_CACHE_PREFIX", cls.model_fields["role_cache_prefix"].default
        ).strip()
        if not role_cache_prefix:
            raise ValueError("ROLE_CACHE_PREFIX must not be empty")

        # Pointer chases follow post -> space containment; a deeper chain
        # is treated as malformed data.
        space_max_hops = _parse_int("SPACE_MAX_HOPS", cls.model_fields["space_max_hops"].default)
        if space_max_hops < 1:
            raise ValueError("SPACE_MAX_HOPS must be at least 1")

        space_class_name = os.getenv(
            "SPACE_CLASS_NAME", cls.model_fields["space_class_name"].default
        ).strip()
        if not space_class_name:
            raise ValueError("SPACE_CLASS_NAME must not be empty")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=_parse_bool("DEBUG", os.getenv("DEBUG", "false")),
            database_url=database_url,
            redis_url=redis_url,
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
            role_cache_backend=role_cache_backend,
            role_cache_ttl_seconds=role_cache_ttl_seconds,
            role_cache_prefix=role_cache_prefix,
            space_max_hops=space_max_hops,
            space_class_name=space_class_name,
        )


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Validation runs on first access rather than at import, so modules that
    only need the resolution engine can be imported without a configured
    environment.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
