"""
Configuration Management.

Two sources, nothing hardcoded:

    config/.env               secrets only (DB_PASSWORD, REDIS_PASSWORD, JWT_SECRET)
    config/settings/*.yaml    one file per AppConfig section, validated on load

Both are located through the .project_root marker, so commands work from
any subdirectory of the checkout. Accessors are cached; tests that need a
different configuration patch get_app_config()/get_settings() instead of
editing files.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any
from urllib.parse import quote

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

from notesphere.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
    ObservabilitySchema,
    RetentionSchema,
    SecuritySchema,
)

PROJECT_MARKER = ".project_root"


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) to the directory holding .project_root."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / PROJECT_MARKER).exists():
            return candidate
    raise RuntimeError(f"Project root not found. Ensure {PROJECT_MARKER} file exists.")


def settings_dir() -> Path:
    return find_project_root() / "config" / "settings"


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load one YAML file from config/settings/. An empty file yields {}."""
    config_path = settings_dir() / filename
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    db_password: str
    redis_password: str
    jwt_secret: str

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig(BaseModel):
    """
    Validated YAML configuration.

    Every field is one section, loaded from config/settings/<field>.yaml
    and checked against its schema. A missing key, a wrong type or an
    unknown field fails at load time with the offending file named.
    """

    model_config = ConfigDict(frozen=True)

    application: ApplicationSchema
    database: DatabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    security: SecuritySchema
    retention: RetentionSchema
    observability: ObservabilitySchema

    @classmethod
    def load(cls) -> "AppConfig":
        sections: dict[str, BaseModel] = {}
        for name, field in cls.model_fields.items():
            filename = f"{name}.yaml"
            schema = field.annotation
            try:
                sections[name] = schema.model_validate(load_yaml_config(filename))
            except ValidationError as e:
                raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e
        return cls(**sections)


@lru_cache
def get_settings() -> Settings:
    """Cached secrets, read from <project root>/config/.env."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Cached application configuration."""
    return AppConfig.load()


def get_database_url() -> str:
    """
    Database URL from database.yaml plus DB_PASSWORD.

    For sqlite drivers `name` is the database file path and no secret
    is read.
    """
    db = get_app_config().database
    if db.is_sqlite:
        url = URL.create(db.driver, database=db.name)
    else:
        url = URL.create(
            db.driver,
            username=db.user,
            password=get_settings().db_password,
            host=db.host,
            port=db.port,
            database=db.name,
        )
    return url.render_as_string(hide_password=False)


def get_redis_url() -> str:
    """Redis URL for the taskiq broker."""
    redis = get_app_config().database.redis
    password = quote(get_settings().redis_password, safe="")
    return f"redis://:{password}@{redis.host}:{redis.port}/{redis.db}"
