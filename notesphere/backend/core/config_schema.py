"""
Configuration Schemas.

One top-level schema per file in config/settings/, named after the
AppConfig field it fills (application.yaml -> AppConfig.application).
All schemas forbid unknown keys, and numeric settings carry their bounds,
so a typo or a nonsensical value stops the process at load time.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Port = Annotated[int, Field(gt=0, lt=65536)]


class _StrictBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: Port


class CorsSchema(_StrictBase):
    origins: list[str] = Field(default_factory=list)


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str = Field(pattern=r"^/")
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema


# =============================================================================
# database.yaml
# =============================================================================


class BrokerSchema(_StrictBase):
    queue_name: str
    result_expiry_seconds: int = Field(gt=0)


class RedisSchema(_StrictBase):
    host: str
    port: Port
    db: int = Field(ge=0)
    broker: BrokerSchema


class InitRetrySchema(_StrictBase):
    """Startup connectivity retry: fixed wait between a bounded number of attempts."""

    attempts: int = Field(ge=1)
    wait_seconds: float = Field(ge=0)


class DatabaseSchema(_StrictBase):
    driver: str
    host: str
    port: Port
    name: str
    user: str
    pool_size: int = Field(ge=1)
    max_overflow: int = Field(ge=0)
    pool_timeout: int = Field(gt=0)
    pool_recycle: int
    echo: bool
    init_retry: InitRetrySchema
    redis: RedisSchema

    @property
    def is_sqlite(self) -> bool:
        return self.driver.startswith("sqlite")


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int = Field(gt=0)
    backup_count: int = Field(ge=0)


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    fulltext_search_enabled: bool
    retention_inprocess_sweeper_enabled: bool
    auth_registration_enabled: bool
    api_detailed_errors: bool


# =============================================================================
# security.yaml
# =============================================================================


class JwtSchema(_StrictBase):
    algorithm: Literal["HS256", "HS384", "HS512"]
    access_token_expire_minutes: int = Field(gt=0)
    audience: str = Field(min_length=1)
    issuer: str = Field(min_length=1)


class PasswordPolicySchema(_StrictBase):
    min_length: int = Field(ge=1)


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    passwords: PasswordPolicySchema


# =============================================================================
# retention.yaml
# =============================================================================


class RetentionSchema(_StrictBase):
    """Trash retention window, in-process sweep timing and the taskiq cron."""

    retention_days: int = Field(ge=1)
    initial_delay_seconds: float = Field(ge=0)
    interval_hours: float = Field(gt=0)
    scheduled_cron: str

    @field_validator("scheduled_cron")
    @classmethod
    def _five_field_cron(cls, value: str) -> str:
        if len(value.split()) != 5:
            raise ValueError("scheduled_cron must have five fields")
        return value


# =============================================================================
# observability.yaml
# =============================================================================


class HealthChecksSchema(_StrictBase):
    ready_timeout_seconds: float = Field(gt=0)


class ObservabilitySchema(_StrictBase):
    health_checks: HealthChecksSchema
