# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field, model_validator
from pydantic_settings import BaseSettings
from util.enums import Environment
import logging


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()

_log = logging.getLogger("config.settings")


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(default=Environment.DEV, validation_alias="APP_ENV")
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    REDIS_SOCKET_TIMEOUT_SECONDS: float = Field(
        default=5.0, validation_alias="REDIS_SOCKET_TIMEOUT_SECONDS"
    )

    # Vimeo
    VIMEO_TOKEN: str = Field(..., validation_alias="VIMEO_TOKEN")
    VIMEO_FOLDER_ID: str = Field(default="", validation_alias="VIMEO_FOLDER_ID")
    VIMEO_DEFAULT_PRIVACY: str = Field(
        default="unlisted", validation_alias="VIMEO_DEFAULT_PRIVACY"
    )
    VIMEO_API_URL: str = "https://api.vimeo.com"
    VIMEO_WEB_URL: str = "https://vimeo.com"
    VIMEO_ACCEPT: str = "application/vnd.vimeo.*+json;version=3.4"
    VIMEO_TIMEOUT_SECONDS: float = Field(
        default=15.0, validation_alias="VIMEO_TIMEOUT_SECONDS"
    )

    # Pending upload lifecycle
    UPLOAD_PENDING_TTL_SECONDS: int = Field(
        default=7 * 24 * 60 * 60, validation_alias="UPLOAD_PENDING_TTL_SECONDS"
    )
    CONFIRMED_TTL_SECONDS: int = Field(
        default=30 * 24 * 60 * 60, validation_alias="CONFIRMED_TTL_SECONDS"
    )
    SWEEP_DEFAULT_MINUTES: float = Field(
        default=24 * 60, validation_alias="SWEEP_DEFAULT_MINUTES"
    )
    SWEEP_DEFAULT_LIMIT: int = Field(default=25, validation_alias="SWEEP_DEFAULT_LIMIT")
    SWEEP_CONCURRENCY: int = Field(default=4, validation_alias="SWEEP_CONCURRENCY")
    CRON_SECRET: str = Field(default="", validation_alias="CRON_SECRET")

    # CORS & Limits
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        validation_alias="ALLOWED_ORIGINS",
    )
    RATE_LIMIT_ENABLED: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    RATE_LIMIT_TIMES: int = Field(default=30, validation_alias="RATE_LIMIT_TIMES")
    RATE_LIMIT_SECONDS: int = Field(default=60, validation_alias="RATE_LIMIT_SECONDS")
    TRUST_PROXY: bool = Field(default=False, validation_alias="TRUST_PROXY")

    # Logging knobs
    LOGGER_NAME: str = "upload-relay"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="app.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=50 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")

    @model_validator(mode="after")
    def _ttl_outlives_sweep(self) -> "Settings":
        # The sweeper must see a record before Redis drops it.
        if self.UPLOAD_PENDING_TTL_SECONDS <= self.SWEEP_DEFAULT_MINUTES * 60:
            raise ValueError(
                "UPLOAD_PENDING_TTL_SECONDS must be longer than SWEEP_DEFAULT_MINUTES"
            )
        if self.SWEEP_DEFAULT_LIMIT <= 0 or self.SWEEP_CONCURRENCY <= 0:
            raise ValueError("SWEEP_DEFAULT_LIMIT and SWEEP_CONCURRENCY must be positive")
        return self

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]


try:
    settings = Settings()
except ValidationError as e:
    print("❌ Missing/invalid environment variables:", file=sys.stderr)
    for err in e.errors():
        loc = ".".join(str(x) for x in err.get("loc", []))
        msg = err.get("msg", "")
        print(f" - {loc}: {msg}", file=sys.stderr)
    sys.exit(1)
except Exception as e:
    print(f"❌ Settings initialization failed: {e}", file=sys.stderr)
    sys.exit(1)
