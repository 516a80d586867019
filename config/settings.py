# config/settings.py
import os
import sys
from dotenv import load_dotenv
from pydantic import ValidationError, Field
from pydantic_settings import BaseSettings
from util.enums import Environment


if os.getenv("APP_ENV", Environment.DEV) == Environment.DEV:
    load_dotenv()


class Settings(BaseSettings):
    # App
    APP_ENV: str = Field(..., validation_alias="APP_ENV")
    STRICT_ASSERTS: bool = Field(default=False, validation_alias="STRICT_ASSERTS")

    # Value store
    REDIS_URL: str = Field(..., validation_alias="REDIS_URL")
    STORE_KEY_PREFIX: str = Field(default="Software", validation_alias="STORE_KEY_PREFIX")
    STORE_READ_ONLY: bool = Field(default=False, validation_alias="STORE_READ_ONLY")
    SUPPLEMENTARY_BRAND: str = Field(default="", validation_alias="SUPPLEMENTARY_BRAND")
    STORE_SOCKET_TIMEOUT_SECONDS: float = Field(
        default=5.0, validation_alias="STORE_SOCKET_TIMEOUT_SECONDS"
    )

    # Store lock
    LOCK_TIMEOUT_SECONDS: float = Field(default=30.0, validation_alias="LOCK_TIMEOUT_SECONDS")
    LOCK_BLOCKING_TIMEOUT_SECONDS: float = Field(
        default=5.0, validation_alias="LOCK_BLOCKING_TIMEOUT_SECONDS"
    )

    # Financial ping
    PING_SERVER_URL: str = Field(
        default="http://clients1.google.com:80", validation_alias="PING_SERVER_URL"
    )
    PING_USER_AGENT: str = "Mozilla/4.0 (compatible; Win32)"
    PING_TIMEOUT_SECONDS: float = Field(default=300.0, validation_alias="PING_TIMEOUT_SECONDS")
    PING_INTERVAL_EVENTS_SECONDS: int = Field(
        default=24 * 3600, validation_alias="PING_INTERVAL_EVENTS_SECONDS"
    )
    PING_INTERVAL_NO_EVENTS_SECONDS: int = Field(
        default=7 * 24 * 3600, validation_alias="PING_INTERVAL_NO_EVENTS_SECONDS"
    )

    # Opaque machine identifier; unset means "not available on this platform"
    MACHINE_ID: str = Field(default="", validation_alias="MACHINE_ID")

    # Logging knobs
    LOGGER_NAME: str = "rlz"
    LOG_LEVEL: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    LOG_TO_FILE: bool = Field(default=False, validation_alias="LOG_TO_FILE")
    LOG_DIR: str = Field(default="logs", validation_alias="LOG_DIR")
    LOG_FILE_NAME: str = Field(default="rlz.log", validation_alias="LOG_FILE_NAME")
    LOG_MAX_BYTES: int = Field(
        default=10 * 1024 * 1024, validation_alias="LOG_MAX_BYTES"
    )
    LOG_BACKUP_COUNT: int = Field(default=5, validation_alias="LOG_BACKUP_COUNT")


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
