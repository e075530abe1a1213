# standup_sync/core/config.py
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables at runtime.

    These settings cover:
    - DB connection
    - Callable functions endpoint (feedback summary, admin role, deletion)
    - Internal API key shared with the upstream auth proxy
    - Spreadsheet sync webhook
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Standup Sync"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the service.")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./standup_sync.db",
        description="SQLAlchemy-compatible database URL",
    )

    TIMEZONE: str = Field(
        "Asia/Kolkata",
        description="Timezone used to decide what 'today' is for sessions.",
    )

    INTERNAL_API_KEY: str | None = Field(
        default=None,
        description=(
            "Key the upstream auth proxy must present in X-Internal-Api-Key "
            "alongside the identity headers."
        ),
    )

    FUNCTIONS_BASE_URL: AnyHttpUrl | None = Field(
        default=None,
        description=(
            "Base URL of the callable functions deployment, e.g. "
            "https://us-central1-project.cloudfunctions.net"
        ),
    )
    FUNCTIONS_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Timeout for a single callable function invocation.",
    )

    SHEET_SYNC_URL: AnyHttpUrl | None = Field(
        default=None,
        description="Webhook receiving attendance records after a session ends.",
    )

    REQUIRE_ADMIN_APPROVAL: bool = Field(
        default=False,
        description="New non-admin profiles wait for an admin to approve them.",
    )

    # --- Standup automation ---
    STANDUP_AUTOMATION_ENABLED: bool = Field(
        default=False,
        description=(
            "Run the daily standup schedule/start/end loop inside the service. "
            "When disabled, a scheduler can call /internal/standups/automation-tick."
        ),
    )
    STANDUP_AUTOMATION_INTERVAL_SECONDS: float = Field(
        default=60.0,
        description="Seconds between automation ticks of the in-process loop.",
    )
    STANDUP_AUTO_START_TIME: str = Field(
        default="09:00",
        description="Local HH:MM at which the automated standup starts.",
    )
    STANDUP_AUTO_DURATION_MINUTES: int = Field(
        default=15,
        description="Minutes after the start at which the automated standup ends.",
    )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
