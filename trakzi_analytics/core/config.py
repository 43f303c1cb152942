from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App settings
    PROJECT_NAME: str = "TrakziAnalytics"
    API_PREFIX: str = "/api"
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: str = Field(default="INFO")

    # Period resolution
    REFERENCE_TIMEZONE: str = Field(default="UTC")
    ALIGN_PERIODS_TO_DAYS: bool = Field(default=True)
    TREND_EPSILON: float = Field(default=0.01)

    # Demo fixture
    FIXTURE_SEED: int = Field(default=1337)
    FIXTURE_DAYS: int = Field(default=180)
    REGENERATE_FIXTURE_HOUR: int = Field(default=0)  # cron hour, reference timezone
    SCHEDULER_ENABLED: bool = Field(default=True)

    # Bundle cache
    BUNDLE_CACHE_TTL_SECONDS: int = 5 * 60  # 5 minutes

    # External cache collaborator (AWS Lambda, async "Event" invocation)
    CACHE_INVALIDATION_FUNCTION: Optional[str] = Field(default=None)
    AWS_REGION: str = Field(default="eu-west-1")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    @property
    def reference_tz(self) -> ZoneInfo:
        return ZoneInfo(self.REFERENCE_TIMEZONE)


settings = Settings()
