from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache

class Settings(BaseSettings):
    SLACK_BOT_TOKEN: str = Field(..., description="Slack Bot User OAuth Token (xoxb-...)")
    SLACK_APP_TOKEN: str = Field(..., description="Slack App-Level Token for Socket Mode (xapp-...)")
    DEBUG: bool = Field(False, description="Force DEBUG logging and Socket Mode trace output")
    LOG_LEVEL: str = "INFO"

    TITLE_REQUEST_TIMEOUT: float = Field(10.0, gt=0, description="Seconds per title lookup request")
    TITLE_REQUEST_RETRIES: int = Field(2, ge=1, description="Attempts per title lookup on transport errors")
    REPLIES_PAGE_LIMIT: int = Field(1000, ge=1, le=1000, description="conversations.replies page size")
    EVENT_POLL_INTERVAL: float = Field(1.0, gt=0, description="Seconds the event loop waits before re-checking shutdown")

    # MLflow settings
    MLFLOW_TRACKING_URI: str = Field("http://127.0.0.1:5000", description="MLflow tracking server URI")
    MLFLOW_ENABLE_TRACING: bool = Field(False, description="Enable MLflow tracing")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @field_validator("SLACK_BOT_TOKEN")
    @classmethod
    def _check_bot_token(cls, v: str) -> str:
        if not v.startswith("xoxb-"):
            raise ValueError("mandatory prefix is missing, prefix: xoxb-")
        return v

    @field_validator("SLACK_APP_TOKEN")
    @classmethod
    def _check_app_token(cls, v: str) -> str:
        if not v.startswith("xapp-"):
            raise ValueError("mandatory prefix is missing, prefix: xapp-")
        return v

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()

@lru_cache()
def get_settings() -> Settings:
    return Settings()
