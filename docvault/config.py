from pydantic_settings import BaseSettings
from pydantic import Field

class Settings(BaseSettings):
    app_name: str = "DocVault"
    app_env: str = Field("dev", alias="APP_ENV")
    database_url: str = Field("sqlite:///./docvault.db", alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    cors_origins: list[str] = Field(["*"], alias="CORS_ORIGINS")

    session_active_period_seconds: int = Field(60 * 60 * 24, alias="SESSION_ACTIVE_PERIOD_SECONDS")
    session_idle_period_seconds: int = Field(60 * 60 * 24 * 14, alias="SESSION_IDLE_PERIOD_SECONDS")
    session_sweep_interval_seconds: int = Field(60 * 60, alias="SESSION_SWEEP_INTERVAL_SECONDS")
    unify_credential_errors: bool = Field(False, alias="UNIFY_CREDENTIAL_ERRORS")

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_base_url: str | None = Field(default=None, alias="OPENAI_BASE_URL")
    analyzer_assistant_id: str | None = Field(default=None, alias="ANALYZER_ASSISTANT_ID")
    analysis_poll_interval_seconds: float = Field(2.0, alias="ANALYSIS_POLL_INTERVAL_SECONDS")
    analysis_max_poll_attempts: int = Field(150, alias="ANALYSIS_MAX_POLL_ATTEMPTS")
    analysis_max_input_chars: int = Field(25000, alias="ANALYSIS_MAX_INPUT_CHARS")

    max_upload_mb: int = Field(10, alias="MAX_UPLOAD_MB")

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() in ("dev", "development")

settings = Settings()
