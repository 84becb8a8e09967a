
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # ignore unrelated env vars instead of failing validation
    )

    env: str = Field(default="local", validation_alias="ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: list[str] = Field(default_factory=list, validation_alias="CORS_ORIGINS")
    data_path: str = Field(default="data/tarot-cards.json", validation_alias="DATA_PATH")
    use_db: bool = Field(default=False, validation_alias="USE_DB")
    db_url: str | None = Field(default=None, validation_alias="DB_URL")
    # Text generation
    gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
    llm_model: str = Field(default="gemini-1.5-flash-latest", validation_alias="LLM_MODEL")
    llm_max_output_tokens: int = Field(default=1024, validation_alias="LLM_MAX_OUTPUT_TOKENS")
    llm_temperature: float = Field(default=0.7, validation_alias="LLM_TEMPERATURE")
    llm_timeout_seconds: float = Field(default=20.0, validation_alias="LLM_TIMEOUT_SECONDS")
    # Abuse gate
    recaptcha_secret: str | None = Field(default=None, validation_alias="RECAPTCHA_SECRET")
    recaptcha_verify_url: str = Field(
        default="https://www.google.com/recaptcha/api/siteverify",
        validation_alias="RECAPTCHA_VERIFY_URL",
    )
    recaptcha_min_score: float = Field(default=0.5, validation_alias="RECAPTCHA_MIN_SCORE")
    recaptcha_timeout_seconds: float = Field(default=5.0, validation_alias="RECAPTCHA_TIMEOUT_SECONDS")
    # Sessions / identity
    session_jwt_secret: str | None = Field(default=None, validation_alias="SESSION_JWT_SECRET")
    session_jwt_audience: str = Field(default="authenticated", validation_alias="SESSION_JWT_AUDIENCE")
    session_cookie_name: str = Field(default="sb-access-token", validation_alias="SESSION_COOKIE_NAME")
    trust_forwarded_for: bool = Field(default=False, validation_alias="TRUST_FORWARDED_FOR")
    # Daily quota
    daily_free_readings: int = Field(default=1, ge=1, validation_alias="DAILY_FREE_READINGS")
    quota_timezone: str | None = Field(default=None, validation_alias="QUOTA_TIMEZONE")
    # Limits
    redis_url: str | None = Field(default=None, validation_alias="REDIS_URL")
    max_body_bytes: int = Field(default=65536, validation_alias="MAX_BODY_BYTES")
    rate_limit_enabled: bool = Field(default=True, validation_alias="RATE_LIMIT_ENABLED")
    rate_limit_default: str = Field(default="60/minute", validation_alias="RATE_LIMIT_DEFAULT")
    rate_limit_health: str = Field(default="5/second", validation_alias="RATE_LIMIT_HEALTH")
    rate_limit_cards: str = Field(default="120/minute", validation_alias="RATE_LIMIT_CARDS")
    rate_limit_reading_post: str = Field(default="10/minute", validation_alias="RATE_LIMIT_READING_POST")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @field_validator("env", mode="before")
    @classmethod
    def _validate_env(cls, v: str) -> str:
        if v is None:
            return "local"
        val = str(v).strip().lower()
        allowed = {"local", "dev", "prod"}
        if val not in allowed:
            raise ValueError(f"ENV must be one of {sorted(allowed)}")
        return val

    @field_validator("quota_timezone", mode="before")
    @classmethod
    def _validate_quota_timezone(cls, v):
        if v is None or str(v).strip() == "":
            return None
        val = str(v).strip()
        try:
            ZoneInfo(val)
        except (ZoneInfoNotFoundError, ValueError, OSError) as err:
            raise ValueError(f"QUOTA_TIMEZONE is not a known time zone: {val}") from err
        return val


settings = Settings()
