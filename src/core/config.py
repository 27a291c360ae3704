import os
from typing import Self
from pydantic import BaseModel, Field, model_validator, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, EnvSettingsSource
from dotenv import load_dotenv

load_dotenv()


class DbSettings(BaseModel):
    url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", "").strip())
    echo: bool = Field(default_factory=lambda: os.getenv("DB_ECHO", "false").strip().lower() in {"1", "true", "yes"})

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.url:
            raise ValueError("DATABASE_URL environment variable must be set.")
        return self


class CelerySettings(BaseModel):
    broker_url: str = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend: str = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")


class InstagramSettings(BaseModel):
    access_token: str = Field(default_factory=lambda: os.getenv("INSTA_TOKEN", "").strip())
    api_version: str = Field(default_factory=lambda: os.getenv("INSTAGRAM_API_VERSION", "v23.0").strip() or "v23.0")
    # Derived from api_version unless set explicitly
    base_url: str = ""
    base_account_id: str = os.getenv("INSTAGRAM_BASE_ACC_ID", os.getenv("INSTAGRAM_BASE_ACCOUNT_ID", "")).strip()
    insights_rate_limit_per_hour: int = int(os.getenv("INSTAGRAM_INSIGHTS_RATE_LIMIT_PER_HOUR", "200"))
    insights_rate_period_seconds: int = int(os.getenv("INSTAGRAM_INSIGHTS_RATE_PERIOD_SECONDS", "3600"))
    request_timeout_seconds: float = float(os.getenv("INSTAGRAM_REQUEST_TIMEOUT_SECONDS", "30"))

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.access_token:
            raise ValueError("INSTA_TOKEN environment variable must be set.")
        if not self.base_url:
            self.base_url = f"https://graph.instagram.com/{self.api_version}"
        return self


class MetricsSettings(BaseModel):
    store_timeout_seconds: float = Field(
        default_factory=lambda: float(os.getenv("METRICS_STORE_TIMEOUT_SECONDS", "10"))
    )
    allowed_windows: list[int] = Field(
        default_factory=lambda: os.getenv("METRICS_ALLOWED_WINDOWS", "30,60,90"),
        validate_default=True,
    )
    ingest_hour_utc: int = Field(default_factory=lambda: int(os.getenv("METRICS_INGEST_HOUR_UTC", "0")))

    @field_validator("allowed_windows", mode="before")
    @classmethod
    def _parse_windows(cls, value):
        if value is None:
            return [30, 60, 90]
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",") if item.strip()]
            return [int(item) for item in items] or [30, 60, 90]
        if isinstance(value, (list, tuple, set)):
            return sorted(int(item) for item in value) or [30, 60, 90]
        raise ValueError("Invalid METRICS_ALLOWED_WINDOWS format; provide comma-separated integers.")

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if self.store_timeout_seconds <= 0:
            raise ValueError("METRICS_STORE_TIMEOUT_SECONDS must be greater than zero.")
        if any(window <= 0 for window in self.allowed_windows):
            raise ValueError("METRICS_ALLOWED_WINDOWS must contain positive day counts only.")
        if not 0 <= self.ingest_hour_utc <= 23:
            raise ValueError("METRICS_INGEST_HOUR_UTC must be between 0 and 23.")
        return self


class DocsSettings(BaseModel):
    username: str = os.getenv("DOCS_USERNAME", "")
    password: str = os.getenv("DOCS_PASSWORD", "")


class JsonApiSettings(BaseModel):
    secret_key: str = Field(default_factory=lambda: os.getenv("JWT_SECRET_KEY", "").strip())
    algorithm: str = Field(default_factory=lambda: os.getenv("JWT_ALGORITHM", "HS256").strip() or "HS256")

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.secret_key:
            raise ValueError("JWT_SECRET_KEY environment variable must be set.")
        if not self.algorithm:
            raise ValueError("JWT_ALGORITHM environment variable must be set.")
        return self


class RelaxedEnvSettingsSource(EnvSettingsSource):
    def decode_complex_value(self, field_name, field, value):
        try:
            return super().decode_complex_value(field_name, field, value)
        except Exception:
            return value


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")
    api_v1_prefix: str = "/api/v1"
    cors_allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = Field(default=False)
    db: DbSettings = DbSettings()
    celery: CelerySettings = CelerySettings()
    instagram: InstagramSettings = InstagramSettings()
    metrics: MetricsSettings = MetricsSettings()
    docs: DocsSettings = DocsSettings()
    json_api: JsonApiSettings = JsonApiSettings()

    @field_validator("cors_allowed_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, value):
        if value is None:
            return ["*"]
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return ["*"]
            if stripped == "*":
                return ["*"]
            return [item.strip() for item in stripped.split(",") if item.strip()]
        if isinstance(value, (list, tuple, set)):
            origins = [str(item).strip() for item in value if str(item).strip()]
            return origins or ["*"]
        raise ValueError("Invalid cors_allowed_origins format; provide comma-separated string or list.")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            RelaxedEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
