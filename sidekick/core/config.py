from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "sidekick"
    env: str = "development"
    log_level: str = "INFO"

    endpoints: str = ""
    metrics_namespace: str = "sidekick"
    include_default_metrics: bool = True

    latency_max_age_seconds: int = 600
    latency_age_buckets: int = 5

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", extra="ignore")

    @model_validator(mode="after")
    def validate_metrics_settings(self) -> "Settings":
        seen: set[str] = set()
        for endpoint in self.endpoint_list:
            if endpoint in seen:
                raise ValueError(f"endpoint {endpoint!r} configured more than once")
            seen.add(endpoint)
        if self.latency_max_age_seconds <= 0:
            raise ValueError("LATENCY_MAX_AGE_SECONDS must be positive")
        if self.latency_age_buckets <= 0:
            raise ValueError("LATENCY_AGE_BUCKETS must be positive")
        return self

    @property
    def endpoint_list(self) -> list[str]:
        return [e.strip() for e in self.endpoints.split(",") if e.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
