"""Server configuration."""

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpstreamConfig(BaseModel):
    """Connection settings for the upstream profile/event store."""

    api_key: str
    base_url: str = "https://a.klaviyo.com/api"
    revision: str = "2024-10-15"
    timeout: float = 20.0


class Settings(BaseSettings):
    """Server settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Upstream store
    klaviyo_private_api_key: str = ""
    klaviyo_api_base: str = "https://a.klaviyo.com/api"
    klaviyo_revision: str = "2024-10-15"
    upstream_timeout: float = 20.0

    # Server
    allowed_origin: str = "*"
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    log_level: str = "INFO"

    def upstream(self) -> UpstreamConfig:
        """Build the upstream connection config."""
        return UpstreamConfig(
            api_key=self.klaviyo_private_api_key,
            base_url=self.klaviyo_api_base,
            revision=self.klaviyo_revision,
            timeout=self.upstream_timeout,
        )


settings = Settings()
