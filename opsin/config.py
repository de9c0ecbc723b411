"""Service configuration powered by environment variables."""
from __future__ import annotations

from functools import lru_cache
from typing import Any

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_CURRENT_API_VERSION,
    DEFAULT_LEGACY_API_VERSION,
    DEFAULT_TIMEOUT_SECONDS,
    ApiVersions,
    AzureConfig,
)

load_dotenv()


class Settings(BaseSettings):
    """Central service settings backed by environment variables."""

    azure_openai_endpoint: str = Field(default="", alias="AZURE_OPENAI_ENDPOINT")
    azure_openai_api_key: str = Field(default="", alias="AZURE_OPENAI_API_KEY")
    azure_openai_deployment: str = Field(default="", alias="AZURE_OPENAI_DEPLOYMENT")
    api_version: str = Field(default=DEFAULT_CURRENT_API_VERSION, alias="AZURE_OPENAI_API_VERSION")
    legacy_api_version: str = Field(default=DEFAULT_LEGACY_API_VERSION, alias="AZURE_OPENAI_LEGACY_API_VERSION")
    request_timeout: float = Field(default=DEFAULT_TIMEOUT_SECONDS, alias="AZURE_OPENAI_TIMEOUT")
    analysis_max_tokens: int = Field(default=800, alias="OPSIN_ANALYSIS_MAX_TOKENS")
    analysis_temperature: float = Field(default=0.3, alias="OPSIN_ANALYSIS_TEMPERATURE")
    analysis_top_p: float = Field(default=0.95, alias="OPSIN_ANALYSIS_TOP_P")
    batch_delay: float = Field(default=DEFAULT_BATCH_DELAY_SECONDS, alias="OPSIN_BATCH_DELAY")
    batch_concurrency: int = Field(default=1, alias="OPSIN_BATCH_CONCURRENCY")
    api_key: str = Field(default="", alias="OPSIN_SERVICE_API_KEY")
    server_host: str = Field(default="0.0.0.0", alias="SERVER_HOST")
    server_port: int = Field(default=8000, alias="SERVER_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    def model_post_init(self, __context: Any) -> None:
        """Normalize values that operators commonly paste with stray whitespace."""
        self.azure_openai_endpoint = self.azure_openai_endpoint.strip()
        self.azure_openai_deployment = self.azure_openai_deployment.strip()
        self.api_version = self.api_version.strip() or DEFAULT_CURRENT_API_VERSION
        self.legacy_api_version = self.legacy_api_version.strip() or DEFAULT_LEGACY_API_VERSION
        if self.batch_concurrency < 1:
            self.batch_concurrency = 1

    @property
    def has_azure_credentials(self) -> bool:
        return bool(
            self.azure_openai_endpoint
            and self.azure_openai_api_key
            and self.azure_openai_deployment
        )

    @property
    def azure_config(self) -> AzureConfig:
        """Return the Azure connection settings as an explicit configuration value."""
        return AzureConfig(
            endpoint=self.azure_openai_endpoint,
            api_key=self.azure_openai_api_key,
            deployment_name=self.azure_openai_deployment,
        )

    @property
    def api_versions(self) -> ApiVersions:
        return ApiVersions(current=self.api_version, legacy=self.legacy_api_version)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
