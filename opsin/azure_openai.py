"""Azure OpenAI chat client bundling transport, API versions and request options."""
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, List, Optional, Sequence

from . import analysis, connection
from .diagnostics import RequestPreview, describe_request
from .models import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    ApiCallResult,
    ApiVersions,
    AzureConfig,
    BatchItemResult,
    ConnectionTestResult,
    PhotoInput,
)
from .transport import Transport
from .validation import validate_config

if TYPE_CHECKING:
    from .config import Settings


class AzureChatClient:
    """Stateless entry point used by the service layer.

    Every method takes the configuration explicitly; the client only keeps
    the options it was constructed with, so one instance may be shared
    between concurrent callers.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        versions: ApiVersions = connection.DEFAULT_VERSIONS,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_tokens: int = analysis.DEFAULT_MAX_TOKENS,
        temperature: float = analysis.DEFAULT_TEMPERATURE,
        top_p: Optional[float] = analysis.DEFAULT_TOP_P,
    ) -> None:
        self.transport = transport
        self.versions = versions
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.top_p = top_p

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[Transport] = None) -> "AzureChatClient":
        return cls(
            transport=transport,
            versions=settings.api_versions,
            timeout=settings.request_timeout,
            max_tokens=settings.analysis_max_tokens,
            temperature=settings.analysis_temperature,
            top_p=settings.analysis_top_p,
        )

    def validate(self, config: AzureConfig) -> None:
        validate_config(config)

    def test_connection(self, config: AzureConfig, capture_diagnostics: bool = False) -> ConnectionTestResult:
        return connection.run_connection_test(
            config,
            transport=self.transport,
            versions=self.versions,
            timeout=self.timeout,
            capture_diagnostics=capture_diagnostics,
        )

    def test_connection_detailed(self, config: AzureConfig) -> ConnectionTestResult:
        return connection.run_detailed_test(
            config, transport=self.transport, versions=self.versions, timeout=self.timeout
        )

    def test_legacy_compatibility(
        self, config: AzureConfig, capture_diagnostics: bool = False
    ) -> ConnectionTestResult:
        return connection.run_legacy_compatibility_test(
            config,
            transport=self.transport,
            versions=self.versions,
            timeout=self.timeout,
            capture_diagnostics=capture_diagnostics,
        )

    def describe_request(self, config: AzureConfig) -> RequestPreview:
        return describe_request(config, self.versions)

    def analyze(self, config: AzureConfig, image_bytes: Optional[bytes], photo_label: str) -> ApiCallResult:
        return analysis.analyze(
            config,
            image_bytes,
            photo_label,
            transport=self.transport,
            versions=self.versions,
            timeout=self.timeout,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )

    def analyze_batch(
        self,
        config: AzureConfig,
        photos: Sequence[PhotoInput],
        *,
        cancel_event: Optional[threading.Event] = None,
        delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
        max_concurrency: int = 1,
    ) -> List[BatchItemResult]:
        return analysis.analyze_batch(
            config,
            photos,
            cancel_event=cancel_event,
            delay_seconds=delay_seconds,
            max_concurrency=max_concurrency,
            transport=self.transport,
            versions=self.versions,
            timeout=self.timeout,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )
