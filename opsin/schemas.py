"""Pydantic schemas describing the diagnostics service contracts."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .config import Settings
from .models import AzureConfig


class AzureConfigIn(BaseModel):
    """Connection fields; anything omitted falls back to the service settings."""

    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    deployment_name: Optional[str] = None

    def resolve(self, settings: Settings) -> AzureConfig:
        return AzureConfig(
            endpoint=self.endpoint if self.endpoint is not None else settings.azure_openai_endpoint,
            api_key=self.api_key if self.api_key is not None else settings.azure_openai_api_key,
            deployment_name=(
                self.deployment_name if self.deployment_name is not None else settings.azure_openai_deployment
            ),
        )


class ConnectionTestIn(AzureConfigIn):
    capture_diagnostics: bool = False


class ValidateOut(BaseModel):
    ok: bool


class DiagnosticRecordOut(BaseModel):
    request_url: str
    request_headers: Dict[str, str]
    request_payload_json: str
    response_status: Optional[int] = None
    response_body: Optional[str] = None
    timestamp_utc: str


class ConnectionTestOut(BaseModel):
    success: bool
    stage: str
    message: str
    api_version: Optional[str] = None
    kind: Optional[str] = None
    http_status: Optional[int] = None
    url: Optional[str] = None
    diagnostics: List[DiagnosticRecordOut] = Field(default_factory=list)


class DetailedTestOut(ConnectionTestOut):
    report: str


class RequestDetailsOut(BaseModel):
    url: str
    headers: Dict[str, str]
    payload_json: str
    payload_pretty: str
    text: str


class ColorAnalysisOut(BaseModel):
    description: Optional[str] = None
    issues: List[str] = Field(default_factory=list)
    suggestions: Optional[str] = None
    adjustments: Dict[str, float] = Field(default_factory=dict)


class AnalyzeIn(AzureConfigIn):
    photo_label: str
    image_base64: Optional[str] = None


class AnalyzeOut(BaseModel):
    ok: bool
    text: Optional[str] = None
    kind: Optional[str] = None
    message: Optional[str] = None
    http_status: Optional[int] = None
    raw_body: Optional[str] = None
    url: Optional[str] = None
    structured: Optional[ColorAnalysisOut] = None


class BatchPhotoIn(BaseModel):
    label: str
    image_base64: Optional[str] = None


class AnalyzeBatchIn(AzureConfigIn):
    photos: List[BatchPhotoIn]
    max_concurrency: Optional[int] = Field(default=None, ge=1)
    delay_seconds: Optional[float] = Field(default=None, ge=0)


class BatchItemOut(BaseModel):
    label: str
    cancelled: bool
    result: Optional[AnalyzeOut] = None


class AnalyzeBatchOut(BaseModel):
    results: List[BatchItemOut]


class ErrorSchema(BaseModel):
    error: Dict[str, str]
