"""Domain types shared across the client modules."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

DEFAULT_CURRENT_API_VERSION = "2024-06-01"
DEFAULT_LEGACY_API_VERSION = "2024-02-01"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BATCH_DELAY_SECONDS = 0.5


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers."""

    EMPTY_FIELD = "empty_field"
    BAD_FORMAT = "bad_format"
    TOO_SHORT = "too_short"
    NO_RESPONSE = "no_response"
    TIMEOUT = "timeout"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    OTHER = "other"
    PARSE_ERROR = "parse_error"


def kind_for_status(status: int) -> Optional[ErrorKind]:
    """Map an HTTP status to its error kind; ``None`` means success."""
    if status == 200:
        return None
    if status == 400:
        return ErrorKind.BAD_REQUEST
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 429:
        return ErrorKind.RATE_LIMITED
    if status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.OTHER


@dataclass(frozen=True)
class AzureConfig:
    """Connection settings for one Azure OpenAI deployment."""

    endpoint: str
    api_key: str
    deployment_name: str


@dataclass(frozen=True)
class ApiVersions:
    """The ``api-version`` strings tried by the connection test, newest first."""

    current: str
    legacy: str


@dataclass(frozen=True)
class AnalysisRequest:
    system_prompt: str
    user_prompt: str
    max_output_tokens: int
    temperature: float
    image_bytes: Optional[bytes] = None
    top_p: Optional[float] = None


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body of one HTTP exchange."""

    status: int
    headers: Dict[str, str]
    body: str


@dataclass(frozen=True)
class Success:
    text: str

    ok = True

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": True, "text": self.text}


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    http_status: Optional[int] = None
    raw_body: Optional[str] = None
    url: Optional[str] = None

    ok = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": False,
            "kind": self.kind.value,
            "message": self.message,
            "http_status": self.http_status,
            "raw_body": self.raw_body,
            "url": self.url,
        }


ApiCallResult = Union[Success, Failure]


@dataclass
class DiagnosticRecord:
    """One request/response pair captured for troubleshooting."""

    request_url: str
    request_headers: Dict[str, str]
    request_payload_json: str
    response_status: Optional[int]
    response_body: Optional[str]
    timestamp_utc: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConnectionTestResult:
    """Outcome of a connection test stage, with any diagnostics captured on the way."""

    success: bool
    stage: str
    message: str
    api_version: Optional[str] = None
    kind: Optional[ErrorKind] = None
    http_status: Optional[int] = None
    url: Optional[str] = None
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "stage": self.stage,
            "message": self.message,
            "api_version": self.api_version,
            "kind": self.kind.value if self.kind else None,
            "http_status": self.http_status,
            "url": self.url,
            "diagnostics": [record.to_dict() for record in self.diagnostics],
        }


@dataclass
class ColorAnalysis:
    """Structured form of an analysis reply that followed the JSON answer format."""

    description: Optional[str] = None
    issues: List[str] = field(default_factory=list)
    suggestions: Optional[str] = None
    adjustments: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class PhotoInput:
    label: str
    image_bytes: Optional[bytes] = None


@dataclass
class BatchItemResult:
    label: str
    result: Optional[ApiCallResult] = None
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "cancelled": self.cancelled,
            "result": self.result.to_dict() if self.result is not None else None,
        }


class ServiceError(Exception):
    """Custom exception that drives uniform API error responses."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class ConfigValidationError(ServiceError):
    """Raised when the Azure configuration cannot be used for a network call."""

    def __init__(self, kind: ErrorKind, field_name: str, message: str) -> None:
        super().__init__(message, kind.value, status_code=422)
        self.kind = kind
        self.field_name = field_name


class NetworkError(ServiceError):
    """Raised by the transport when no HTTP response was obtained."""

    def __init__(self, kind: ErrorKind, message: str, url: str) -> None:
        super().__init__(message, kind.value, status_code=502)
        self.kind = kind
        self.url = url


def format_error(message: str, code: str) -> dict[str, dict[str, str]]:
    return {"error": {"message": message, "code": code}}
