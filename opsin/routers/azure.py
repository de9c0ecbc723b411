"""Azure OpenAI diagnostics and analysis endpoints."""
from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder

from ..azure_openai import AzureChatClient
from ..config import get_settings
from ..diagnostics import render_detailed_report, render_request_details
from ..models import ApiCallResult, ConnectionTestResult, PhotoInput, ServiceError, Success
from ..parser import parse_color_analysis
from ..schemas import (
    AnalyzeBatchIn,
    AnalyzeBatchOut,
    AnalyzeIn,
    AnalyzeOut,
    AzureConfigIn,
    BatchItemOut,
    ColorAnalysisOut,
    ConnectionTestIn,
    ConnectionTestOut,
    DetailedTestOut,
    ErrorSchema,
    RequestDetailsOut,
    ValidateOut,
)
from ..utils.security import mask_secret, require_api_key

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/azure",
    tags=["azure"],
    dependencies=[Depends(require_api_key)],
    responses={
        400: {"model": ErrorSchema},
        422: {"model": ErrorSchema},
        502: {"model": ErrorSchema},
    },
)


def get_client() -> AzureChatClient:
    return AzureChatClient.from_settings(get_settings())


@router.post("/validate", response_model=ValidateOut)
def validate(payload: AzureConfigIn, client: AzureChatClient = Depends(get_client)) -> ValidateOut:
    _log_api_event("validate.request", payload)
    client.validate(payload.resolve(get_settings()))
    return ValidateOut(ok=True)


@router.post("/testConnection", response_model=ConnectionTestOut)
def connection_test(payload: ConnectionTestIn, client: AzureChatClient = Depends(get_client)) -> ConnectionTestOut:
    _log_api_event("testConnection.request", payload)
    result = client.test_connection(payload.resolve(get_settings()), capture_diagnostics=payload.capture_diagnostics)
    response = ConnectionTestOut(**result.to_dict())
    _log_api_event("testConnection.response", response)
    return response


@router.post("/testConnectionDetailed", response_model=DetailedTestOut)
def connection_test_detailed(
    payload: AzureConfigIn, client: AzureChatClient = Depends(get_client)
) -> DetailedTestOut:
    _log_api_event("testConnectionDetailed.request", payload)
    result = client.test_connection_detailed(payload.resolve(get_settings()))
    response = _detailed_out(result)
    _log_api_event("testConnectionDetailed.response", response)
    return response


@router.post("/testLegacyCompatibility", response_model=ConnectionTestOut)
def legacy_compatibility_test(
    payload: ConnectionTestIn, client: AzureChatClient = Depends(get_client)
) -> ConnectionTestOut:
    _log_api_event("testLegacyCompatibility.request", payload)
    result = client.test_legacy_compatibility(
        payload.resolve(get_settings()), capture_diagnostics=payload.capture_diagnostics
    )
    response = ConnectionTestOut(**result.to_dict())
    _log_api_event("testLegacyCompatibility.response", response)
    return response


@router.post("/requestDetails", response_model=RequestDetailsOut)
def request_details(payload: AzureConfigIn, client: AzureChatClient = Depends(get_client)) -> RequestDetailsOut:
    config = payload.resolve(get_settings())
    if not config.endpoint.strip() or not config.api_key.strip():
        raise ServiceError("endpoint and api_key are required", "missing_config", status_code=400)
    preview = client.describe_request(config)
    return RequestDetailsOut(**preview.to_dict(), text=render_request_details(preview))


@router.post("/analyze", response_model=AnalyzeOut)
def analyze(payload: AnalyzeIn, client: AzureChatClient = Depends(get_client)) -> AnalyzeOut:
    _log_api_event("analyze.request", payload)
    image = _decode_image(payload.image_base64, payload.photo_label)
    result = client.analyze(payload.resolve(get_settings()), image, payload.photo_label)
    response = _analysis_out(result)
    _log_api_event("analyze.response", response)
    return response


@router.post("/analyzeBatch", response_model=AnalyzeBatchOut)
def analyze_batch(payload: AnalyzeBatchIn, client: AzureChatClient = Depends(get_client)) -> AnalyzeBatchOut:
    _log_api_event("analyzeBatch.request", payload)
    settings = get_settings()
    if not payload.photos:
        raise ServiceError("At least one photo is required", "invalid_batch", status_code=400)
    photos = [
        PhotoInput(label=photo.label, image_bytes=_decode_image(photo.image_base64, photo.label))
        for photo in payload.photos
    ]
    items = client.analyze_batch(
        payload.resolve(settings),
        photos,
        delay_seconds=payload.delay_seconds if payload.delay_seconds is not None else settings.batch_delay,
        max_concurrency=payload.max_concurrency or settings.batch_concurrency,
    )
    response = AnalyzeBatchOut(
        results=[
            BatchItemOut(
                label=item.label,
                cancelled=item.cancelled,
                result=_analysis_out(item.result) if item.result is not None else None,
            )
            for item in items
        ]
    )
    _log_api_event("analyzeBatch.response", {"count": len(response.results)})
    return response


def _detailed_out(result: ConnectionTestResult) -> DetailedTestOut:
    return DetailedTestOut(**result.to_dict(), report=render_detailed_report(result))


def _analysis_out(result: ApiCallResult) -> AnalyzeOut:
    if isinstance(result, Success):
        structured = parse_color_analysis(result.text)
        return AnalyzeOut(
            ok=True,
            text=result.text,
            structured=ColorAnalysisOut(**vars(structured)) if structured is not None else None,
        )
    return AnalyzeOut(**result.to_dict())


def _decode_image(image_base64: Optional[str], label: str) -> Optional[bytes]:
    if not image_base64:
        return None
    try:
        return base64.b64decode(image_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ServiceError(f"Image for '{label}' is not valid base64", "invalid_image", status_code=400) from exc


def _log_api_event(action: str, payload: Optional[Any]) -> None:
    try:
        serialized = _serialize_payload(payload)
    except (TypeError, ValueError) as exc:  # pragma: no cover - logging safeguard
        logger.warning("failed to serialize payload for %s: %s", action, exc)
        serialized = "unserializable payload"
    logger.info("api_call", extra={"action": action, "payload": serialized})


def _serialize_payload(payload: Optional[Any]) -> Any:
    if payload is None:
        return None
    if hasattr(payload, "model_dump"):
        data = payload.model_dump()
    elif isinstance(payload, (dict, list, str, int, float, bool)):
        data = payload
    else:
        data = str(payload)
    if isinstance(data, dict):
        if data.get("api_key"):
            data["api_key"] = mask_secret(data["api_key"])
        if data.get("image_base64"):
            data["image_base64"] = f"<{len(data['image_base64'])} chars>"
        if isinstance(data.get("photos"), list):
            data["photos"] = [photo.get("label") for photo in data["photos"] if isinstance(photo, dict)]
    encoded = jsonable_encoder(data)
    serialized = json.dumps(encoded, default=str)
    if len(serialized) > 2000:
        serialized = serialized[:2000] + "...<truncated>"
    return serialized
