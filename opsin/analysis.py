"""Color analysis of exported photo thumbnails."""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from .connection import DEFAULT_VERSIONS
from .models import (
    DEFAULT_BATCH_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    AnalysisRequest,
    ApiCallResult,
    ApiVersions,
    AzureConfig,
    BatchItemResult,
    ConfigValidationError,
    ErrorKind,
    Failure,
    NetworkError,
    PhotoInput,
    Success,
    kind_for_status,
)
from .parser import extract_message_text, summarize_body
from .payloads import build_analysis_payload, chat_completions_url
from .transport import Transport, send
from .validation import normalize_endpoint, validate_config

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional photography color analyst helping photographers with color deficiency. "
    "Provide specific, actionable recommendations for color correction in Adobe Lightroom. "
    "Focus on color balance, skin tones, saturation, and HSL adjustments."
)

ANALYSIS_PROMPT = """Analyze this image for color balance, skin tones, and overall color harmony.
Provide specific, actionable recommendations for color correction in Adobe Lightroom.

Focus on:
1. Overall color balance and temperature
2. Skin tone accuracy (if people are present)
3. Color harmony and saturation levels
4. Specific HSL adjustments needed
5. Suggestions for photographers with color deficiency

Keep your response concise but specific with actionable Lightroom adjustments.
Format your response with clear sections and bullet points for easy reading."""

DEFAULT_MAX_TOKENS = 800
DEFAULT_TEMPERATURE = 0.3
DEFAULT_TOP_P = 0.95


def build_analysis_request(
    image_bytes: Optional[bytes],
    photo_label: str,
    *,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    top_p: Optional[float] = DEFAULT_TOP_P,
) -> AnalysisRequest:
    user_prompt = f"Analyze the color characteristics of the photo named '{photo_label}'. {ANALYSIS_PROMPT}"
    return AnalysisRequest(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=user_prompt,
        image_bytes=image_bytes,
        max_output_tokens=max_tokens,
        temperature=temperature,
        top_p=top_p,
    )


def analyze(
    config: AzureConfig,
    image_bytes: Optional[bytes],
    photo_label: str,
    *,
    transport: Optional[Transport] = None,
    versions: ApiVersions = DEFAULT_VERSIONS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    top_p: Optional[float] = DEFAULT_TOP_P,
) -> ApiCallResult:
    """Ask the deployment for color-correction advice on one photo.

    One request on the current API version; failures come back as
    ``Failure`` values carrying the HTTP status and raw body, and nothing is
    retried here.
    """
    try:
        validate_config(config)
    except ConfigValidationError as exc:
        return Failure(kind=exc.kind, message=exc.message)

    deployment = config.deployment_name.strip()
    url = chat_completions_url(config.endpoint, deployment, versions.current)
    request = build_analysis_request(
        image_bytes, photo_label, max_tokens=max_tokens, temperature=temperature, top_p=top_p
    )
    payload = build_analysis_payload(request, model=deployment)
    logger.info(
        "analysis requested",
        extra={"photo": photo_label, "url": url, "has_image": image_bytes is not None},
    )

    try:
        response = send(url, payload, config.api_key.strip(), timeout, transport=transport)
    except NetworkError as exc:
        return Failure(
            kind=exc.kind,
            message=(
                "Unable to connect to Azure OpenAI service. Check your internet connection and "
                f"endpoint configuration. {exc.message}\n\nURL: {url}"
            ),
            url=url,
        )

    status = response.status
    kind = kind_for_status(status)
    if kind is None:
        text = extract_message_text(response.body)
        if text is None:
            logger.warning("analysis response not understood", extra={"photo": photo_label, "url": url})
            return Failure(
                kind=ErrorKind.PARSE_ERROR,
                message=f"Unable to parse API response format. Raw response: {response.body or 'empty'}\n\nURL: {url}",
                http_status=status,
                raw_body=response.body,
                url=url,
            )
        logger.info("analysis completed", extra={"photo": photo_label, "status_code": status})
        return Success(text=text)

    if kind is ErrorKind.UNAUTHORIZED:
        message = "Authentication failed - please check your API key"
    elif kind is ErrorKind.NOT_FOUND:
        message = f"Deployment '{deployment}' not found on endpoint {normalize_endpoint(config.endpoint)}"
    elif kind is ErrorKind.RATE_LIMITED:
        message = "Rate limit exceeded - please try again later"
    elif kind is ErrorKind.SERVER_ERROR:
        message = f"Azure OpenAI service error (HTTP {status})"
    else:
        message = f"API error (HTTP {status})"
    if response.body:
        message = f"{message}: {response.body}"
    logger.warning(
        "analysis failed",
        extra={"photo": photo_label, "url": url, "status_code": status, "body": summarize_body(response.body)},
    )
    return Failure(kind=kind, message=f"{message}\n\nURL: {url}", http_status=status, raw_body=response.body, url=url)


def analyze_batch(
    config: AzureConfig,
    photos: Sequence[PhotoInput],
    *,
    cancel_event: Optional[threading.Event] = None,
    delay_seconds: float = DEFAULT_BATCH_DELAY_SECONDS,
    max_concurrency: int = 1,
    transport: Optional[Transport] = None,
    versions: ApiVersions = DEFAULT_VERSIONS,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    temperature: float = DEFAULT_TEMPERATURE,
    top_p: Optional[float] = DEFAULT_TOP_P,
) -> List[BatchItemResult]:
    """Analyze photos in order, stopping new requests once ``cancel_event`` is set.

    Cancellation is checked between photos, never mid-request. Photos that
    were not started are reported as cancelled. With ``max_concurrency`` above
    one, at most that many requests are in flight at a time.
    """
    results: List[BatchItemResult] = [BatchItemResult(label=photo.label) for photo in photos]
    options: Dict[str, object] = {
        "transport": transport,
        "versions": versions,
        "timeout": timeout,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "top_p": top_p,
    }

    def cancelled() -> bool:
        return cancel_event is not None and cancel_event.is_set()

    if max_concurrency <= 1:
        for index, photo in enumerate(photos):
            if cancelled():
                break
            if index and delay_seconds > 0:
                time.sleep(delay_seconds)
                if cancelled():
                    break
            results[index].result = analyze(config, photo.image_bytes, photo.label, **options)
    else:
        slots = threading.BoundedSemaphore(max_concurrency)

        def run(index: int, photo: PhotoInput) -> None:
            try:
                results[index].result = analyze(config, photo.image_bytes, photo.label, **options)
            finally:
                slots.release()

        futures = []
        with ThreadPoolExecutor(max_workers=max_concurrency) as pool:
            for index, photo in enumerate(photos):
                slots.acquire()
                if cancelled():
                    slots.release()
                    break
                if index and delay_seconds > 0:
                    time.sleep(delay_seconds)
                futures.append(pool.submit(run, index, photo))
        for future in futures:
            future.result()

    for item in results:
        if item.result is None:
            item.cancelled = True
    done = sum(1 for item in results if not item.cancelled)
    logger.info("batch analysis finished", extra={"analyzed": done, "requested": len(results)})
    return results
