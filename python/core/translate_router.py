import json
import time
import uuid
import logging
from typing import Any, Dict
from urllib.parse import parse_qsl

from fastapi import APIRouter, Request

from core.config import RelaySettings, get_settings
from core.errors import ConfigurationError, RelayError, UnexpectedError, ValidationError
from core.gemini_client import GeminiClient, build_prompt, extract_text
from core.languages import AUTO, is_supported
from core.schemas import ErrorResponse, ReceivedFields, TranslationRequest, TranslationResponse

logger = logging.getLogger("Relay.Translate")

router = APIRouter()


def new_request_id() -> str:
    return uuid.uuid4().hex[:16]


def current_settings(request: Request) -> RelaySettings:
    """Settings injected into create_app(), else re-read from config and env."""
    return getattr(request.app.state, "settings", None) or get_settings()


def log_event(request_id: str, message: str, data: Dict[str, Any] = None):
    logger.info(f"[{request_id}] {message} " + json.dumps(data or {}, ensure_ascii=False, default=str))


async def read_payload(request: Request) -> Dict[str, Any]:
    """JSON or form-encoded body -> dict. Empty body is treated as {}."""
    raw = await request.body()
    if not raw:
        return {}

    content_type = request.headers.get("content-type", "")
    if "application/x-www-form-urlencoded" in content_type:
        return dict(parse_qsl(raw.decode("utf-8"), keep_blank_values=True))

    try:
        payload = json.loads(raw)
    except ValueError:
        raise ValidationError("Request body must be valid JSON", received={"text": False, "targetLang": False, "sourceLang": AUTO})
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object", received={"text": False, "targetLang": False, "sourceLang": AUTO})
    return payload


def validate_payload(payload: Dict[str, Any]) -> TranslationRequest:
    text = payload.get("text")
    target_lang = payload.get("targetLang")
    source_lang = payload.get("sourceLang") or AUTO

    has_text = isinstance(text, str) and bool(text.strip())
    has_target = isinstance(target_lang, str) and bool(target_lang)
    has_source = isinstance(source_lang, str)
    received = ReceivedFields(text=has_text, targetLang=has_target, sourceLang=str(source_lang)).model_dump()

    # 1. Required fields
    if not has_text or not has_target:
        raise ValidationError("Please specify both text and target language", received=received)

    # 2. Supported language codes
    if not is_supported(target_lang):
        raise ValidationError(f"Unsupported target language: {target_lang}", received=received)
    if not has_source or (source_lang != AUTO and not is_supported(source_lang)):
        raise ValidationError(f"Unsupported source language: {source_lang}", received=received)

    return TranslationRequest(text=text, targetLang=target_lang, sourceLang=source_lang)


@router.post(
    "/api/translate",
    response_model=TranslationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def translate_endpoint(request: Request):
    request_id = new_request_id()
    request.state.request_id = request_id
    settings = current_settings(request)

    inbound = {"method": request.method, "url": str(request.url.path)}
    if settings.log_verbose:
        inbound["headers"] = dict(request.headers)
        inbound["body"] = (await request.body()).decode("utf-8", errors="replace")
    log_event(request_id, "Translation request received", inbound)

    try:
        payload = await read_payload(request)
        req = validate_payload(payload)

        # Never call upstream without a credential
        api_key = settings.gemini_api_key
        if not api_key:
            raise ConfigurationError("Server configuration error: API key is not set")

        prompt = build_prompt(req.text, req.sourceLang, req.targetLang)
        log_event(request_id, "Upstream request prepared", {
            "sourceLang": req.sourceLang,
            "targetLang": req.targetLang,
            "promptLength": len(prompt),
        })

        client = GeminiClient(api_key, settings.gemini_endpoint, timeout=settings.upstream_timeout)
        start = time.monotonic()
        data = await client.generate(prompt, request_id=request_id)
        translated = extract_text(data, fallback=req.text)

        log_event(request_id, "Translation succeeded", {
            "originalLength": len(req.text),
            "translatedLength": len(translated),
            "responseTime": f"{int((time.monotonic() - start) * 1000)}ms",
        })

        return TranslationResponse(
            translatedText=translated.strip(),
            detectedSourceLanguage="auto-detected" if req.sourceLang == AUTO else req.sourceLang,
            requestId=request_id,
        )

    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[{request_id}] Unexpected error during translation")
        raise UnexpectedError(
            "An unexpected error occurred during translation",
            request_id=request_id,
            details=str(e),
        ) from e
