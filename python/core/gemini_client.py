import json
import time
import logging
from typing import Any, Dict, Optional

import httpx

from core.errors import ParseError, UpstreamError, UpstreamTransportError
from core.languages import AUTO
from core.schemas import GenerateContentRequest

logger = logging.getLogger("Relay.Gemini")

# Upstream bodies are clipped to this length in error details and logs
BODY_PREVIEW_LIMIT = 500


def build_prompt(text: str, source_lang: str, target_lang: str) -> str:
    source = "auto-detected language" if source_lang == AUTO else source_lang
    return f"Translate the following text from {source} to {target_lang}: {text}"


def extract_text(data: Any, fallback: str) -> str:
    """
    candidates[0].content.parts[0].text, or `fallback` when the path is missing.
    The fallback is indistinguishable from a real translation for the caller.
    """
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return fallback
    if not isinstance(text, str) or not text:
        return fallback
    return text


def _parse_error_body(body: str) -> Any:
    if not body:
        return {}
    try:
        return json.loads(body)
    except ValueError:
        return {"error": "Invalid JSON response", "details": body[:BODY_PREVIEW_LIMIT]}


class GeminiClient:
    """Single-turn generateContent calls, one AsyncClient per call, no retries."""

    def __init__(self, api_key: str, endpoint: str, timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    async def generate(self, prompt: str, request_id: str = "-") -> Dict[str, Any]:
        payload = GenerateContentRequest.single_turn(prompt).to_payload()

        logger.info(f"[{request_id}] Upstream request " + json.dumps({
            "url": self.endpoint,
            "promptLength": len(prompt),
            "timeout": self.timeout,
        }))

        start = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
        except httpx.RequestError as e:
            logger.error(f"[{request_id}] Upstream transport error " + json.dumps({
                "error": str(e),
                "name": type(e).__name__,
            }))
            raise UpstreamTransportError("Could not reach translation service", details=str(e) or type(e).__name__)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        body = resp.text

        logger.info(f"[{request_id}] Upstream response " + json.dumps({
            "status": resp.status_code,
            "responseTime": f"{elapsed_ms}ms",
            "responseLength": len(body),
        }))

        if not 200 <= resp.status_code < 300:
            error_data = _parse_error_body(body)
            logger.error(f"[{request_id}] Upstream error " + json.dumps({
                "status": resp.status_code,
                "error": error_data,
            }, ensure_ascii=False))
            raise UpstreamError("Translation service returned an error", resp.status_code, details=error_data)

        if not body:
            return {}
        try:
            return json.loads(body)
        except ValueError as e:
            logger.error(f"[{request_id}] Upstream JSON parse error " + json.dumps({
                "error": str(e),
                "response": body[:BODY_PREVIEW_LIMIT],
            }, ensure_ascii=False))
            raise ParseError("Failed to parse translation result", details=str(e))
