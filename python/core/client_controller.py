"""
Client-side translation controller.

Holds the page state (source text, source language, one card per target
language) in explicit objects and drives one independent asyncio task per
card. The browser page (static/app.js) follows the same flow; this module is
what the CLI runs.
"""
import json
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

import httpx

from core.languages import AUTO, TARGET_LANGUAGES, detect_language

logger = logging.getLogger("Relay.Client")

ERROR_PREFIX = "Error: "
LOADING_TEXT = "Translating..."
EMPTY_RESULT_TEXT = "Translation result was empty"
CARD_FAILURE_TEXT = "An error occurred during translation."

MSG_GENERIC = "Translation failed"
MSG_CONNECTION = "Cannot connect to the server. Please check your internet connection."
MSG_SERVER = "A server error occurred. Please try again later."
MSG_METHOD_NOT_ALLOWED = "The request was rejected. Please reload the page."
MSG_UNREADABLE = "Could not process the response from the server"

DEBOUNCE_DELAY = 0.5
COPY_FEEDBACK_DELAY = 2.0

ClipboardWriter = Callable[[str], Awaitable[None]]


class CardState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    POPULATED = "populated"
    ERROR = "error"


@dataclass
class LanguageCard:
    language_code: str
    display_state: CardState = CardState.IDLE
    text: str = ""
    copied: bool = False

    def show_loading(self):
        self.text = LOADING_TEXT
        self.display_state = CardState.LOADING

    def show_result(self, text: str):
        self.text = text
        self.display_state = CardState.ERROR if text.startswith(ERROR_PREFIX) else CardState.POPULATED

    def show_error(self, text: str):
        self.text = text
        self.display_state = CardState.ERROR

    def clear(self):
        self.text = ""
        self.display_state = CardState.IDLE


@dataclass
class ControllerState:
    source_text: str = ""
    source_language: str = AUTO
    cards: Dict[str, LanguageCard] = field(default_factory=dict)

    @classmethod
    def for_languages(cls, languages: Iterable[str]) -> "ControllerState":
        return cls(cards={code: LanguageCard(code) for code in languages})


class ClientTranslationError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


def user_message(error: Exception) -> str:
    """Maps a failure to the message shown on the card."""
    if isinstance(error, httpx.RequestError):
        return MSG_CONNECTION
    if isinstance(error, ClientTranslationError):
        if error.status == 405:
            return MSG_METHOD_NOT_ALLOWED
        if error.status is not None and error.status >= 500:
            return MSG_SERVER
        if error.message:
            return error.message
    return MSG_GENERIC


class TranslationApiClient:
    """POST /api/translate; every outcome resolves to a display string."""

    def __init__(self, base_url: str, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def translate_text(self, text: str, target_lang: str, source_lang: str = AUTO) -> str:
        if not text.strip():
            return ""

        # Same language, nothing to translate
        if source_lang != AUTO and target_lang == source_lang:
            return text

        body = {"text": text, "targetLang": target_lang, "sourceLang": source_lang}
        logger.debug(f"Translate request: {json.dumps(body, ensure_ascii=False)}")

        try:
            data = await self._post(body)
        except Exception as e:
            logger.error(f"Translation failed ({source_lang} -> {target_lang}): {type(e).__name__}: {e}")
            return ERROR_PREFIX + user_message(e)

        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str) or not translated:
            logger.warning(f"Empty translation result: {data}")
            return EMPTY_RESULT_TEXT
        return translated

    async def _post(self, body: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.post(
                f"{self.base_url}/api/translate",
                json=body,
                headers={"Accept": "application/json"},
            )

        raw = resp.text
        logger.debug(f"Response {resp.status_code}: {raw}")

        if not 200 <= resp.status_code < 300:
            try:
                error_data = json.loads(raw) if raw else {}
            except ValueError:
                error_data = {}
            message = error_data.get("error") if isinstance(error_data, dict) else None
            if not isinstance(message, str):
                message = None
            raise ClientTranslationError(
                message or f"HTTP error: {resp.status_code} {resp.reason_phrase}".strip(),
                status=resp.status_code,
            )

        try:
            return json.loads(raw) if raw else {}
        except ValueError:
            raise ClientTranslationError(MSG_UNREADABLE)


class Debouncer:
    """Keeps at most one pending call; scheduling again cancels the previous one."""

    def __init__(self, delay: float = DEBOUNCE_DELAY):
        self.delay = delay
        self._pending: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, callback: Callable[[], Awaitable[Any]]):
        self.cancel()
        self._pending = asyncio.get_running_loop().create_task(self._fire(callback))

    def cancel(self):
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _fire(self, callback):
        await asyncio.sleep(self.delay)
        # Detach first so a keystroke during the callback doesn't cancel it
        self._pending = None
        await callback()


class TranslationController:
    def __init__(
        self,
        api_client: TranslationApiClient,
        languages: Iterable[str] = TARGET_LANGUAGES,
        debounce_delay: float = DEBOUNCE_DELAY,
        clipboard_writer: Optional[ClipboardWriter] = None,
        copy_feedback_delay: float = COPY_FEEDBACK_DELAY,
    ):
        self.api_client = api_client
        self.state = ControllerState.for_languages(languages)
        self.debouncer = Debouncer(debounce_delay)
        self.clipboard_writer = clipboard_writer
        self.copy_feedback_delay = copy_feedback_delay
        self._tasks: set = set()

    # ------------------------------------------------------------------ #
    # Input handling
    # ------------------------------------------------------------------ #

    def on_input(self, text: str):
        """Live translation: reschedule on every change, clear immediately on empty."""
        self.state.source_text = text
        self.debouncer.cancel()

        if not text.strip():
            self.clear_translations()
            return

        self.debouncer.schedule(self.perform_translation)

    def set_source_language(self, code: str):
        self.state.source_language = code

    async def translate_now(self) -> List[asyncio.Task]:
        self.debouncer.cancel()
        return await self.perform_translation()

    # ------------------------------------------------------------------ #
    # Translation cycle
    # ------------------------------------------------------------------ #

    async def perform_translation(self) -> List[asyncio.Task]:
        text = self.state.source_text.strip()
        if not text:
            self.clear_translations()
            return []

        source_lang = self.state.source_language
        effective_source = detect_language(text) if source_lang == AUTO else source_lang
        logger.info(f"Translation cycle: source={source_lang} effective={effective_source}")

        tasks = []
        for card in self.state.cards.values():
            card.show_loading()
            tasks.append(self._spawn(self._translate_card(card, text, effective_source)))
        return tasks

    async def _translate_card(self, card: LanguageCard, text: str, source_lang: str):
        try:
            result = await self.api_client.translate_text(text, card.language_code, source_lang)
            card.show_result(result)
        except Exception as e:
            logger.error(f"Card {card.language_code} failed: {e}")
            card.show_error(CARD_FAILURE_TEXT)

    def clear_translations(self):
        for card in self.state.cards.values():
            card.clear()

    # ------------------------------------------------------------------ #
    # Clipboard
    # ------------------------------------------------------------------ #

    async def copy_to_clipboard(self, language_code: str) -> bool:
        card = self.state.cards.get(language_code)
        if card is None or not card.text or card.display_state == CardState.LOADING:
            return False
        if self.clipboard_writer is None:
            logger.warning("No clipboard available")
            return False

        try:
            await self.clipboard_writer(card.text)
        except Exception as e:
            logger.error(f"Failed to copy to clipboard: {e}")
            return False

        card.copied = True
        self._spawn(self._reset_copied(card))
        return True

    async def _reset_copied(self, card: LanguageCard):
        await asyncio.sleep(self.copy_feedback_delay)
        card.copied = False

    # ------------------------------------------------------------------ #
    # Task bookkeeping
    # ------------------------------------------------------------------ #

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self):
        """Waits for every in-flight card and feedback task (CLI and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
