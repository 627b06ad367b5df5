from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from core.languages import AUTO

# -------------------------------------------------------------------------
# [Relay API Schemas] field names follow the wire format (camelCase)
# -------------------------------------------------------------------------

class TranslationRequest(BaseModel):
    """Client -> Relay: text to translate into one target language"""
    text: str
    targetLang: str
    sourceLang: str = AUTO


class TranslationResponse(BaseModel):
    """Relay -> Client: normalized translation result"""
    translatedText: str
    detectedSourceLanguage: str
    requestId: Optional[str] = None


class ReceivedFields(BaseModel):
    """Echo of which required fields were present in a rejected request"""
    text: bool
    targetLang: bool
    sourceLang: Optional[str] = AUTO


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
    received: Optional[ReceivedFields] = None
    status: Optional[int] = None
    requestId: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "translation_relay"

# -------------------------------------------------------------------------
# [Upstream Schemas] Gemini generateContent request body
# -------------------------------------------------------------------------

class ContentPart(BaseModel):
    text: str


class Content(BaseModel):
    parts: List[ContentPart]


class GenerationConfig(BaseModel):
    temperature: float = 0.2
    topP: float = 0.8
    topK: int = 40


class GenerateContentRequest(BaseModel):
    contents: List[Content]
    generationConfig: GenerationConfig = Field(default_factory=GenerationConfig)

    @classmethod
    def single_turn(cls, prompt: str) -> "GenerateContentRequest":
        return cls(contents=[Content(parts=[ContentPart(text=prompt)])])

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump()
