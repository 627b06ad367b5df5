"""
Tests for core/schemas.py and core/errors.py - Wire models and error bodies.
"""
import pytest
from pydantic import ValidationError as PydanticValidationError


class TestTranslationRequest:
    """Tests for TranslationRequest schema."""

    def test_source_defaults_to_auto(self):
        from core.schemas import TranslationRequest

        req = TranslationRequest(text="Hello", targetLang="es")
        assert req.sourceLang == "auto"

    def test_missing_required(self):
        from core.schemas import TranslationRequest

        with pytest.raises(PydanticValidationError):
            TranslationRequest(text="Hello")  # missing targetLang


class TestTranslationResponse:
    """Tests for TranslationResponse schema."""

    def test_wire_field_names(self):
        from core.schemas import TranslationResponse

        resp = TranslationResponse(translatedText="Hola", detectedSourceLanguage="en", requestId="abc")
        assert resp.model_dump() == {
            "translatedText": "Hola",
            "detectedSourceLanguage": "en",
            "requestId": "abc",
        }


class TestGenerateContentRequest:
    """Tests for the upstream request body."""

    def test_single_turn_payload(self):
        from core.schemas import GenerateContentRequest

        payload = GenerateContentRequest.single_turn("Translate this").to_payload()

        assert payload["contents"] == [{"parts": [{"text": "Translate this"}]}]
        assert payload["generationConfig"] == {"temperature": 0.2, "topP": 0.8, "topK": 40}


class TestErrorBodies:
    """Tests for RelayError subclasses."""

    def test_validation_error_body(self):
        from core.errors import ValidationError

        received = {"text": False, "targetLang": True, "sourceLang": "auto"}
        err = ValidationError("missing", received=received)

        assert err.status_code == 400
        assert err.to_body() == {"error": "missing", "received": received}

    def test_upstream_error_keeps_status(self):
        from core.errors import UpstreamError

        err = UpstreamError("upstream failed", 429, details={"error": {"code": 429}})

        assert err.status_code == 429
        assert err.to_body() == {"error": "upstream failed", "status": 429, "details": {"error": {"code": 429}}}

    def test_transport_error_details(self):
        from core.errors import UpstreamTransportError

        err = UpstreamTransportError("Could not reach translation service", details="refused")
        assert err.status_code == 500
        assert err.to_body()["details"] == "refused"

    def test_unexpected_error_hides_details(self):
        from core.errors import UnexpectedError

        err = UnexpectedError("boom", request_id="rid", details="secret")

        assert err.internal is True
        assert err.to_body(expose_details=False) == {"error": "boom", "requestId": "rid"}
        assert err.to_body(expose_details=True)["details"] == "secret"
