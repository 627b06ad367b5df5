from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base error converted to a JSON response at the request boundary."""
    status_code = 500
    internal = False

    def __init__(self, message: str, details: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code

    def to_body(self, expose_details: bool = True) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if expose_details and self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(RelayError):
    """Required field missing or not one of the supported codes."""
    status_code = 400

    def __init__(self, message: str, received: Dict[str, Any]):
        super().__init__(message)
        self.received = received

    def to_body(self, expose_details: bool = True) -> Dict[str, Any]:
        return {"error": self.message, "received": self.received}


class ConfigurationError(RelayError):
    status_code = 500


class UpstreamTransportError(RelayError):
    """The upstream call itself could not complete (connect error, timeout)."""
    status_code = 500


class UpstreamError(RelayError):
    """Upstream answered with a non-success status; that status is forwarded."""

    def __init__(self, message: str, status_code: int, details: Any = None):
        super().__init__(message, details=details, status_code=status_code)

    def to_body(self, expose_details: bool = True) -> Dict[str, Any]:
        return {"error": self.message, "status": self.status_code, "details": self.details}


class ParseError(RelayError):
    status_code = 500


class UnexpectedError(RelayError):
    status_code = 500
    internal = True

    def __init__(self, message: str, request_id: Optional[str] = None, details: Any = None):
        super().__init__(message, details=details)
        self.request_id = request_id

    def to_body(self, expose_details: bool = True) -> Dict[str, Any]:
        # Internal details only leave the process in development mode
        body: Dict[str, Any] = {"error": self.message}
        if self.request_id:
            body["requestId"] = self.request_id
        if expose_details and self.details is not None:
            body["details"] = self.details
        return body
