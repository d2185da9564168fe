"""
Domain errors raised by services and rendered by the exception handler in main.py.

Every error carries the HTTP status it maps to, so handlers can raise them
directly without translating to HTTPException.
"""
from typing import Any, Dict, Optional


class WingmanError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {"status": False, "message": self.message}


class UnauthorizedError(WingmanError):
    status_code = 401
    default_message = "Unauthorized. Please log in or use as guest."


class InvalidSessionError(WingmanError):
    status_code = 401
    default_message = "Invalid guest session. Please start a new guest session."


class QuotaExceededError(WingmanError):
    status_code = 403

    def __init__(self, max_messages: int):
        self.max_messages = max_messages
        super().__init__(
            f"Guest message limit of {max_messages} reached. Please sign up to keep chatting."
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["max_messages"] = self.max_messages
        return payload


class InvalidRequestError(WingmanError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(WingmanError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(WingmanError):
    """A maps or model provider call failed."""
    status_code = 502
    default_message = "Failed to get response from AI"


class NotConvergedError(WingmanError):
    status_code = 500

    def __init__(self, round_trips: int):
        self.round_trips = round_trips
        super().__init__(f"Model did not converge after {round_trips} round trips")


class UnknownToolError(WingmanError):
    status_code = 400

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown function: {name}")


class ToolArgumentError(WingmanError):
    status_code = 400
