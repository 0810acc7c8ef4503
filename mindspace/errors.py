"""
Application error types.

Validation problems and remote failures raise one of these; a missing
conversation on a read is returned as None instead. The API layer turns
any MindSpaceError into a JSON body with its status code.
"""
from typing import Optional


class MindSpaceError(Exception):
    """Base class for errors surfaced to API clients."""
    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(MindSpaceError):
    """Missing identifiers or out-of-range fields."""
    status_code = 400
    error_code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class ConversationNotFoundError(MindSpaceError):
    """Raised by writes that need an existing conversation."""
    status_code = 404
    error_code = "conversation_not_found"

    def __init__(self, conversation_id: str):
        super().__init__(
            message="Conversation not found",
            details=f"conversation_id={conversation_id}",
        )
        self.conversation_id = conversation_id


class ResponseGenerationError(MindSpaceError):
    """The assistant reply could not be produced."""
    status_code = 502
    error_code = "response_generation_error"

    def __init__(self, message: str = "Failed to generate a response"):
        super().__init__(message)


class RemoteServiceError(MindSpaceError):
    """A backend or third-party call failed after retries."""
    status_code = 502
    error_code = "remote_service_error"

    def __init__(self, message: str = "Remote service unavailable", details: Optional[str] = None):
        super().__init__(message, details)


class AuthenticationError(MindSpaceError):
    """Missing, malformed or rejected Firebase ID token."""
    status_code = 401
    error_code = "authentication_error"

    def __init__(self, message: str = "Invalid or expired credentials"):
        super().__init__(message)
