"""
Custom Exceptions for InnoVoice
===============================

Domain errors raised by the services and translated to HTTP responses by the
handlers registered in app.main.

Usage:
    from app.core.exceptions import SuggestionNotFoundError

    suggestion = await db.get(Suggestion, suggestion_id)
    if not suggestion:
        raise SuggestionNotFoundError(suggestion_id)
"""

from typing import Optional, Any, Dict, List


class InnoVoiceError(Exception):
    """Base exception for all InnoVoice errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(InnoVoiceError):
    """Staff credential missing or unknown"""

    status_code = 401

    def __init__(self, message: str = "Invalid admin password"):
        super().__init__(message, code="AUTH_FAILED")


class AuthorizationError(InnoVoiceError):
    """Staff role not allowed to perform this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(InnoVoiceError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class SuggestionNotFoundError(ResourceNotFoundError):
    """Suggestion not found by id or tracking code"""

    def __init__(self, identifier: str):
        super().__init__("Suggestion", identifier)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(InnoVoiceError):
    """Input validation failed, carries one message per offending field"""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None
    ):
        if errors is None:
            errors = [{"field": field, "message": message}] if field else []
        super().__init__(message, code="VALIDATION_ERROR", details={"errors": errors})

    @property
    def errors(self) -> List[Dict[str, str]]:
        return self.details.get("errors", [])


# ============================================
# Collaborator Errors (absorbed by the adapters)
# ============================================

class CollaboratorDegraded(InnoVoiceError):
    """External collaborator failed, the caller falls back to a default"""

    def __init__(self, collaborator: str, message: str):
        super().__init__(
            f"{collaborator} unavailable: {message}",
            code="COLLABORATOR_DEGRADED",
            details={"collaborator": collaborator}
        )


class AIServiceError(CollaboratorDegraded):
    """Priority classifier failed or returned an unusable answer"""

    def __init__(self, message: str):
        super().__init__("classifier", message)
        self.code = "AI_SERVICE_ERROR"


class AIResponseParseError(AIServiceError):
    """Failed to parse classifier response"""

    def __init__(self, message: str = "Failed to parse AI response"):
        super().__init__(message)
        self.code = "AI_PARSE_ERROR"


class StorageError(CollaboratorDegraded):
    """Image storage operation failed"""

    def __init__(self, message: str):
        super().__init__("storage", message)
        self.code = "STORAGE_ERROR"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: InnoVoiceError) -> Dict[str, Any]:
    """Convert exception to API error response body"""
    if isinstance(error, ValidationError):
        return {"message": error.message, "errors": error.errors}
    return {"message": error.message, "code": error.code}
