# lead_intake/core/exceptions.py
from __future__ import annotations

from typing import Any, Dict, Optional


class IntakeError(Exception):
    """Base exception for all intake errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"ok": False, "error": self.message, "detail": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(IntakeError):
    """Bad or incomplete input."""
    def __init__(self, message: str = "Validation error", **kwargs):
        kwargs.setdefault("code", "validation_error")
        super().__init__(message, status_code=400, **kwargs)


class MethodNotAllowedError(IntakeError):
    def __init__(self, message: str = "Method Not Allowed", **kwargs):
        kwargs.setdefault("code", "method_not_allowed")
        super().__init__(message, status_code=405, **kwargs)


class ConfigurationError(IntakeError):
    """Missing credentials or endpoints; fixed by an operator."""
    def __init__(self, message: str = "Configuration error", **kwargs):
        kwargs.setdefault("code", "configuration_error")
        super().__init__(message, status_code=500, **kwargs)


class DependencyError(IntakeError):
    """Row-store read or write failed. The whole request is safe to retry."""
    def __init__(self, message: str = "Dependency error", **kwargs):
        kwargs.setdefault("code", "dependency_error")
        super().__init__(message, status_code=500, **kwargs)


class BuyerDispatchError(IntakeError):
    """A single buyer call failed. Never escapes the router."""
    def __init__(
        self,
        message: str = "Buyer dispatch error",
        http_status: Optional[int] = None,
        **kwargs,
    ):
        kwargs.setdefault("code", "buyer_dispatch_error")
        super().__init__(message, status_code=502, **kwargs)
        self.http_status = http_status
