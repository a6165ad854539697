"""Domain-level exceptions for privacy decisions."""

from __future__ import annotations

from typing import Any


class PrivacyError(ValueError):
    """Base class for privacy feature errors."""

    reason: str = "unknown"

    def __init__(self, reason: str | None = None, *, message: str | None = None) -> None:
        super().__init__(message or reason or self.reason)
        if reason:
            self.reason = reason


class UnknownActionError(PrivacyError):
    """Raised when no handler exists for the requested action."""

    reason = "unknown_action"

    def __init__(self, action: Any) -> None:
        super().__init__(message=f"Unknown action: {action}")
        self.action = action


class InvalidPrivacyRequest(PrivacyError):
    reason = "invalid_request"


class GatewayError(PrivacyError):
    """Raised by the persistence gateway when storage cannot answer."""

    reason = "gateway_unavailable"

    def __init__(self, operation: str) -> None:
        super().__init__(message=f"gateway_failure:{operation}")
        self.operation = operation
