"""
Lifecycle Errors.

Every failure the engine reports is a recoverable, typed condition.
Each carries a stable ``code``, a message safe to show to the customer,
and structured ``details`` so the notification layer can build a
specific toast instead of a generic "something went wrong".
"""

from typing import Any, Dict, List, Optional

from core.domain import ValidationError


class LifecycleError(Exception):
    """Base class for order and return lifecycle errors."""

    code = "lifecycle_error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidLineItem(LifecycleError):
    """A line item has a negative unit price or a non-positive quantity."""

    code = "invalid_line_item"


class IllegalTransition(LifecycleError):
    """An attempted state change is not permitted from the current state."""

    code = "illegal_transition"

    def __init__(self, message: str, current: Optional[str] = None, action: Optional[str] = None, **details: Any):
        super().__init__(message, current=current, action=action, **details)
        self.current = current
        self.action = action


class UnknownStatus(LifecycleError, ValueError):
    """An upstream enum value is not recognized. Never defaulted."""

    code = "unknown_status"

    def __init__(self, field: str, value: Any):
        super().__init__(f"Unrecognized {field} value: {value!r}", field=field, value=value)
        self.field = field
        self.value = value


class InvalidRecord(LifecycleError):
    """A non-status field of an upstream record is malformed or out of range."""

    code = "invalid_record"

    def __init__(self, field: str, value: Any, expected: str):
        super().__init__(f"Invalid {field} value {value!r}: expected {expected}", field=field, value=value)
        self.field = field
        self.value = value


class ReturnAlreadyActive(LifecycleError):
    """A return request already exists for the order."""

    code = "return_already_active"


class ValidationFailed(LifecycleError):
    """Caller-supplied input failed validation before any state change."""

    code = "validation_failed"

    def __init__(self, message: str, errors: List[ValidationError]):
        super().__init__(message, errors=[e.to_dict() for e in errors])
        self.errors = errors


class CancellationReasonRequired(ValidationFailed):
    """Cancelling an order requires a non-empty reason from the customer."""

    def __init__(self):
        super().__init__(
            "Cancellation reason is required",
            [ValidationError(field="reason", message="Cancellation reason is required", code="required")],
        )
