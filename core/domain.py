"""
Domain Layer Base Classes.

The domain layer holds the storefront's order rules with no external
dependencies. Every consumer (order list, order detail, tracking page,
invoice) calls into it instead of re-deriving totals, timelines or
payment badges on its own.

Example Usage:
    class CancellationPolicy(PolicyEngine):
        def evaluate(self, context: dict) -> PolicyDecision:
            if context["order_status"] != "pending":
                return PolicyDecision.deny("cannot cancel order that is already confirmed/shipped")
            return PolicyDecision.approve("Order can be cancelled")
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List
from enum import Enum


class PolicyResult(Enum):
    """Result of a policy evaluation."""
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(frozen=True)
class PolicyDecision:
    """
    The outcome of a policy evaluation.

    Attributes:
        result: The policy decision result
        reason: Human-readable explanation, safe to show to the customer
        metadata: Additional context for the decision
    """
    result: PolicyResult
    reason: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_approved(self) -> bool:
        return self.result == PolicyResult.APPROVED

    @property
    def is_denied(self) -> bool:
        return self.result == PolicyResult.DENIED

    @classmethod
    def approve(cls, reason: str, **metadata: Any) -> "PolicyDecision":
        return cls(result=PolicyResult.APPROVED, reason=reason, metadata=metadata)

    @classmethod
    def deny(cls, reason: str, **metadata: Any) -> "PolicyDecision":
        return cls(result=PolicyResult.DENIED, reason=reason, metadata=metadata)


class PolicyEngine(ABC):
    """
    Abstract base class for policy engines.

    A PolicyEngine encapsulates a set of business rules that can be
    evaluated against a context to produce a decision. Policies answer
    "may this happen?" without raising; the state machine raises when
    the caller goes ahead anyway.
    """

    @abstractmethod
    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        """
        Evaluate the policy against the given context.

        Args:
            context: Dictionary containing all data needed for evaluation

        Returns:
            PolicyDecision with the result and explanation
        """
        pass

    def explain(self, context: Dict[str, Any]) -> str:
        """Human-readable explanation of how the policy applies."""
        return self.evaluate(context).reason


class DomainService(ABC):
    """
    Abstract base class for domain services.

    Domain services combine several policies and calculations into one
    operation.

    Key principles:
    - No I/O operations (database, network, file)
    - All dependencies passed as parameters
    - Return domain objects, not DTOs
    """

    @abstractmethod
    def execute(self, *args, **kwargs) -> Any:
        """Execute the domain service operation."""
        pass


@dataclass(frozen=True)
class ValidationError:
    """A validation error with field and message."""
    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


class Validator(ABC):
    """
    Abstract base class for validators.

    Validators check caller-supplied input (a cancellation reason, a
    return form) before any state change is attempted.
    """

    @abstractmethod
    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        """
        Validate the data and return any errors.

        Args:
            data: The data to validate

        Returns:
            List of ValidationError objects (empty if valid)
        """
        pass
