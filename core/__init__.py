"""
Core Framework for Storefront Use Cases.

This module provides the base classes that use cases implement.
The layered architecture ensures:

1. Domain Layer - Pure business rules, no I/O
2. Presentation Layer - View-model composition

Each use case follows this pattern for consistency and reusability.
"""

from .domain import DomainService, PolicyDecision, PolicyEngine, Validator, ValidationError
from .presentation import StatusTheme, TextFormatter, ViewComposer

__all__ = [
    # Domain
    "DomainService",
    "PolicyDecision",
    "PolicyEngine",
    "Validator",
    "ValidationError",
    # Presentation
    "StatusTheme",
    "TextFormatter",
    "ViewComposer",
]
