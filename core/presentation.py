"""
Presentation Layer Base Classes.

The presentation layer turns domain objects into plain view models
(dicts of strings, numbers and booleans) for the storefront pages.

Key principles:
- View models are stateless representations
- No business logic in view builders
- Consistent tones and formatting across views
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional
from enum import Enum


class ViewSchemaVersion:
    """View-model schema version for backward compatibility."""
    CURRENT = "1.0"


class Tone(Enum):
    """Standard badge tones."""
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
    INFO = "info"
    SECONDARY = "secondary"


@dataclass
class StatusTheme:
    """
    Tone configuration for status badges.

    Provides consistent badge colors across all order views.
    """
    order_tones: Dict[str, str] = field(default_factory=lambda: {
        "pending": "secondary",
        "confirmed": "warning",
        "shipped": "info",
        "delivered": "success",
        "cancelled": "danger",
    })

    return_tones: Dict[str, str] = field(default_factory=lambda: {
        "requested": "warning",
        "approved": "info",
        "processing": "warning",
        "completed": "success",
        "rejected": "danger",
        "cancelled": "secondary",
    })

    settlement_tones: Dict[str, str] = field(default_factory=lambda: {
        "settled": "success",
        "due": "warning",
        "pending": "warning",
        "failed": "danger",
    })

    def order_tone(self, status: str) -> str:
        return self.order_tones.get(status, Tone.SECONDARY.value)

    def return_tone(self, status: str) -> str:
        return self.return_tones.get(status, Tone.SECONDARY.value)

    def settlement_tone(self, state: str) -> str:
        return self.settlement_tones.get(state, Tone.SECONDARY.value)


# Default theme instance
DEFAULT_THEME = StatusTheme()


class ViewComposer(ABC):
    """
    Abstract base class for view composers.

    A ViewComposer transforms domain data into view models. Each use case
    has its own composer that knows how to present its data types.
    """

    def __init__(self, theme: Optional[StatusTheme] = None):
        self.theme = theme or DEFAULT_THEME
        self.schema_version = ViewSchemaVersion.CURRENT

    @abstractmethod
    def get_view_builders(self) -> Dict[str, Callable]:
        """
        Return a dictionary of view builder methods.

        This allows callers to request views by name.
        """
        pass


class TextFormatter:
    """
    Utility class for formatting text in views.

    Provides consistent formatting for common data types.
    """

    @staticmethod
    def date(dt: Optional[datetime], format: str = "%d %b %Y") -> Optional[str]:
        """Format a date."""
        return dt.strftime(format) if dt else None

    @staticmethod
    def humanize(code: str) -> str:
        """Turn a snake_case code into words, e.g. 'size_issue' -> 'Size issue'."""
        words = code.replace("_", " ").replace("-", " ").strip()
        return words[:1].upper() + words[1:]

    @staticmethod
    def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
        """Pluralize a word based on count."""
        if count == 1:
            return f"{count} {singular}"
        return f"{count} {plural or singular + 's'}"
