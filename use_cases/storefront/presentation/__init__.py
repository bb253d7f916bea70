"""
Storefront Presentation Layer.

View-model builders for the order list, order detail, tracking and
invoice pages.
"""

from .views import StorefrontViewComposer

__all__ = ["StorefrontViewComposer"]
