"""API routes for SlideTiming."""

from .routes import suggestions

__all__ = [
    "suggestions",
]
