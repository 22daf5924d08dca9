"""Core configuration module for SlideTiming."""

from .config import Settings, get_settings
from .logging import setup_logging
from .errors import (
    SlideTimingError,
    ValidationError,
    UnknownOwnerError,
    OwnerMismatchError,
    StoreUnavailableError,
    DuplicateFingerprintError,
    FingerprintNotFoundError,
    IndexDriftError,
)

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "SlideTimingError",
    "ValidationError",
    "UnknownOwnerError",
    "OwnerMismatchError",
    "StoreUnavailableError",
    "DuplicateFingerprintError",
    "FingerprintNotFoundError",
    "IndexDriftError",
]
