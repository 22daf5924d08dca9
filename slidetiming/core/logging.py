"""Logging configuration for SlideTiming."""
import logging
import sys
from typing import TextIO


def setup_logging(level: int | str = logging.INFO, stream: TextIO = sys.stdout) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (default: INFO)
        stream: Where log lines go; the CLI keeps stdout for its own output
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(stream)
        ]
    )
