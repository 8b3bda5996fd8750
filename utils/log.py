"""
Logging configuration for the API process and CLI commands.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a single stream handler and a fixed format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )


__all__ = ["configure_logging"]
