"""Common CLI helper utilities."""

from __future__ import annotations

import argparse
import logging

NOISY_LOGGERS = ("pymongo", "httpx", "openai", "botocore", "urllib3")


def setup_logging(level: str = "INFO") -> None:
    """Configure standard logging format for CLI tools."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_positive_int(value: str, field_name: str = "value") -> int:
    """Parse a strictly positive integer for argparse arguments.

    Raises:
        argparse.ArgumentTypeError: If the value is not an integer > 0.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{field_name} must be an integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"{field_name} must be positive")
    return parsed


def parse_non_negative_float(value: str, field_name: str = "value") -> float:
    """Parse a number of seconds (>= 0) for argparse arguments.

    Raises:
        argparse.ArgumentTypeError: If the value is not a number >= 0.
    """
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"{field_name} must be a number") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"{field_name} must not be negative")
    return parsed
