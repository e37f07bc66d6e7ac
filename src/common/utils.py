"""Common utility functions."""

from typing import Any


def get_value(obj: Any, key: str, default: Any = None) -> Any:
    """Get value from dict or object attribute, falling back to default."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)
