"""Serialization utilities."""

from dataclasses import asdict


def serialize_dataclass(obj, drop_none: bool = False) -> dict:
    """Serialize a dataclass to dict.

    With ``drop_none`` set, top-level fields whose value is None are omitted.
    """
    data = asdict(obj)
    if drop_none:
        return {key: value for key, value in data.items() if value is not None}
    return data
