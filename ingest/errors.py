from __future__ import annotations


class AdapterError(Exception):
    """Raised by an external service adapter when it has no usable answer."""


def expect_dict(value: object, reason: str) -> dict:
    if not isinstance(value, dict):
        raise AdapterError(reason)
    return value


def expect_list(value: object, reason: str) -> list:
    """A missing value counts as empty; anything but a list is malformed."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise AdapterError(reason)
    return value
