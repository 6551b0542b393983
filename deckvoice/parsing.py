"""Shared parsing helpers for config and CLI value normalization."""

from __future__ import annotations

from collections.abc import Iterable


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_string_list(value: object, separator: str = ",") -> tuple[str, ...]:
    """Parse a separated string or an iterable into a tuple of non-empty tokens.

    Blank tokens are dropped and the first occurrence of a repeated token wins.
    """

    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: Iterable[object] = value.split(separator)
    elif isinstance(value, Iterable):
        raw_items = value
    else:
        raw_items = [value]

    tokens: list[str] = []
    for item in raw_items:
        token = normalize_optional_string(item)
        if token is not None and token not in tokens:
            tokens.append(token)
    return tuple(tokens)


def parse_non_negative_float(value: object, field_name: str) -> float:
    """Parse a non-negative number of seconds.

    Raises:
        ValueError: If the value is not a number or is negative.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a non-negative number.")
    if isinstance(value, int | float):
        parsed = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(f"`{field_name}` must be a non-negative number.")
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a non-negative number.") from exc

    if parsed < 0.0 or parsed != parsed:
        raise ValueError(f"`{field_name}` must be a non-negative number.")
    return parsed


def parse_positive_int(value: object, field_name: str) -> int:
    """Parse a strictly positive integer.

    Raises:
        ValueError: If the value is not an integer or is not positive.
    """

    if isinstance(value, bool):
        raise ValueError(f"`{field_name}` must be a positive integer.")
    if isinstance(value, int):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(f"`{field_name}` must be a positive integer.")
        try:
            parsed = int(normalized)
        except ValueError as exc:
            raise ValueError(f"`{field_name}` must be a positive integer.") from exc

    if parsed <= 0:
        raise ValueError(f"`{field_name}` must be a positive integer.")
    return parsed
