"""Shared parsing helpers for runtime configuration value normalization."""

from __future__ import annotations


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


def parse_string_list(value: object, field_name: str) -> tuple[str, ...]:
    """Parse a list of path-like strings, accepting a comma-separated string form.

    Blank entries are dropped and order is preserved.

    Raises:
        ValueError: If the value is neither a string nor a list of scalars.
    """

    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: list[object] = list(value.split(","))
    elif isinstance(value, list | tuple):
        raw_items = list(value)
    else:
        raise ValueError(f"`{field_name}` must be a list of strings.")

    items: list[str] = []
    for raw_item in raw_items:
        if isinstance(raw_item, dict | list | tuple):
            raise ValueError(f"`{field_name}` must be a list of strings.")
        normalized = normalize_optional_string(raw_item)
        if normalized is not None:
            items.append(normalized)
    return tuple(items)
