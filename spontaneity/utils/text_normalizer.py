from typing import Any


def clean_str(value: Any) -> str:
    """Return a trimmed string, or "" when value is not a non-blank string.

    Args:
        value: Arbitrary JSON value from an upstream payload.

    Returns:
        str: Trimmed text, possibly empty.
    """
    if not isinstance(value, str):
        return ""
    return value.strip()
