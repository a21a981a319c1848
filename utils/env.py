"""
Environment variable readers used by config.py.
"""
import os
from typing import Optional


def get_env_str(
    name: str,
    default: Optional[str] = None,
    required: bool = False,
    strip: bool = True
) -> Optional[str]:
    """
    Read a string environment variable.

    Whitespace-only values count as unset, so a stray space in a .env file
    cannot turn BACKEND_URL into " " or silently blank out SECRET_KEY.

    Args:
        name: Environment variable name
        default: Returned when the variable is unset or empty
        required: Raise ValueError instead of returning the default
        strip: Strip leading/trailing whitespace (default: True)

    Returns:
        The value, or default when unset/empty

    Raises:
        ValueError: If required=True and the value is missing or empty
    """
    value = os.getenv(name)

    if value is not None and strip:
        value = value.strip()

    if not value:
        if required:
            raise ValueError(
                f"Required environment variable '{name}' is not set or empty. "
                f"Add it to your .env file or environment."
            )
        return default

    return value


def get_env_bool(name: str, default: bool = False) -> bool:
    """
    Read a boolean environment variable.

    "1", "true", "yes" and "on" (any case) are true; any other non-empty
    value is false. Unset or empty returns the default.
    """
    value = os.getenv(name, "").strip().lower()

    if not value:
        return default

    return value in ("1", "true", "yes", "on")


def get_env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to default on garbage."""
    value = os.getenv(name, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default
