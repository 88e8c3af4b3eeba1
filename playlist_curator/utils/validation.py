"""
Input validation utilities

Every validator raises ValidationError with a caller-facing message, so the
service layer can reject malformed arguments before touching the network.
"""

import re
from typing import Any, List, Optional

from .exceptions import ValidationError

TRACK_URI_PATTERN = re.compile(r'^spotify:(track|episode|local):\S+$')


def require_string(args: dict, key: str, message: str) -> str:
    """
    Fetch a required non-empty string argument

    Args:
        args: Method argument map
        key: Argument name
        message: Error message when missing

    Returns:
        The stripped string value
    """
    value = args.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message)
    return value.strip()


def validate_playlist_id(args: dict) -> str:
    """Validate the ``playlistId`` argument shared by most methods"""
    return require_string(args, 'playlistId', "Playlist ID is required")


def validate_count(value: Any, default: int, maximum: int, name: str = "count") -> int:
    """
    Validate an optional positive integer argument

    Args:
        value: Raw argument (None selects the default)
        default: Value used when the argument is absent
        maximum: Upper bound, inclusive
        name: Argument name for error messages

    Returns:
        The validated integer
    """
    if value is None:
        return default

    # bool is an int subclass; "true" is not a count
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and value.strip().isdecimal():
        number = int(value)
    else:
        raise ValidationError(f"{name} must be an integer")

    if number < 1 or number > maximum:
        raise ValidationError(f"{name} must be between 1 and {maximum}")

    return number


def validate_track_uris(value: Any) -> List[str]:
    """
    Validate a list of Spotify track URIs

    An empty list is valid; adding nothing is a successful no-op.

    Args:
        value: Raw ``trackUris`` argument

    Returns:
        The URIs in the order supplied
    """
    if not isinstance(value, list):
        raise ValidationError("Playlist ID and an array of track URIs are required")

    for uri in value:
        if not isinstance(uri, str) or not TRACK_URI_PATTERN.match(uri):
            raise ValidationError(f"Invalid track URI: {uri!r}")

    return list(value)


def validate_optional_bool(value: Any, name: str, default: bool = False) -> bool:
    """Validate an optional boolean flag"""
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean")
    return value


def optional_string(args: dict, key: str, default: str = "") -> str:
    """Fetch an optional string argument, rejecting non-string values"""
    value: Optional[Any] = args.get(key)
    if value is None:
        return default
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    return value
