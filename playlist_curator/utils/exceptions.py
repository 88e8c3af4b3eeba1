"""
Exception classes for Playlist-Curator.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message plus an optional details
dictionary, so the service layer can turn any failure into an
``{"error": message}`` payload without losing context in the logs.

Exception Hierarchy:
    CuratorError (base)
        ConfigError - Missing credentials or unreadable configuration
        AuthenticationRequired - No usable Spotify token and no refresh path
        TokenStorageError - Token file unreadable or unwritable
        ValidationError - Missing or malformed method arguments
        UpstreamAPIError - Failures reported by an external service
            SpotifyAPIError - Spotify Web API / accounts service
            ChatAPIError - Language-model chat endpoint
"""

from typing import Any, Dict, Optional


class CuratorError(Exception):
    """
    Base exception for all Playlist-Curator errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (playlist id, status code, ...).

    Example:
        try:
            service_call()
        except CuratorError as e:
            logger.error(f"Operation failed: {e.message}")
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(CuratorError):
    """
    Raised when the configuration cannot be used.

    This is the only CRITICAL error: the server refuses to start without
    Spotify client credentials.
    """
    pass


class AuthenticationRequired(CuratorError):
    """
    Raised when no valid Spotify token is available and none can be refreshed.

    Never fatal. The service layer converts it into an error payload that
    carries the local login URL so the caller can restart the OAuth flow.

    Attributes:
        login_url: URL of the local ``/login`` endpoint.
    """

    def __init__(
        self,
        message: str = "Not authenticated with Spotify",
        login_url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details)
        self.login_url = login_url


class TokenStorageError(CuratorError):
    """
    Raised by a token store when the persisted token cannot be read or written.

    Common causes:
        - Token file contains invalid JSON or misses required keys
        - Permission denied or disk full while writing

    The lifecycle manager logs it and treats the token as "not cached";
    in-memory state stays authoritative.
    """
    pass


class ValidationError(CuratorError):
    """
    Raised when a required argument is missing or malformed.

    Reported to the caller before any network call is made.
    """
    pass


class UpstreamAPIError(CuratorError):
    """
    Raised when an external service reports a failure.

    Attributes:
        http_status: HTTP status code returned by the service, if any.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        http_status: Optional[int] = None
    ) -> None:
        super().__init__(message, details)
        self.http_status = http_status


class SpotifyAPIError(UpstreamAPIError):
    """Raised when a Spotify Web API or accounts service call fails."""
    pass


class ChatAPIError(UpstreamAPIError):
    """Raised when the language-model chat endpoint fails or returns no text."""
    pass
