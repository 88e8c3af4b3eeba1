# playlist_curator/utils/__init__.py
"""
Utilities package
Exceptions, logging and argument validation shared by every component
"""

from .exceptions import (
    CuratorError,
    ConfigError,
    AuthenticationRequired,
    TokenStorageError,
    ValidationError,
    UpstreamAPIError,
    SpotifyAPIError,
    ChatAPIError
)
from .logger import (
    get_logger,
    configure_from_settings,
    setup_logging,
    log_performance
)

__all__ = [
    # Exception exports
    'CuratorError',
    'ConfigError',
    'AuthenticationRequired',
    'TokenStorageError',
    'ValidationError',
    'UpstreamAPIError',
    'SpotifyAPIError',
    'ChatAPIError',

    # Logger exports
    'get_logger',
    'configure_from_settings',
    'setup_logging',
    'log_performance'
]
