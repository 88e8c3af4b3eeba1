"""
Configuration management package for Playlist-Curator

Two components live here:

1. Settings Management (settings.py):
   - Application configuration from YAML files and environment variables
   - Settings validation
   - Singleton access through get_settings() / reload_settings()

2. Authentication Management (auth.py):
   - Spotify OAuth2 authorization code and refresh grants
   - TokenState persistence through a pluggable TokenStore
   - Explicit authentication state machine (SpotifyAuth)

Usage:

    from playlist_curator.config import get_settings, get_auth

    settings = get_settings()
    auth = get_auth()
"""

from .settings import get_settings, reload_settings, Settings, SPOTIFY_SCOPES
from .auth import (
    get_auth,
    reset_auth,
    SpotifyAuth,
    AuthState,
    TokenState,
    TokenStore,
    FileTokenStore
)

__all__ = [
    # Settings management
    'get_settings',
    'reload_settings',
    'Settings',
    'SPOTIFY_SCOPES',

    # Authentication management
    'get_auth',
    'reset_auth',
    'SpotifyAuth',
    'AuthState',
    'TokenState',
    'TokenStore',
    'FileTokenStore'
]
