"""
OAuth2 authentication and token management for Spotify API

This module owns the Spotify token lifecycle for Playlist-Curator. It builds
the authorization URL served by ``/login``, exchanges the callback code for an
initial token, keeps the access token fresh with the refresh grant and
persists every change through a pluggable token store.

Authentication is modelled as an explicit state machine driven only by
SpotifyAuth:

    UNAUTHENTICATED --load/exchange--> AUTHENTICATED
    AUTHENTICATED  --within 5 min of expiry--> EXPIRED
    EXPIRED        --refresh ok--> AUTHENTICATED
    EXPIRED        --refresh failed--> EXPIRED (token kept for a later attempt)
    any            --revoke--> UNAUTHENTICATED

Token file format (shared with earlier releases):

    {"accessToken": "...", "refreshToken": "...", "expiresAt": 1700000000000}

``expiresAt`` is stored in epoch milliseconds. The file is always rewritten
in full, which is safe because the state is small and has a single owner.
Multi-process deployments need an external lock around the file.
"""

import json
import threading
import time
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import requests
import spotipy

from .settings import Settings, get_settings
from ..utils.exceptions import (
    AuthenticationRequired,
    ConfigError,
    SpotifyAPIError,
    TokenStorageError,
)
from ..utils.logger import get_logger

AUTHORIZE_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"

# Refresh this many seconds before the provider's expiry instant
EXPIRY_MARGIN_SECONDS = 300

DEFAULT_EXPIRES_IN = 3600


@dataclass
class TokenState:
    """
    OAuth2 access/refresh token pair plus expiry instant

    Attributes:
        access_token: Bearer token sent with every Web API call
        refresh_token: Long-lived token used to mint new access tokens
        expires_at: Epoch seconds after which the access token is invalid
    """
    access_token: str
    refresh_token: Optional[str]
    expires_at: float

    def is_expired(self, now: float, margin: float = EXPIRY_MARGIN_SECONDS) -> bool:
        """True once ``now`` is inside the safety margin before expiry"""
        return now > self.expires_at - margin

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the token file layout"""
        return {
            'accessToken': self.access_token,
            'refreshToken': self.refresh_token,
            'expiresAt': int(self.expires_at * 1000),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TokenState':
        """
        Build a TokenState from the token file layout

        Raises:
            ValueError: If required fields are missing or have the wrong type
        """
        access_token = data.get('accessToken')
        expires_at = data.get('expiresAt')
        refresh_token = data.get('refreshToken')

        if not isinstance(access_token, str) or not access_token:
            raise ValueError("accessToken missing")
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            raise ValueError("expiresAt missing or not a number")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise ValueError("refreshToken must be a string")

        return cls(
            access_token=access_token,
            refresh_token=refresh_token or None,
            expires_at=expires_at / 1000.0
        )

    @classmethod
    def from_token_response(
        cls,
        data: Dict[str, Any],
        now: float,
        previous_refresh_token: Optional[str] = None
    ) -> 'TokenState':
        """
        Build a TokenState from an accounts-service token response

        Spotify may or may not rotate the refresh token on refresh; the
        previous one is kept when the response omits it.
        """
        return cls(
            access_token=data['access_token'],
            refresh_token=data.get('refresh_token') or previous_refresh_token,
            expires_at=now + float(data.get('expires_in', DEFAULT_EXPIRES_IN))
        )


class AuthState(Enum):
    """Authentication states managed by SpotifyAuth"""
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


class TokenStore(ABC):
    """Persistence port for TokenState"""

    @abstractmethod
    def load(self) -> Optional[TokenState]:
        """
        Load the persisted token

        Returns:
            The stored TokenState, or None when nothing has been stored yet

        Raises:
            TokenStorageError: If stored data exists but cannot be read
        """

    @abstractmethod
    def save(self, token: TokenState) -> None:
        """
        Persist the full token state, replacing anything stored before

        Raises:
            TokenStorageError: If the token cannot be written
        """

    @abstractmethod
    def clear(self) -> None:
        """Remove any persisted token"""


class FileTokenStore(TokenStore):
    """
    JSON file token store

    Writes the complete state on every save and restricts the file to its
    owner where the platform supports it.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[TokenState]:
        if not self.path.exists():
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("token file must contain a JSON object")
            return TokenState.from_dict(data)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            raise TokenStorageError(
                f"Failed to load stored token: {e}",
                details={'path': str(self.path)}
            ) from e

    def save(self, token: TokenState) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(token.to_dict(), f)
        except OSError as e:
            raise TokenStorageError(
                f"Failed to save token: {e}",
                details={'path': str(self.path)}
            ) from e

        try:
            # 0o600 = owner read/write only
            self.path.chmod(0o600)
        except OSError:
            # Windows doesn't support chmod
            pass

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise TokenStorageError(
                f"Failed to delete token file: {e}",
                details={'path': str(self.path)}
            ) from e


class SpotifyAuth:
    """
    Spotify OAuth2 token lifecycle manager

    Owns the current TokenState and the authentication state machine. Every
    authenticated operation calls ensure_valid_token() first; the manager
    loads a persisted token on first use, refreshes it shortly before it
    expires and persists each change.

    Attributes:
        settings: Application settings instance
        store: Token persistence port
        client_id: Spotify application client ID
        client_secret: Spotify application client secret
        redirect_uri: OAuth2 callback URL
        scope: Space-separated permission scopes
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[TokenStore] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize authentication manager

        Args:
            settings: Settings to read credentials from (global settings if None)
            store: Token store (file store at the configured path if None)
            clock: Source of the current epoch time in seconds
        """
        self.settings = settings or get_settings()
        self.store = store or FileTokenStore(self.settings.get_token_storage_path())
        self.clock = clock
        self.logger = get_logger(__name__)

        self.client_id = self.settings.spotify.client_id
        self.client_secret = self.settings.spotify.client_secret
        self.redirect_uri = self.settings.spotify.redirect_url
        self.scope = self.settings.spotify.scope
        self.auth_state = self.settings.spotify.auth_state
        self.timeout = self.settings.network.request_timeout

        self._lock = threading.RLock()
        self._token: Optional[TokenState] = None
        self._state = AuthState.UNAUTHENTICATED
        self._spotify_client: Optional[spotipy.Spotify] = None
        self._client_token: Optional[str] = None

    @property
    def state(self) -> AuthState:
        """Current authentication state"""
        return self._state

    @property
    def token_state(self) -> Optional[TokenState]:
        """Token currently held in memory"""
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._state is AuthState.AUTHENTICATED

    @property
    def login_url(self) -> str:
        """Local URL that starts the authorization flow"""
        return self.settings.get_login_url()

    def build_authorize_url(self) -> str:
        """
        Build the Spotify authorization URL for the code grant

        Returns:
            Complete authorize URL with client id, redirect URI, scopes and
            the static anti-forgery state value
        """
        params = {
            'client_id': self.client_id,
            'response_type': 'code',
            'redirect_uri': self.redirect_uri,
            'scope': self.scope,
            'state': self.auth_state,
        }
        return f"{AUTHORIZE_URL}?{urllib.parse.urlencode(params)}"

    def _require_credentials(self) -> None:
        if not self.client_id or not self.client_secret:
            raise ConfigError("Spotify client_id and client_secret must be configured")

    def _request_token(self, data: Dict[str, str]) -> Dict[str, Any]:
        """
        POST a grant to the accounts service

        Args:
            data: Grant-specific form fields

        Returns:
            Parsed JSON token response

        Raises:
            SpotifyAPIError: On network errors, HTTP errors or malformed responses
        """
        self._require_credentials()

        form = {
            **data,
            'client_id': self.client_id,
            'client_secret': self.client_secret,
        }

        try:
            response = requests.post(
                TOKEN_URL,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                data=form,
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise SpotifyAPIError(f"Token request failed: {e}", http_status=status) from e
        except requests.RequestException as e:
            raise SpotifyAPIError(f"Token request failed: {e}") from e
        except ValueError as e:
            raise SpotifyAPIError(f"Invalid token response: {e}") from e

        if not isinstance(payload, dict) or 'access_token' not in payload:
            raise SpotifyAPIError("Token response did not include an access token")

        return payload

    def _persist(self) -> None:
        """Write the current token; failures are logged and not fatal"""
        if self._token is None:
            return
        try:
            self.store.save(self._token)
        except TokenStorageError as e:
            self.logger.warning(f"{e} - continuing with in-memory token")

    def _parse_token(self, payload: Dict[str, Any], previous_refresh_token: Optional[str] = None) -> TokenState:
        """
        Build a TokenState from a token response

        Raises:
            SpotifyAPIError: If the response fields have the wrong type
        """
        try:
            token = TokenState.from_token_response(payload, self.clock(), previous_refresh_token)
        except (TypeError, ValueError) as e:
            raise SpotifyAPIError(f"Invalid token response: {e}") from e

        if not isinstance(token.access_token, str) or not token.access_token:
            raise SpotifyAPIError("Invalid token response: access_token must be a non-empty string")
        return token

    def exchange_code(self, code: str) -> TokenState:
        """
        Exchange an authorization code for an initial token

        Args:
            code: Authorization code received on /callback

        Returns:
            The new TokenState, already adopted and persisted

        Raises:
            ConfigError: If client credentials are not configured
            SpotifyAPIError: If the accounts service rejects the exchange
        """
        payload = self._request_token({
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': self.redirect_uri,
        })

        token = self._parse_token(payload)

        with self._lock:
            self._token = token
            self._state = AuthState.AUTHENTICATED
            self._persist()

        self.logger.info("Authorization code exchanged for access token")
        return self._token

    def _load_from_store(self) -> bool:
        try:
            token = self.store.load()
        except TokenStorageError as e:
            self.logger.warning(str(e))
            return False

        if token is None:
            self.logger.info("No stored tokens found")
            return False

        self._token = token
        self._state = AuthState.AUTHENTICATED
        self.logger.info("Loaded stored Spotify tokens")
        return True

    def _refresh(self) -> bool:
        """
        Refresh the access token with the refresh grant

        Returns:
            True on success; False leaves the held token untouched
        """
        try:
            payload = self._request_token({
                'grant_type': 'refresh_token',
                'refresh_token': self._token.refresh_token,
            })
            refreshed = self._parse_token(payload, self._token.refresh_token)
        except (SpotifyAPIError, ConfigError) as e:
            self.logger.error(f"Error refreshing token: {e}")
            return False

        self._token.access_token = refreshed.access_token
        self._token.refresh_token = refreshed.refresh_token
        self._token.expires_at = refreshed.expires_at
        self._state = AuthState.AUTHENTICATED
        self._persist()

        self.logger.info("Spotify access token refreshed")
        return True

    def ensure_valid_token(self) -> bool:
        """
        Make sure a usable access token is held

        Loads a persisted token when none is in memory, and refreshes the
        token when it is within five minutes of expiring. Never raises for
        authentication or storage problems.

        Returns:
            True if authenticated calls can proceed
        """
        with self._lock:
            if self._token is None and not self._load_from_store():
                self._state = AuthState.UNAUTHENTICATED
                return False

            if self._token.is_expired(self.clock()):
                self._state = AuthState.EXPIRED
                if not self._token.refresh_token:
                    self.logger.warning("Access token expired and no refresh token is available")
                    return False
                return self._refresh()

            return self._state is AuthState.AUTHENTICATED

    def get_access_token(self) -> str:
        """
        Get a valid access token

        Raises:
            AuthenticationRequired: If no valid token can be obtained
        """
        if not self.ensure_valid_token():
            raise AuthenticationRequired(login_url=self.login_url)
        return self._token.access_token

    def get_spotify_client(self) -> spotipy.Spotify:
        """
        Get a spotipy client bound to the current access token

        A new client is built whenever the access token changes.

        Raises:
            AuthenticationRequired: If no valid token can be obtained
        """
        token = self.get_access_token()
        with self._lock:
            if self._spotify_client is None or self._client_token != token:
                self._spotify_client = spotipy.Spotify(auth=token, requests_timeout=self.timeout)
                self._client_token = token
            return self._spotify_client

    def revoke(self) -> None:
        """
        Forget the current token in memory and in storage

        The token stays valid on Spotify's side until it expires.
        """
        with self._lock:
            self._token = None
            self._state = AuthState.UNAUTHENTICATED
            self._spotify_client = None
            self._client_token = None
            try:
                self.store.clear()
            except TokenStorageError as e:
                self.logger.warning(str(e))


_auth_instance: Optional[SpotifyAuth] = None


def get_auth() -> SpotifyAuth:
    """
    Get the process-wide authentication manager

    Components receive the manager explicitly; this accessor is only used
    by the entry points that wire them together.
    """
    global _auth_instance
    if not _auth_instance:
        _auth_instance = SpotifyAuth()
    return _auth_instance


def reset_auth() -> None:
    """Drop the process-wide authentication manager"""
    global _auth_instance
    _auth_instance = None
