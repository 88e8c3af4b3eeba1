"""Test the Spotify token lifecycle manager"""

import json
import urllib.parse
from unittest.mock import Mock, patch

import pytest
import requests

from conftest import NOW, InMemoryTokenStore
from playlist_curator.config.auth import (
    AuthState,
    FileTokenStore,
    SpotifyAuth,
    TokenState,
)
from playlist_curator.utils.exceptions import AuthenticationRequired, SpotifyAPIError, TokenStorageError


def token_response(access_token='new-access', expires_in=3600, refresh_token=None):
    response = Mock()
    response.raise_for_status.return_value = None
    payload = {'access_token': access_token, 'token_type': 'Bearer', 'expires_in': expires_in}
    if refresh_token:
        payload['refresh_token'] = refresh_token
    response.json.return_value = payload
    return response


class FailingStore(InMemoryTokenStore):
    """Store whose reads and writes always fail"""

    def load(self):
        raise TokenStorageError("Failed to load stored token: corrupt")

    def save(self, token):
        raise TokenStorageError("Failed to save token: disk full")


class TestTokenState:
    """Test TokenState serialization and expiry"""

    def test_file_layout_uses_milliseconds(self):
        """expiresAt is stored in epoch milliseconds"""
        token = TokenState('access', 'refresh', 1_700_000_000.5)
        data = token.to_dict()

        assert data == {'accessToken': 'access', 'refreshToken': 'refresh', 'expiresAt': 1_700_000_000_500}
        assert TokenState.from_dict(data) == token

    def test_from_dict_rejects_missing_fields(self):
        with pytest.raises(ValueError):
            TokenState.from_dict({'refreshToken': 'refresh', 'expiresAt': 1})
        with pytest.raises(ValueError):
            TokenState.from_dict({'accessToken': 'access', 'expiresAt': 'soon'})

    def test_expiry_margin(self):
        """Token counts as expired five minutes before the real expiry"""
        token = TokenState('access', 'refresh', NOW + 300)

        assert not token.is_expired(NOW - 1)
        assert token.is_expired(NOW + 1)

    def test_refresh_response_keeps_previous_refresh_token(self):
        token = TokenState.from_token_response({'access_token': 'a', 'expires_in': 60}, NOW, 'old-refresh')

        assert token.refresh_token == 'old-refresh'
        assert token.expires_at == NOW + 60


class TestFileTokenStore:
    """Test the JSON file token store"""

    def test_missing_file_loads_nothing(self, tmp_path):
        assert FileTokenStore(tmp_path / 'tokens.json').load() is None

    def test_save_and_load(self, tmp_path):
        path = tmp_path / 'tokens.json'
        store = FileTokenStore(path)
        store.save(TokenState('access', 'refresh', NOW))

        assert json.loads(path.read_text())['accessToken'] == 'access'
        assert store.load() == TokenState('access', 'refresh', NOW)

    def test_corrupt_file_raises_storage_error(self, tmp_path):
        path = tmp_path / 'tokens.json'
        path.write_text('{not json')

        with pytest.raises(TokenStorageError):
            FileTokenStore(path).load()

    def test_clear_removes_file(self, tmp_path):
        path = tmp_path / 'tokens.json'
        store = FileTokenStore(path)
        store.save(TokenState('access', None, NOW))
        store.clear()
        store.clear()

        assert not path.exists()


class TestEnsureValidToken:
    """Test the authentication state machine"""

    def test_no_stored_token(self, auth):
        with patch('playlist_curator.config.auth.requests.post') as mock_post:
            assert auth.ensure_valid_token() is False

        mock_post.assert_not_called()
        assert auth.state is AuthState.UNAUTHENTICATED

    def test_fresh_token_makes_no_network_call(self, auth, token_store):
        """A token far from expiry is used as is"""
        token_store.token = TokenState('access', 'refresh', NOW + 3600)

        with patch('playlist_curator.config.auth.requests.post') as mock_post:
            assert auth.ensure_valid_token() is True
            assert auth.ensure_valid_token() is True

        mock_post.assert_not_called()
        assert auth.state is AuthState.AUTHENTICATED
        assert token_store.saved == []

    def test_token_within_margin_is_refreshed_once(self, auth, token_store):
        """One refresh call, and the persisted expiry moves strictly later"""
        original_expiry = NOW + 200
        token_store.token = TokenState('old-access', 'refresh', original_expiry)

        with patch('playlist_curator.config.auth.requests.post', return_value=token_response()) as mock_post:
            assert auth.ensure_valid_token() is True

        assert mock_post.call_count == 1
        form = mock_post.call_args.kwargs['data']
        assert form['grant_type'] == 'refresh_token'
        assert form['refresh_token'] == 'refresh'

        assert len(token_store.saved) == 1
        persisted = token_store.saved[0]
        assert persisted.access_token == 'new-access'
        assert persisted.refresh_token == 'refresh'
        assert persisted.expires_at > original_expiry
        assert auth.state is AuthState.AUTHENTICATED

    def test_rotated_refresh_token_is_stored(self, auth, token_store):
        token_store.token = TokenState('old-access', 'old-refresh', NOW - 10)

        with patch('playlist_curator.config.auth.requests.post',
                   return_value=token_response(refresh_token='new-refresh')):
            assert auth.ensure_valid_token() is True

        assert token_store.token.refresh_token == 'new-refresh'

    def test_refresh_failure_keeps_token(self, auth, token_store):
        token_store.token = TokenState('old-access', 'refresh', NOW - 10)

        with patch('playlist_curator.config.auth.requests.post',
                   side_effect=requests.ConnectionError("network down")):
            assert auth.ensure_valid_token() is False

        assert auth.state is AuthState.EXPIRED
        assert auth.token_state.access_token == 'old-access'
        assert token_store.saved == []

    @pytest.mark.parametrize('expires_in', [None, 'abc'])
    def test_malformed_refresh_response_keeps_token(self, auth, token_store, expires_in):
        token_store.token = TokenState('old-access', 'refresh', NOW - 10)

        with patch('playlist_curator.config.auth.requests.post',
                   return_value=token_response(expires_in=expires_in)):
            assert auth.ensure_valid_token() is False

        assert auth.state is AuthState.EXPIRED
        assert auth.token_state.access_token == 'old-access'
        assert token_store.saved == []

    def test_expired_without_refresh_token(self, auth, token_store):
        token_store.token = TokenState('old-access', None, NOW - 10)

        with patch('playlist_curator.config.auth.requests.post') as mock_post:
            assert auth.ensure_valid_token() is False

        mock_post.assert_not_called()
        assert auth.state is AuthState.EXPIRED

    def test_unreadable_store_is_not_fatal(self, settings, clock):
        auth = SpotifyAuth(settings=settings, store=FailingStore(), clock=clock)

        assert auth.ensure_valid_token() is False
        assert auth.state is AuthState.UNAUTHENTICATED


class TestAuthorizationFlow:
    """Test code exchange, client access and revocation"""

    def test_authorize_url(self, auth):
        url = auth.build_authorize_url()
        params = urllib.parse.parse_qs(urllib.parse.urlparse(url).query)

        assert url.startswith('https://accounts.spotify.com/authorize?')
        assert params['client_id'] == ['test-client-id']
        assert params['response_type'] == ['code']
        assert params['redirect_uri'] == ['http://localhost:3000/callback']
        assert params['state'] == ['spotify-auth-state']
        assert 'playlist-modify-private' in params['scope'][0].split()

    def test_exchange_code_persists_token(self, auth, token_store):
        response = token_response('first-access', refresh_token='first-refresh')

        with patch('playlist_curator.config.auth.requests.post', return_value=response) as mock_post:
            token = auth.exchange_code('auth-code')

        form = mock_post.call_args.kwargs['data']
        assert form['grant_type'] == 'authorization_code'
        assert form['code'] == 'auth-code'
        assert token.expires_at == NOW + 3600
        assert token_store.token == token
        assert auth.is_authenticated

    @pytest.mark.parametrize('expires_in', [None, 'abc', [3600]])
    def test_exchange_rejects_malformed_expiry(self, auth, token_store, expires_in):
        with patch('playlist_curator.config.auth.requests.post',
                   return_value=token_response(expires_in=expires_in)):
            with pytest.raises(SpotifyAPIError, match="Invalid token response"):
                auth.exchange_code('auth-code')

        assert auth.state is AuthState.UNAUTHENTICATED
        assert token_store.saved == []

    def test_save_failure_keeps_in_memory_token(self, settings, clock):
        auth = SpotifyAuth(settings=settings, store=FailingStore(), clock=clock)

        with patch('playlist_curator.config.auth.requests.post',
                   return_value=token_response(refresh_token='refresh')):
            auth.exchange_code('auth-code')

        assert auth.ensure_valid_token() is True
        assert auth.get_access_token() == 'new-access'

    def test_get_access_token_requires_authentication(self, auth):
        with pytest.raises(AuthenticationRequired) as exc_info:
            auth.get_access_token()

        assert exc_info.value.login_url == 'http://localhost:3000/login'
        assert exc_info.value.message == 'Not authenticated with Spotify'

    def test_spotify_client_follows_token(self, auth, token_store):
        token_store.token = TokenState('access', 'refresh', NOW + 3600)

        with patch('playlist_curator.config.auth.spotipy.Spotify') as mock_spotify:
            first = auth.get_spotify_client()
            second = auth.get_spotify_client()

        assert first is second
        mock_spotify.assert_called_once_with(auth='access', requests_timeout=30)

    def test_revoke(self, auth, token_store):
        token_store.token = TokenState('access', 'refresh', NOW + 3600)
        assert auth.ensure_valid_token()

        auth.revoke()

        assert token_store.cleared
        assert auth.state is AuthState.UNAUTHENTICATED
        assert auth.ensure_valid_token() is False
