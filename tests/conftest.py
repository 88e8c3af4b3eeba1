"""Test configuration and fixtures"""

from typing import Optional

import pytest
import yaml

from playlist_curator.config.auth import SpotifyAuth, TokenState, TokenStore
from playlist_curator.config.settings import Settings
from playlist_curator.spotify.models import AnalyzedTrack, AudioFeatures, SpotifyTrack

ENV_VARS = [
    'SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET', 'SPOTIFY_REDIRECT_URI',
    'ANTHROPIC_API_KEY', 'CHAT_MODEL', 'PORT', 'TOKEN_STORAGE_PATH', 'LOG_LEVEL',
]

NOW = 1_700_000_000.0


class InMemoryTokenStore(TokenStore):
    """Token store double that records every save"""

    def __init__(self, token: Optional[TokenState] = None):
        self.token = token
        self.saved = []
        self.cleared = False

    def load(self):
        if self.token is None:
            return None
        return TokenState(self.token.access_token, self.token.refresh_token, self.token.expires_at)

    def save(self, token):
        self.token = TokenState(token.access_token, token.refresh_token, token.expires_at)
        self.saved.append(self.token)

    def clear(self):
        self.token = None
        self.cleared = True


class FakeClock:
    """Controllable epoch clock"""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the settings"""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path):
    """Settings loaded from a temporary YAML file"""
    config_file = tmp_path / "config.yaml"
    config_file.write_text(yaml.safe_dump({
        'spotify': {'client_id': 'test-client-id', 'client_secret': 'test-secret'},
        'chat': {'api_key': 'test-api-key'},
        'server': {'host': 'localhost', 'port': 3000},
        'security': {'token_storage_path': str(tmp_path / 'tokens.json')},
    }))
    return Settings(config_path=str(config_file))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_store():
    return InMemoryTokenStore()


@pytest.fixture
def auth(settings, token_store, clock):
    return SpotifyAuth(settings=settings, store=token_store, clock=clock)


def make_track_data(track_id='track_1', name='Test Song', artists=('Test Artist',), popularity=50):
    """Raw Spotify track object"""
    return {
        'id': track_id,
        'name': name,
        'artists': [{'id': f'artist_{i}', 'name': artist} for i, artist in enumerate(artists)],
        'album': {'id': 'album_1', 'name': 'Test Album'},
        'popularity': popularity,
        'uri': f'spotify:track:{track_id}',
        'external_urls': {'spotify': f'https://open.spotify.com/track/{track_id}'},
    }


def make_analyzed(track_id='track_1', popularity=50, name='Test Song', artists=('Test Artist',), **features):
    """AnalyzedTrack with the given feature values"""
    track = SpotifyTrack.from_spotify_data(make_track_data(track_id, name, artists, popularity))
    return AnalyzedTrack(track=track, features=AudioFeatures(**features))


@pytest.fixture
def sample_track_data():
    """Sample playlist item for testing"""
    return {'track': make_track_data('test_track_123', 'Test Song', ('Test Artist', 'Guest'), 75)}
