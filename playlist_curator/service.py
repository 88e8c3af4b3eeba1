"""
RPC-style service facade for Playlist-Curator

Every public method takes a dict of arguments and returns a JSON-serializable
dict. Failures never escape as exceptions:

- malformed arguments return ``{"error": message}`` before any network call
- a missing or unrefreshable token returns ``{"error": "Not authenticated
  with Spotify", "authUrl": <local /login URL>}``
- upstream or storage failures are logged and returned as ``{"error": message}``

Methods are reachable under their Python names and under the camelCase names
used by RPC clients, through dispatch().
"""

import functools
from typing import Any, Callable, Dict, List, Optional

from .analysis.analyzer import PlaylistAnalyzer
from .config.auth import SpotifyAuth
from .config.settings import Settings, get_settings
from .recommend.chat import ChatClient
from .recommend.recommender import RecommendationOrchestrator
from .spotify.client import SpotifyClient
from .utils.exceptions import AuthenticationRequired, CuratorError, ValidationError
from .utils.logger import get_logger
from .utils.validation import (
    optional_string,
    require_string,
    validate_count,
    validate_optional_bool,
    validate_playlist_id,
    validate_track_uris,
)

logger = get_logger(__name__)

SEARCH_LIMIT_DEFAULT = 10
SEARCH_LIMIT_MAX = 50


def rpc_method(action: str):
    """
    Turn exceptions raised by a service method into error payloads

    Args:
        action: Description used in log messages, e.g. "getting playlists"
    """
    def decorator(func: Callable[..., Dict[str, Any]]):
        @functools.wraps(func)
        def wrapper(self, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
            try:
                return func(self, args or {})
            except ValidationError as e:
                return {'error': e.message}
            except AuthenticationRequired as e:
                return {'error': e.message, 'authUrl': e.login_url or self.auth.login_url}
            except CuratorError as e:
                logger.error(f"Error {action}: {e}")
                return {'error': e.message}
            except Exception as e:
                logger.exception(f"Unexpected error {action}")
                return {'error': str(e) or e.__class__.__name__}

        wrapper.is_rpc = True
        return wrapper

    return decorator


class CuratorService:
    """
    Facade over the Spotify client, playlist analyzer and recommender

    Attributes:
        auth: Token lifecycle manager gating every call
        client: Spotify client
        analyzer: Playlist analyzer
        recommender: Recommendation orchestrator
    """

    # camelCase RPC name -> method name
    METHODS = {
        'getPlaylists': 'get_playlists',
        'getPlaylistDetails': 'get_playlist_details',
        'getClaudeRecommendations': 'get_claude_recommendations',
        'addRecommendationsToPlaylist': 'add_recommendations_to_playlist',
        'searchTracks': 'search_tracks',
        'createPlaylist': 'create_playlist',
    }

    def __init__(
        self,
        auth: SpotifyAuth,
        settings: Optional[Settings] = None,
        client: Optional[SpotifyClient] = None,
        chat: Optional[ChatClient] = None,
        recommender: Optional[RecommendationOrchestrator] = None
    ):
        self.auth = auth
        self.settings = settings or get_settings()
        self.client = client or SpotifyClient(auth, market=self.settings.spotify.market)
        self.analyzer = PlaylistAnalyzer(self.client)
        self.chat = chat or ChatClient(self.settings.chat, timeout=self.settings.network.request_timeout)
        self.recommender = recommender or RecommendationOrchestrator(
            self.client,
            self.chat,
            config=self.settings.recommendation,
            analyzer=self.analyzer
        )

    def _require_auth(self) -> None:
        if not self.auth.ensure_valid_token():
            raise AuthenticationRequired(login_url=self.auth.login_url)

    @property
    def method_names(self) -> List[str]:
        return list(self.METHODS)

    def resolve_method(self, name: str) -> Optional[Callable[[Optional[Dict[str, Any]]], Dict[str, Any]]]:
        """
        Find a service method by RPC or Python name

        Returns:
            Bound method, or None when no such method exists
        """
        attr = self.METHODS.get(name, name)
        method = getattr(self, attr, None)
        if method is None or not getattr(method, "is_rpc", False):
            return None
        return method

    def dispatch(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Invoke a service method by name

        Raises:
            KeyError: If no method has that name
        """
        method = self.resolve_method(name)
        if method is None:
            raise KeyError(name)
        return method(args)

    @rpc_method("getting playlists")
    def get_playlists(self, args: Dict[str, Any]) -> Dict[str, Any]:
        self._require_auth()
        playlists = self.client.get_user_playlists()
        return {'playlists': [playlist.to_dict() for playlist in playlists]}

    @rpc_method("getting playlist details")
    def get_playlist_details(self, args: Dict[str, Any]) -> Dict[str, Any]:
        playlist_id = validate_playlist_id(args)
        self._require_auth()
        return self.analyzer.analyze(playlist_id).to_dict()

    @rpc_method("getting recommendations")
    def get_claude_recommendations(self, args: Dict[str, Any]) -> Dict[str, Any]:
        config = self.settings.recommendation
        playlist_id = validate_playlist_id(args)
        count = validate_count(args.get('count'), config.default_count, config.max_count)
        self._require_auth()
        return self.recommender.recommend(playlist_id, count).to_dict()

    @rpc_method("adding tracks to playlist")
    def add_recommendations_to_playlist(self, args: Dict[str, Any]) -> Dict[str, Any]:
        playlist_id = require_string(args, 'playlistId', "Playlist ID and an array of track URIs are required")
        track_uris = validate_track_uris(args.get('trackUris'))
        self._require_auth()

        count = self.client.add_tracks_to_playlist(playlist_id, track_uris)
        return {
            'success': True,
            'count': count,
            'message': f"Successfully added {count} tracks to the playlist",
        }

    @rpc_method("searching for tracks")
    def search_tracks(self, args: Dict[str, Any]) -> Dict[str, Any]:
        query = require_string(args, 'query', "Search query is required")
        limit = validate_count(args.get('limit'), SEARCH_LIMIT_DEFAULT, SEARCH_LIMIT_MAX, name="limit")
        self._require_auth()

        tracks = self.client.search_tracks(query, limit=limit)
        logger.info(f"Found {len(tracks)} tracks for query \"{query}\"")
        return {'tracks': [track.to_dict() for track in tracks]}

    @rpc_method("creating playlist")
    def create_playlist(self, args: Dict[str, Any]) -> Dict[str, Any]:
        name = require_string(args, 'name', "Playlist name is required")
        description = optional_string(args, 'description')
        public = validate_optional_bool(args.get('isPublic'), 'isPublic')
        self._require_auth()

        playlist = self.client.create_playlist(name, description=description, public=public)
        return {
            'id': playlist.id,
            'name': playlist.name,
            'description': playlist.description,
            'owner': playlist.owner_name,
            'public': playlist.public,
            'url': playlist.url,
        }
