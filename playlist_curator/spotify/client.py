"""
Spotify API client for playlist reads, search, recommendations and playlist edits

This module wraps spotipy with the operations Playlist-Curator needs and
converts responses into the models from spotify.models.

Design notes:

1. **Token lifecycle**: every request asks the SpotifyAuth instance it was
   given for a client, so an expiring token is refreshed (or reported as
   AuthenticationRequired) before the call goes out.

2. **Pagination**: paged endpoints are read in a loop of offset/limit
   requests that stops as soon as a page returns fewer items than the page
   size.

3. **Error handling**: spotipy and transport failures are wrapped in
   SpotifyAPIError and propagate to the caller. There is no rate limiting and
   no retry; a failed call surfaces immediately.

4. **Playlist mutation gateway**: create_playlist() and
   add_tracks_to_playlist() are plain pass-throughs. Tracks are appended in
   the order supplied, in chunks of 100 (the API limit), with no dedup.

Usage Examples:

    client = SpotifyClient(get_auth())

    playlists = client.get_user_playlists()
    tracks = client.get_playlist_tracks("playlist_id")
    features = client.get_audio_features([t.id for t in tracks])
"""

import re
from typing import Any, Callable, Dict, List, Optional

import requests
from spotipy.exceptions import SpotifyException

from ..config.auth import SpotifyAuth
from ..utils.exceptions import SpotifyAPIError
from ..utils.logger import get_logger
from .models import AudioFeatures, SpotifyPlaylist, SpotifyTrack

# Spotify API limits
PLAYLIST_PAGE_SIZE = 100
PLAYLISTS_PAGE_SIZE = 50
AUDIO_FEATURES_BATCH = 100
ADD_ITEMS_BATCH = 100
MAX_SEED_TRACKS = 5

PLAYLIST_ITEM_FIELDS = (
    'items(track(id,name,artists(id,name),album(name),popularity,uri,external_urls,is_local,type))'
)


class SpotifyClient:
    """
    Spotify Web API client bound to an explicit SpotifyAuth

    Attributes:
        auth: Token lifecycle manager supplying authenticated spotipy clients
        market: Optional market code passed to search and recommendations
    """

    def __init__(self, auth: SpotifyAuth, market: Optional[str] = None):
        """
        Initialize the client

        Args:
            auth: Authentication manager owning the current token
            market: ISO country code for market-dependent endpoints
        """
        self.auth = auth
        self.market = market or None
        self.logger = get_logger(__name__)

    @property
    def client(self):
        """
        Authenticated spotipy client

        Raises:
            AuthenticationRequired: If no valid token is available
        """
        return self.auth.get_spotify_client()

    def _make_request(self, method: str, *args, **kwargs) -> Any:
        """
        Call a spotipy method and translate failures

        Args:
            method: Name of the spotipy.Spotify method to call
            *args: Positional arguments for the method
            **kwargs: Keyword arguments for the method

        Returns:
            Raw JSON response

        Raises:
            AuthenticationRequired: If no valid token is available
            SpotifyAPIError: If Spotify or the transport reports an error
        """
        func: Callable = getattr(self.client, method)
        try:
            return func(*args, **kwargs)
        except SpotifyException as e:
            raise SpotifyAPIError(
                e.msg or str(e),
                details={'method': method},
                http_status=e.http_status
            ) from e
        except requests.RequestException as e:
            raise SpotifyAPIError(f"Spotify request failed: {e}", details={'method': method}) from e

    def _fetch_all(self, fetch_page: Callable[[int, int], Dict[str, Any]], page_size: int) -> List[Dict[str, Any]]:
        """
        Accumulate every item of a paged endpoint

        Args:
            fetch_page: Callable taking (offset, limit) and returning a paging object
            page_size: Items requested per page

        Returns:
            All raw items in provider order
        """
        items: List[Dict[str, Any]] = []
        offset = 0

        while True:
            page = fetch_page(offset, page_size)
            page_items = page.get('items') or []
            items.extend(page_items)

            # A short page is the last page
            if len(page_items) < page_size:
                break

            offset += page_size

        return items

    @staticmethod
    def extract_playlist_id(url_or_id: str) -> str:
        """
        Extract a playlist ID from a Spotify URL, URI or bare ID

        Supported Formats:
        - Direct ID: 22-character alphanumeric string
        - Web URL: https://open.spotify.com/playlist/ID?si=...
        - Spotify URI: spotify:playlist:ID

        Raises:
            ValueError: If the input matches none of the formats
        """
        url_or_id = url_or_id.strip()

        if re.match(r'^[a-zA-Z0-9]{22}$', url_or_id):
            return url_or_id

        if 'spotify.com' in url_or_id and 'playlist/' in url_or_id:
            return url_or_id.split('playlist/')[-1].split('?')[0].strip('/')

        if url_or_id.startswith('spotify:'):
            parts = url_or_id.split(':')
            if len(parts) >= 3 and parts[1] == 'playlist':
                return parts[2]

        raise ValueError(f"Invalid Spotify playlist URL or ID: {url_or_id}")

    def get_user_playlists(self) -> List[SpotifyPlaylist]:
        """
        Retrieve the current user's playlists (metadata only)

        Returns:
            Owned, collaborative and followed playlists
        """
        items = self._fetch_all(
            lambda offset, limit: self._make_request('current_user_playlists', limit=limit, offset=offset),
            PLAYLISTS_PAGE_SIZE
        )
        playlists = [SpotifyPlaylist.from_spotify_data(item) for item in items if item]
        self.logger.info(f"Retrieved {len(playlists)} playlists")
        return playlists

    def get_playlist_info(self, playlist_id: str) -> SpotifyPlaylist:
        """
        Retrieve playlist metadata without tracks

        Args:
            playlist_id: Spotify playlist identifier

        Returns:
            SpotifyPlaylist with an empty track list
        """
        data = self._make_request(
            'playlist',
            playlist_id,
            fields='id,name,description,owner,public,tracks(total),images,external_urls'
        )
        return SpotifyPlaylist.from_spotify_data(data)

    def get_playlist_tracks(self, playlist_id: str, page_size: int = PLAYLIST_PAGE_SIZE) -> List[SpotifyTrack]:
        """
        Retrieve every track of a playlist

        Pages are requested until one comes back shorter than ``page_size``.
        Local files, podcast episodes and removed tracks are skipped.

        Args:
            playlist_id: Spotify playlist identifier
            page_size: Items per request (1-100)

        Returns:
            Tracks in playlist order
        """
        items = self._fetch_all(
            lambda offset, limit: self._make_request(
                'playlist_items',
                playlist_id,
                offset=offset,
                limit=limit,
                fields=PLAYLIST_ITEM_FIELDS,
                additional_types=('track',)
            ),
            page_size
        )

        tracks = []
        for position, item in enumerate(items, 1):
            track_data = (item or {}).get('track')
            if not track_data or not track_data.get('id') or track_data.get('is_local'):
                self.logger.debug(f"Skipping unavailable track at position {position}")
                continue
            tracks.append(SpotifyTrack.from_spotify_data(track_data))

        self.logger.info(f"Retrieved {len(tracks)} tracks from playlist {playlist_id}")
        return tracks

    def get_full_playlist(self, playlist_id: str) -> SpotifyPlaylist:
        """Playlist metadata together with all of its tracks"""
        playlist = self.get_playlist_info(playlist_id)
        playlist.tracks = self.get_playlist_tracks(playlist_id)
        return playlist

    def get_audio_features(self, track_ids: List[str]) -> List[AudioFeatures]:
        """
        Retrieve audio features for tracks, in batches of 100

        Args:
            track_ids: Spotify track IDs

        Returns:
            One AudioFeatures per input ID, in input order; tracks without
            features get an all-None vector
        """
        features: List[AudioFeatures] = []

        for start in range(0, len(track_ids), AUDIO_FEATURES_BATCH):
            batch = track_ids[start:start + AUDIO_FEATURES_BATCH]
            results = self._make_request('audio_features', batch) or []
            # Pad so positions keep matching the requested IDs
            results = list(results) + [None] * (len(batch) - len(results))
            features.extend(AudioFeatures.from_spotify_data(data) for data in results[:len(batch)])

        return features

    def search_tracks(self, query: str, limit: int = 10) -> List[SpotifyTrack]:
        """
        Search the Spotify catalog for tracks

        Args:
            query: Search query (supports field filters like ``track:`` and ``artist:``)
            limit: Maximum number of results (1-50)

        Returns:
            Matching tracks in relevance order
        """
        kwargs = {'q': query, 'type': 'track', 'limit': limit}
        if self.market:
            kwargs['market'] = self.market

        results = self._make_request('search', **kwargs)
        items = (results.get('tracks') or {}).get('items') or []
        return [SpotifyTrack.from_spotify_data(item) for item in items if item]

    def get_recommendations(self, seed_track_ids: List[str], limit: int = 10) -> List[SpotifyTrack]:
        """
        Retrieve Spotify's own recommendations for seed tracks

        Args:
            seed_track_ids: Seed track IDs; only the first five are used
            limit: Number of tracks to request

        Returns:
            Recommended tracks
        """
        kwargs = {'seed_tracks': seed_track_ids[:MAX_SEED_TRACKS], 'limit': limit}
        if self.market:
            kwargs['country'] = self.market

        results = self._make_request('recommendations', **kwargs)
        return [SpotifyTrack.from_spotify_data(item) for item in results.get('tracks') or [] if item]

    def get_current_user(self) -> Dict[str, Any]:
        """Profile of the authenticated user"""
        return self._make_request('current_user')

    def create_playlist(self, name: str, description: str = "", public: bool = False) -> SpotifyPlaylist:
        """
        Create a playlist owned by the current user

        Args:
            name: Playlist title
            description: Playlist description
            public: Whether the playlist is public

        Returns:
            The created playlist
        """
        user_id = self.get_current_user()['id']
        data = self._make_request(
            'user_playlist_create',
            user_id,
            name,
            public=public,
            collaborative=False,
            description=description
        )
        playlist = SpotifyPlaylist.from_spotify_data(data)
        self.logger.info(f"Created new playlist '{playlist.name}' with ID {playlist.id}")
        return playlist

    def add_tracks_to_playlist(self, playlist_id: str, track_uris: List[str]) -> int:
        """
        Append tracks to a playlist in the order supplied

        Args:
            playlist_id: Target playlist identifier
            track_uris: Spotify track URIs; may be empty

        Returns:
            Number of tracks sent to Spotify
        """
        if not track_uris:
            return 0

        for start in range(0, len(track_uris), ADD_ITEMS_BATCH):
            self._make_request('playlist_add_items', playlist_id, track_uris[start:start + ADD_ITEMS_BATCH])

        self.logger.info(f"Added {len(track_uris)} tracks to playlist {playlist_id}")
        return len(track_uris)
