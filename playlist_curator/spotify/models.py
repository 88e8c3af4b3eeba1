"""
Data models for Spotify playlist, track and audio feature information

These dataclasses are read-only projections of Spotify Web API resources.
Each model offers a ``from_spotify_data()`` factory that extracts only what
Playlist-Curator needs, with defaults for optional fields, and a
``to_dict()`` method producing the camelCase payloads returned by the
service layer.

Models:
- SpotifyArtist: artist reference embedded in tracks
- SpotifyTrack: track with artists, album name, popularity and URI
- AudioFeatures: pre-computed audio descriptors for one track
- AnalyzedTrack: a track joined with its (possibly missing) audio features
- SpotifyPlaylist: playlist metadata with optional track list
"""

from dataclasses import dataclass, field, fields
from typing import List, Optional, Dict, Any


@dataclass(frozen=True)
class SpotifyArtist:
    """
    Artist reference as embedded in track objects

    Attributes:
        id: Spotify artist identifier (None for local files)
        name: Artist display name
    """
    id: Optional[str]
    name: str

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyArtist':
        return cls(id=data.get('id'), name=data.get('name', 'Unknown Artist'))


@dataclass(frozen=True)
class SpotifyTrack:
    """
    Read-only projection of a Spotify track resource

    Attributes:
        id: Spotify track identifier
        name: Track title
        artists: Contributing artists in credit order
        album: Album name
        popularity: Popularity score (0-100)
        uri: Spotify URI (spotify:track:id)
        external_url: Link to the track on open.spotify.com
    """
    id: str
    name: str
    artists: List[SpotifyArtist]
    album: str
    popularity: int = 0
    uri: Optional[str] = None
    external_url: Optional[str] = None

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyTrack':
        """
        Build a track from a track object or a playlist item

        Playlist items nest the track under a ``track`` key; search results
        and recommendations return the track object directly.

        Args:
            data: Raw track or playlist item data

        Returns:
            SpotifyTrack instance
        """
        track_data = data['track'] if isinstance(data.get('track'), dict) else data

        return cls(
            id=track_data['id'],
            name=track_data['name'],
            artists=[SpotifyArtist.from_spotify_data(a) for a in track_data.get('artists', [])],
            album=(track_data.get('album') or {}).get('name', ''),
            popularity=track_data.get('popularity') or 0,
            uri=track_data.get('uri'),
            external_url=(track_data.get('external_urls') or {}).get('spotify')
        )

    @property
    def artist_names(self) -> List[str]:
        return [artist.name for artist in self.artists]

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else "Unknown Artist"

    @property
    def all_artists(self) -> str:
        """Comma-separated artist credit, e.g. "Artist1, Artist2" """
        return ", ".join(self.artist_names)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'artists': self.artist_names,
            'album': self.album,
            'uri': self.uri,
        }


@dataclass(frozen=True)
class AudioFeatures:
    """
    Spotify's pre-computed audio descriptors for one track

    Most values lie in [0, 1]; tempo is in BPM, loudness in dB, key is a
    pitch class and mode is 1 (major) or 0 (minor). Every field is optional:
    Spotify omits features for some tracks, and absent values must never be
    treated as zero.
    """
    danceability: Optional[float] = None
    energy: Optional[float] = None
    key: Optional[int] = None
    loudness: Optional[float] = None
    mode: Optional[int] = None
    speechiness: Optional[float] = None
    acousticness: Optional[float] = None
    instrumentalness: Optional[float] = None
    liveness: Optional[float] = None
    valence: Optional[float] = None
    tempo: Optional[float] = None
    duration_ms: Optional[int] = None
    time_signature: Optional[int] = None

    @classmethod
    def from_spotify_data(cls, data: Optional[Dict[str, Any]]) -> 'AudioFeatures':
        """
        Build features from an audio-features object

        Args:
            data: Raw audio features, or None when Spotify has none for the track

        Returns:
            AudioFeatures with every missing value left as None
        """
        if not data:
            return cls()
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def get(self, name: str) -> Optional[float]:
        return getattr(self, name)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class AnalyzedTrack:
    """Track joined with its audio features"""
    track: SpotifyTrack
    features: AudioFeatures = field(default_factory=AudioFeatures)

    @property
    def id(self) -> str:
        return self.track.id

    @property
    def popularity(self) -> int:
        return self.track.popularity

    def to_dict(self) -> Dict[str, Any]:
        """Flattened track + feature payload"""
        return {
            'id': self.track.id,
            'name': self.track.name,
            'artists': self.track.artist_names,
            'album': self.track.album,
            'popularity': self.track.popularity,
            'uri': self.track.uri,
            **self.features.to_dict(),
        }


@dataclass
class SpotifyPlaylist:
    """
    Playlist metadata with an optional track list

    Attributes:
        id: Spotify playlist identifier
        name: Playlist title
        description: Playlist description (may be empty)
        owner_name: Owner display name
        public: Public visibility flag (None when Spotify doesn't report it)
        total_tracks: Track count reported by Spotify
        image: URL of the first cover image, if any
        url: Link to the playlist on open.spotify.com
        tracks: Tracks, populated only when the full playlist was fetched
    """
    id: str
    name: str
    description: str = ""
    owner_name: str = ""
    public: Optional[bool] = None
    total_tracks: int = 0
    image: Optional[str] = None
    url: Optional[str] = None
    tracks: List[SpotifyTrack] = field(default_factory=list)

    @classmethod
    def from_spotify_data(cls, data: Dict[str, Any]) -> 'SpotifyPlaylist':
        owner = data.get('owner') or {}
        images = data.get('images') or []
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            description=data.get('description') or '',
            owner_name=owner.get('display_name') or owner.get('id', ''),
            public=data.get('public'),
            total_tracks=(data.get('tracks') or {}).get('total', 0),
            image=images[0].get('url') if images else None,
            url=(data.get('external_urls') or {}).get('spotify')
        )

    def to_dict(self) -> Dict[str, Any]:
        """Listing payload for getPlaylists"""
        return {
            'id': self.id,
            'name': self.name,
            'trackCount': self.total_tracks,
            'image': self.image,
            'owner': self.owner_name,
            'public': self.public,
        }
