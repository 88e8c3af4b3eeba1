"""
Playlist analysis: tracks, audio features and summary for one playlist
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..spotify.client import SpotifyClient
from ..spotify.models import AnalyzedTrack, SpotifyPlaylist
from ..utils.logger import get_logger, log_performance
from .features import PlaylistSummary, summarize_playlist


@dataclass
class PlaylistDetails:
    """Playlist metadata joined with analyzed tracks and their summary"""
    playlist: SpotifyPlaylist
    tracks: List[AnalyzedTrack] = field(default_factory=list)
    summary: Optional[PlaylistSummary] = None

    @property
    def track_ids(self) -> List[str]:
        return [track.id for track in self.tracks]

    def to_dict(self) -> Dict[str, Any]:
        """Payload for getPlaylistDetails"""
        return {
            'id': self.playlist.id,
            'name': self.playlist.name,
            'description': self.playlist.description,
            'owner': self.playlist.owner_name,
            'public': self.playlist.public,
            'trackCount': len(self.tracks),
            'image': self.playlist.image,
            'tracks': [track.to_dict() for track in self.tracks],
            'summary': self.summary.to_dict() if self.summary else None,
        }


class PlaylistAnalyzer:
    """
    Fetches a playlist with audio features and summarizes it

    Attributes:
        client: Spotify client used for every read
    """

    def __init__(self, client: SpotifyClient):
        self.client = client
        self.logger = get_logger(__name__)

    @log_performance
    def analyze(self, playlist_id: str) -> PlaylistDetails:
        """
        Build PlaylistDetails for a playlist

        Args:
            playlist_id: Spotify playlist identifier

        Returns:
            Playlist metadata, analyzed tracks in playlist order and summary
        """
        playlist = self.client.get_playlist_info(playlist_id)
        tracks = self.client.get_playlist_tracks(playlist_id)
        playlist.tracks = tracks

        features = self.client.get_audio_features([track.id for track in tracks])
        analyzed = [AnalyzedTrack(track=track, features=vector) for track, vector in zip(tracks, features)]

        summary = summarize_playlist(analyzed)
        self.logger.info(
            f"Analyzed playlist '{playlist.name}': {summary.track_count} tracks, mood {summary.mood}"
        )

        return PlaylistDetails(playlist=playlist, tracks=analyzed, summary=summary)
