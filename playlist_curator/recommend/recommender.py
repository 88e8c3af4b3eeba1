"""
Recommendation orchestrator

Turns a playlist analysis into song suggestions from two independent
sources:

1. **Language model**: a fixed prompt describing the playlist is sent to the
   chat endpoint, the reply is parsed into (title, artist) candidates and
   every candidate is resolved with a scoped Spotify search.
2. **Spotify**: up to five random playlist tracks are used as seeds for
   Spotify's own recommendations.

The search loop and the seed recommendations share no data, so they run as
two tasks on a thread pool and are joined before the result is returned.
Either list may be empty; neither failure aborts the other.
"""

import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..analysis.analyzer import PlaylistAnalyzer, PlaylistDetails
from ..config.settings import RecommendationConfig
from ..spotify.client import SpotifyClient
from ..utils.exceptions import CuratorError
from ..utils.logger import get_logger, log_performance
from .chat import ChatClient
from .parser import ParseError, RecommendationCandidate, parse_recommendations

PROMPT_TEMPLATE = """I want you to recommend {count} songs that would fit well with this Spotify playlist.
Here's the analysis of the existing playlist:

Playlist name: {name}
Description: {description}
Number of tracks: {track_count}

Playlist mood: {mood}
Average tempo: {tempo} BPM
Average energy: {energy} (0-1 scale)
Average danceability: {danceability} (0-1 scale)
Average valence (positivity): {valence} (0-1 scale)
Average acousticness: {acousticness} (0-1 scale)

Some example tracks in the playlist:
{examples}

Based on this information, please recommend {count} songs (with artists) that would fit well with this playlist's mood, style, and energy level. Just provide the song titles and artists, nothing else. Format each recommendation as "Song Title - Artist Name" on a separate line."""

MISSING_VALUE = "n/a"


@dataclass
class RecommendationResult:
    """
    Output of one recommendation round trip

    Attributes:
        playlist_id: Source playlist identifier
        playlist_name: Source playlist title
        claude_recommendations: Resolved model suggestions, matched or not
        spotify_recommendations: Seed-based Spotify recommendations
        prompt: Exact prompt sent to the chat endpoint
        raw_response: Exact reply text
        parse_errors: Reply lines that did not yield a candidate
    """
    playlist_id: str
    playlist_name: str
    claude_recommendations: List[Dict[str, Any]] = field(default_factory=list)
    spotify_recommendations: List[Dict[str, Any]] = field(default_factory=list)
    prompt: str = ""
    raw_response: str = ""
    parse_errors: List[ParseError] = field(default_factory=list)

    @property
    def matched_uris(self) -> List[str]:
        """URIs of the model suggestions found on Spotify"""
        return [rec['uri'] for rec in self.claude_recommendations if rec.get('matched')]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'playlistName': self.playlist_name,
            'playlistId': self.playlist_id,
            'claudeRecommendations': self.claude_recommendations,
            'spotifyRecommendations': self.spotify_recommendations,
            'originalPrompt': self.prompt,
            'claudeResponse': self.raw_response,
            'parseErrors': [error.to_dict() for error in self.parse_errors],
        }


def _fixed(value: Optional[float]) -> str:
    return f"{value:.2f}" if value is not None else MISSING_VALUE


def build_prompt(details: PlaylistDetails, count: int, example_tracks: int = 5) -> str:
    """
    Render the recommendation prompt for a playlist

    Args:
        details: Analyzed playlist
        count: Number of songs to ask for
        example_tracks: Number of playlist tracks listed as examples

    Returns:
        Prompt text
    """
    summary = details.summary
    tempo = summary.average('tempo')

    examples = "\n".join(
        f'- "{item.track.name}" by {item.track.all_artists}'
        for item in details.tracks[:example_tracks]
    )

    return PROMPT_TEMPLATE.format(
        count=count,
        name=details.playlist.name,
        description=details.playlist.description or 'No description',
        track_count=len(details.tracks),
        mood=summary.mood,
        tempo=round(tempo) if tempo is not None else MISSING_VALUE,
        energy=_fixed(summary.average('energy')),
        danceability=_fixed(summary.average('danceability')),
        valence=_fixed(summary.average('valence')),
        acousticness=_fixed(summary.average('acousticness')),
        examples=examples
    )


class RecommendationOrchestrator:
    """
    Coordinates playlist analysis, the chat round trip and Spotify lookups

    Attributes:
        client: Spotify client for search and seed recommendations
        analyzer: Playlist analyzer producing PlaylistDetails
        chat: Chat endpoint client
        config: Recommendation settings
        rng: Random source for seed selection
    """

    def __init__(
        self,
        client: SpotifyClient,
        chat: ChatClient,
        config: Optional[RecommendationConfig] = None,
        analyzer: Optional[PlaylistAnalyzer] = None,
        rng: Optional[random.Random] = None
    ):
        self.client = client
        self.chat = chat
        self.config = config or RecommendationConfig()
        self.analyzer = analyzer or PlaylistAnalyzer(client)
        self.rng = rng or random.Random()
        self.logger = get_logger(__name__)

    @log_performance
    def recommend(self, playlist_id: str, count: Optional[int] = None) -> RecommendationResult:
        """
        Produce recommendations for a playlist

        Args:
            playlist_id: Spotify playlist identifier
            count: Number of songs to request from the model

        Returns:
            RecommendationResult with both lists always present

        Raises:
            CuratorError: If the playlist cannot be analyzed or the chat
                endpoint fails
        """
        count = count or self.config.default_count
        details = self.analyzer.analyze(playlist_id)

        prompt = build_prompt(details, count, self.config.example_tracks)
        response_text = self.chat.send_message(prompt)

        candidates, parse_errors = parse_recommendations(response_text)
        self.logger.info(f"Model recommended {len(candidates)} songs")
        for error in parse_errors:
            if error.line.strip():
                self.logger.debug(f"Ignored reply line {error.line!r}: {error.reason}")

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="recommend") as executor:
            resolved_future = executor.submit(self.resolve_candidates, candidates)
            seeded_future = executor.submit(self.seed_recommendations, details.track_ids)
            resolved = resolved_future.result()
            seeded = seeded_future.result()

        return RecommendationResult(
            playlist_id=details.playlist.id,
            playlist_name=details.playlist.name,
            claude_recommendations=resolved,
            spotify_recommendations=seeded,
            prompt=prompt,
            raw_response=response_text,
            parse_errors=parse_errors
        )

    def resolve_candidate(self, candidate: RecommendationCandidate) -> Dict[str, Any]:
        """
        Look up one candidate on Spotify

        Returns:
            Track payload with ``matched: True``, or the candidate with
            ``matched: False`` when the search has no hit
        """
        results = self.client.search_tracks(candidate.search_query, limit=1)
        if results:
            return {**results[0].to_dict(), 'matched': True}
        return {**candidate.to_dict(), 'matched': False}

    def resolve_candidates(self, candidates: List[RecommendationCandidate]) -> List[Dict[str, Any]]:
        """Resolve candidates in order, dropping those whose search fails"""
        resolved = []
        for candidate in candidates:
            try:
                resolved.append(self.resolve_candidate(candidate))
            except CuratorError as e:
                self.logger.error(f"Error searching for track \"{candidate.name}\": {e}")
        return resolved

    def pick_seeds(self, track_ids: List[str]) -> List[str]:
        """Up to ``seed_count`` distinct random track IDs"""
        unique_ids = list(dict.fromkeys(track_ids))
        return self.rng.sample(unique_ids, min(self.config.seed_count, len(unique_ids)))

    def seed_recommendations(self, track_ids: List[str]) -> List[Dict[str, Any]]:
        """
        Spotify's own recommendations seeded from random playlist tracks

        Returns:
            Track payloads; an empty list when there are no seeds or the
            request fails
        """
        seeds = self.pick_seeds(track_ids)
        if not seeds:
            return []

        try:
            tracks = self.client.get_recommendations(seeds, limit=self.config.spotify_limit)
        except CuratorError as e:
            self.logger.error(f"Error getting Spotify API recommendations: {e}")
            return []

        return [track.to_dict() for track in tracks]
