"""
Audio feature aggregation and mood classification

Pure functions over AnalyzedTrack lists: averages of the nine descriptive
audio features, a valence/energy mood label and a short English summary.
Nothing here touches the network or keeps state; a summary is recomputed on
every request.

Missing features are excluded from every average. A feature with no defined
values averages to None, which the service layer surfaces as JSON null.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..spotify.models import AnalyzedTrack

AVERAGED_FEATURES = (
    'danceability',
    'energy',
    'loudness',
    'speechiness',
    'acousticness',
    'instrumentalness',
    'liveness',
    'valence',
    'tempo',
)

HIGH_THRESHOLD = 0.7
LOW_THRESHOLD = 0.4

UNKNOWN_MOOD = "Unknown"

ACOUSTIC_THRESHOLD = 0.6
INSTRUMENTAL_THRESHOLD = 0.5
SPEECH_THRESHOLD = 0.33


@dataclass(frozen=True)
class PlaylistSummary:
    """
    Descriptive statistics for one playlist

    Attributes:
        mood: Mood label from average valence and energy
        averages: Mean of each averaged feature (None when no track defines it)
        track_count: Number of analyzed tracks
        popularity_avg: Mean track popularity (0.0 for an empty playlist)
        summary_text: Human-readable description
    """
    mood: str
    averages: Dict[str, Optional[float]] = field(default_factory=dict)
    track_count: int = 0
    popularity_avg: float = 0.0
    summary_text: str = ""

    def average(self, name: str) -> Optional[float]:
        return self.averages.get(name)

    def to_dict(self) -> Dict[str, object]:
        return {
            'mood': self.mood,
            'averages': dict(self.averages),
            'trackCount': self.track_count,
            'popularityAvg': self.popularity_avg,
            'summary': self.summary_text,
        }


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the defined values, None when there are none"""
    defined = [v for v in values if v is not None]
    if not defined:
        return None
    # fsum is correctly rounded, so the result is the same in any order
    return math.fsum(defined) / len(defined)


def average_features(tracks: List[AnalyzedTrack]) -> Dict[str, Optional[float]]:
    """
    Average each descriptive feature across tracks

    Args:
        tracks: Tracks with possibly missing features

    Returns:
        Feature name to mean, or None when no track defines the feature
    """
    return {
        name: mean(track.features.get(name) for track in tracks)
        for name in AVERAGED_FEATURES
    }


def classify_mood(valence: Optional[float], energy: Optional[float]) -> str:
    """
    Map average valence and energy to a mood label

    Both thresholds are strict: a value of exactly 0.7 is not "high" and a
    value of exactly 0.4 falls in the low band.
    """
    if valence is None or energy is None:
        return UNKNOWN_MOOD

    high_energy = energy > HIGH_THRESHOLD

    if valence > HIGH_THRESHOLD:
        return "Euphoric/Excited" if high_energy else "Happy/Cheerful"
    if valence > LOW_THRESHOLD:
        return "Energetic/Tense" if high_energy else "Balanced/Neutral"
    return "Angry/Intense" if high_energy else "Sad/Melancholic"


def describe_level(value: Optional[float]) -> str:
    """Three-tier label for a 0-1 feature"""
    if value is None:
        return "unknown"
    if value > HIGH_THRESHOLD:
        return "high"
    if value > LOW_THRESHOLD:
        return "moderate"
    return "low"


def build_summary_text(track_count: int, averages: Dict[str, Optional[float]], mood: str) -> str:
    """Compose the one-paragraph playlist description"""
    tempo = averages.get('tempo')
    tempo_text = f"{round(tempo)} BPM" if tempo is not None else "unknown BPM"

    text = (
        f"This playlist has {track_count} tracks with an average tempo of {tempo_text}. "
        f"The overall mood is {mood.lower()} with "
        f"{describe_level(averages.get('energy'))} energy and "
        f"{describe_level(averages.get('danceability'))} danceability."
    )

    acousticness = averages.get('acousticness')
    if acousticness is not None and acousticness > ACOUSTIC_THRESHOLD:
        text += " The playlist features mostly acoustic sounds."

    instrumentalness = averages.get('instrumentalness')
    if instrumentalness is not None and instrumentalness > INSTRUMENTAL_THRESHOLD:
        text += " The playlist is primarily instrumental."

    speechiness = averages.get('speechiness')
    if speechiness is not None and speechiness > SPEECH_THRESHOLD:
        text += " The playlist contains significant spoken word elements."

    return text


def summarize_playlist(tracks: List[AnalyzedTrack]) -> PlaylistSummary:
    """
    Compute the full PlaylistSummary for a list of analyzed tracks

    The result does not depend on track order.

    Args:
        tracks: Tracks joined with their audio features

    Returns:
        Immutable PlaylistSummary
    """
    averages = average_features(tracks)
    mood = classify_mood(averages['valence'], averages['energy'])
    popularity_avg = mean(track.popularity for track in tracks) or 0.0

    return PlaylistSummary(
        mood=mood,
        averages=averages,
        track_count=len(tracks),
        popularity_avg=popularity_avg,
        summary_text=build_summary_text(len(tracks), averages, mood)
    )
