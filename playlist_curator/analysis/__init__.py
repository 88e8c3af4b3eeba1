"""
Playlist analysis: feature aggregation, mood labels and summaries
"""

from .analyzer import PlaylistAnalyzer, PlaylistDetails
from .features import (
    AVERAGED_FEATURES,
    PlaylistSummary,
    average_features,
    classify_mood,
    summarize_playlist,
)

__all__ = [
    'PlaylistAnalyzer',
    'PlaylistDetails',
    'PlaylistSummary',
    'AVERAGED_FEATURES',
    'average_features',
    'classify_mood',
    'summarize_playlist',
]
