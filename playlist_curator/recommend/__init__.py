"""
Song recommendations from a language model and from Spotify
"""

from .chat import ChatClient
from .parser import ParseError, RecommendationCandidate, parse_recommendations
from .recommender import RecommendationOrchestrator, RecommendationResult, build_prompt

__all__ = [
    'ChatClient',
    'ParseError',
    'RecommendationCandidate',
    'parse_recommendations',
    'RecommendationOrchestrator',
    'RecommendationResult',
    'build_prompt',
]
