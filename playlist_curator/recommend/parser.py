"""
Best-effort parser for "Song Title - Artist Name" model output

Each non-blank line containing a hyphen is split on "-": the first part is
the title and the second the artist, both trimmed. Anything after a second
hyphen is ignored, so a title such as "Wake Me Up - Avicii Remix - Avicii"
mis-splits. Leading list markers ("1.", "*") are kept as part of the title.
Rejected lines are reported as ParseError entries instead of being silently
dropped.
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class RecommendationCandidate:
    """A song suggestion as written by the model"""
    name: str
    artist: str

    @property
    def search_query(self) -> str:
        """Field-filtered Spotify search query"""
        return f"track:{self.name} artist:{self.artist}"

    def to_dict(self) -> Dict[str, str]:
        return {'name': self.name, 'artist': self.artist}


@dataclass(frozen=True)
class ParseError:
    """A model-output line that did not yield a candidate"""
    line: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {'line': self.line, 'reason': self.reason}


def parse_line(line: str) -> RecommendationCandidate:
    """
    Parse a single line

    Raises:
        ValueError: If the line is blank or has no hyphen
    """
    if not line.strip():
        raise ValueError("blank line")
    if '-' not in line:
        raise ValueError("no '-' separator")

    parts = [part.strip() for part in line.split('-')]
    return RecommendationCandidate(name=parts[0], artist=parts[1])


def parse_recommendations(text: str) -> Tuple[List[RecommendationCandidate], List[ParseError]]:
    """
    Parse model output into candidates

    Args:
        text: Raw reply text

    Returns:
        Candidates in reply order, and the rejected lines
    """
    candidates: List[RecommendationCandidate] = []
    errors: List[ParseError] = []

    for line in text.split('\n'):
        try:
            candidates.append(parse_line(line))
        except ValueError as e:
            errors.append(ParseError(line=line, reason=str(e)))

    return candidates, errors
