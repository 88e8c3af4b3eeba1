"""Test the model reply parser"""

import pytest

from playlist_curator.recommend.parser import (
    RecommendationCandidate,
    parse_line,
    parse_recommendations,
)


class TestParseRecommendations:
    """Test line-by-line parsing"""

    def test_blank_and_separatorless_lines_are_dropped(self):
        text = "Bohemian Rhapsody - Queen\n\ninvalidline\nHey Jude - The Beatles"
        candidates, errors = parse_recommendations(text)

        assert candidates == [
            RecommendationCandidate(name="Bohemian Rhapsody", artist="Queen"),
            RecommendationCandidate(name="Hey Jude", artist="The Beatles"),
        ]
        assert [error.line for error in errors] == ["", "invalidline"]
        assert errors[0].reason == "blank line"
        assert errors[1].reason == "no '-' separator"

    def test_hyphenated_title_splits_at_first_hyphen(self):
        """Titles containing a hyphen mis-split; the extra part is ignored"""
        candidates, _ = parse_recommendations("Under My Thumb - Stereo Mix - The Rolling Stones")

        assert candidates == [RecommendationCandidate(name="Under My Thumb", artist="Stereo Mix")]

    def test_list_markers_are_kept(self):
        candidates, _ = parse_recommendations("1. Wonderwall - Oasis")

        assert candidates[0].name == "1. Wonderwall"
        assert candidates[0].artist == "Oasis"

    def test_whitespace_is_trimmed(self):
        assert parse_line("   Yellow   -   Coldplay  ") == RecommendationCandidate("Yellow", "Coldplay")

    def test_empty_reply(self):
        candidates, errors = parse_recommendations("")

        assert candidates == []
        assert len(errors) == 1

    def test_parse_line_rejects_lines_without_separator(self):
        with pytest.raises(ValueError):
            parse_line("Just a sentence")


def test_candidate_search_query():
    candidate = RecommendationCandidate(name="Hey Jude", artist="The Beatles")

    assert candidate.search_query == "track:Hey Jude artist:The Beatles"
    assert candidate.to_dict() == {'name': "Hey Jude", 'artist': "The Beatles"}
