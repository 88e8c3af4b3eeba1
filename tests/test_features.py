"""Test feature aggregation, mood labels and summary text"""

import itertools
import random

import pytest

from conftest import make_analyzed
from playlist_curator.analysis.features import (
    AVERAGED_FEATURES,
    average_features,
    classify_mood,
    describe_level,
    summarize_playlist,
)


class TestClassifyMood:
    """Test the valence/energy decision tree"""

    @pytest.mark.parametrize('valence, energy, mood', [
        (0.8, 0.8, "Euphoric/Excited"),
        (0.8, 0.5, "Happy/Cheerful"),
        (0.5, 0.8, "Energetic/Tense"),
        (0.5, 0.5, "Balanced/Neutral"),
        (0.2, 0.8, "Angry/Intense"),
        (0.2, 0.2, "Sad/Melancholic"),
    ])
    def test_mood_table(self, valence, energy, mood):
        assert classify_mood(valence, energy) == mood

    def test_thresholds_are_strict(self):
        """0.7 is not high and 0.4 is low"""
        assert classify_mood(0.7, 0.7) == "Balanced/Neutral"
        assert classify_mood(0.4, 0.9) == "Angry/Intense"
        assert classify_mood(0.71, 0.7) == "Happy/Cheerful"

    def test_missing_input_is_unknown(self):
        assert classify_mood(None, 0.5) == "Unknown"
        assert classify_mood(0.5, None) == "Unknown"


class TestAverages:
    """Test feature averaging"""

    def test_averages_ignore_missing_values(self):
        """A missing feature is excluded, never counted as zero"""
        tracks = [
            make_analyzed('a', energy=0.8, tempo=100.0),
            make_analyzed('b', energy=0.4),
            make_analyzed('c'),
        ]
        averages = average_features(tracks)

        assert averages['energy'] == pytest.approx(0.6)
        assert averages['tempo'] == pytest.approx(100.0)
        assert averages['valence'] is None
        assert set(averages) == set(AVERAGED_FEATURES)

    def test_order_independence(self):
        tracks = [
            make_analyzed(f't{i}', popularity=i * 7 % 100, energy=i / 20, valence=(20 - i) / 20,
                          tempo=90.0 + i, danceability=0.3 + i / 100)
            for i in range(20)
        ]
        shuffled = tracks[:]
        random.Random(7).shuffle(shuffled)

        first = summarize_playlist(tracks)
        second = summarize_playlist(shuffled)

        for name in AVERAGED_FEATURES:
            if first.averages[name] is None:
                assert second.averages[name] is None
            else:
                assert second.averages[name] == pytest.approx(first.averages[name])
        assert second.popularity_avg == pytest.approx(first.popularity_avg)
        assert second.mood == first.mood

    def test_mood_on_threshold_is_stable_under_reordering(self):
        """A valence mean landing on 0.7 gets one label in every order"""
        valences = [0.6, 0.76, 0.51, 0.93]
        tracks = [make_analyzed(f't{i}', energy=0.9, valence=v) for i, v in enumerate(valences)]

        summaries = [summarize_playlist(list(order)) for order in itertools.permutations(tracks)]

        assert len({summary.averages['valence'] for summary in summaries}) == 1
        assert len({summary.mood for summary in summaries}) == 1


class TestSummarizePlaylist:
    """Test the complete PlaylistSummary"""

    def test_summary_text(self):
        tracks = [
            make_analyzed('a', popularity=60, tempo=118.0, energy=0.9, danceability=0.5, valence=0.8),
            make_analyzed('b', popularity=80, tempo=122.0, energy=0.8, danceability=0.6, valence=0.9),
        ]
        summary = summarize_playlist(tracks)

        assert summary.mood == "Euphoric/Excited"
        assert summary.track_count == 2
        assert summary.popularity_avg == pytest.approx(70.0)
        assert summary.summary_text == (
            "This playlist has 2 tracks with an average tempo of 120 BPM. "
            "The overall mood is euphoric/excited with high energy and moderate danceability."
        )

    def test_optional_clauses(self):
        tracks = [make_analyzed('a', acousticness=0.9, instrumentalness=0.8, speechiness=0.5,
                                valence=0.3, energy=0.2, tempo=70.0, danceability=0.2)]
        text = summarize_playlist(tracks).summary_text

        assert "The playlist features mostly acoustic sounds." in text
        assert "The playlist is primarily instrumental." in text
        assert "The playlist contains significant spoken word elements." in text
        assert "sad/melancholic with low energy and low danceability" in text

    def test_tracks_without_features(self):
        summary = summarize_playlist([make_analyzed('a', popularity=40), make_analyzed('b', popularity=60)])

        assert summary.mood == "Unknown"
        assert all(value is None for value in summary.averages.values())
        assert summary.popularity_avg == pytest.approx(50.0)
        assert "unknown BPM" in summary.summary_text
        assert "unknown energy" in summary.summary_text

    def test_empty_playlist(self):
        summary = summarize_playlist([])

        assert summary.track_count == 0
        assert summary.popularity_avg == 0.0
        assert summary.mood == "Unknown"

    def test_to_dict_surfaces_missing_averages_as_none(self):
        data = summarize_playlist([make_analyzed('a', energy=0.5)]).to_dict()

        assert data['averages']['energy'] == 0.5
        assert data['averages']['tempo'] is None
        assert set(data) == {'mood', 'averages', 'trackCount', 'popularityAvg', 'summary'}


@pytest.mark.parametrize('value, label', [
    (None, "unknown"),
    (0.2, "low"),
    (0.4, "low"),
    (0.5, "moderate"),
    (0.7, "moderate"),
    (0.71, "high"),
])
def test_describe_level(value, label):
    assert describe_level(value) == label
