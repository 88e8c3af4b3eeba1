"""Test Spotify data models"""

from playlist_curator.spotify.models import (
    AnalyzedTrack,
    AudioFeatures,
    SpotifyArtist,
    SpotifyPlaylist,
    SpotifyTrack,
)


class TestSpotifyModels:
    """Test Spotify data models"""

    def test_spotify_artist_creation(self):
        """Test SpotifyArtist creation from data"""
        artist = SpotifyArtist.from_spotify_data({'id': 'artist123', 'name': 'Test Artist'})

        assert artist.id == 'artist123'
        assert artist.name == 'Test Artist'

    def test_track_from_playlist_item(self, sample_track_data):
        """Playlist items nest the track object"""
        track = SpotifyTrack.from_spotify_data(sample_track_data)

        assert track.id == 'test_track_123'
        assert track.album == 'Test Album'
        assert track.popularity == 75
        assert track.primary_artist == 'Test Artist'
        assert track.all_artists == 'Test Artist, Guest'
        assert track.uri == 'spotify:track:test_track_123'

    def test_track_from_search_result(self, sample_track_data):
        """Search results are bare track objects"""
        track = SpotifyTrack.from_spotify_data(sample_track_data['track'])

        assert track.to_dict() == {
            'id': 'test_track_123',
            'name': 'Test Song',
            'artists': ['Test Artist', 'Guest'],
            'album': 'Test Album',
            'uri': 'spotify:track:test_track_123',
        }

    def test_audio_features_missing(self):
        """Tracks without features get an all-None vector"""
        features = AudioFeatures.from_spotify_data(None)

        assert all(value is None for value in features.to_dict().values())

    def test_audio_features_ignore_extra_keys(self):
        features = AudioFeatures.from_spotify_data({
            'id': 'abc', 'type': 'audio_features', 'energy': 0.61, 'tempo': 128.0, 'mode': 1,
        })

        assert features.energy == 0.61
        assert features.get('tempo') == 128.0
        assert features.valence is None

    def test_analyzed_track_flattens_features(self, sample_track_data):
        analyzed = AnalyzedTrack(
            track=SpotifyTrack.from_spotify_data(sample_track_data),
            features=AudioFeatures(energy=0.5)
        )
        data = analyzed.to_dict()

        assert data['id'] == 'test_track_123'
        assert data['popularity'] == 75
        assert data['energy'] == 0.5
        assert data['danceability'] is None

    def test_playlist_without_images(self):
        playlist = SpotifyPlaylist.from_spotify_data({
            'id': 'pl',
            'name': 'Empty',
            'description': None,
            'owner': {'id': 'owner_id', 'display_name': None},
            'tracks': {'total': 0},
            'images': None,
        })

        assert playlist.image is None
        assert playlist.description == ''
        assert playlist.owner_name == 'owner_id'
        assert playlist.tracks == []
