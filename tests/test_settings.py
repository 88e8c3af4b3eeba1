"""Test settings loading and validation"""

from pathlib import Path

import yaml

from playlist_curator.config.settings import SPOTIFY_SCOPES, Settings


class TestSettings:
    """Test YAML + environment configuration"""

    def test_defaults(self, tmp_path):
        settings = Settings(config_path=str(tmp_path / "missing.yaml"))

        assert settings.spotify.redirect_url == "http://localhost:3000/callback"
        assert settings.spotify.scope.split() == SPOTIFY_SCOPES
        assert settings.spotify.auth_state == "spotify-auth-state"
        assert settings.chat.api_url == "https://api.anthropic.com/v1/messages"
        assert settings.recommendation.default_count == 10
        assert settings.recommendation.max_count == 20
        assert settings.recommendation.seed_count == 5
        assert settings.server.port == 3000
        assert settings.security.token_storage_path == ".spotify_tokens.json"

    def test_yaml_values(self, settings):
        assert settings.spotify.client_id == 'test-client-id'
        assert settings.chat.api_key == 'test-api-key'

    def test_unknown_keys_are_ignored(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({'server': {'port': 4100, 'bogus': 1}, 'unknown': {'a': 1}}))

        settings = Settings(config_path=str(config_file))

        assert settings.server.port == 4100
        assert not hasattr(settings.server, 'bogus')

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({'spotify': {'client_id': 'from-yaml'}, 'server': {'port': 4000}}))
        monkeypatch.setenv('SPOTIFY_CLIENT_ID', 'from-env')
        monkeypatch.setenv('PORT', '5000')
        monkeypatch.setenv('ANTHROPIC_API_KEY', 'env-key')
        monkeypatch.setenv('TOKEN_STORAGE_PATH', '/tmp/tokens.json')

        settings = Settings(config_path=str(config_file))

        assert settings.spotify.client_id == 'from-env'
        assert settings.server.port == 5000
        assert settings.chat.api_key == 'env-key'
        assert settings.get_token_storage_path() == Path('/tmp/tokens.json')

    def test_relative_token_path_is_anchored_at_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        settings = Settings(config_path=str(tmp_path / "missing.yaml"))

        assert settings.get_token_storage_path() == tmp_path / ".spotify_tokens.json"

    def test_login_url(self, settings):
        settings.server.port = 8888

        assert settings.get_login_url() == "http://localhost:8888/login"

    def test_validate(self, tmp_path, settings):
        assert settings.validate() == []

        empty = Settings(config_path=str(tmp_path / "missing.yaml"))
        problems = empty.validate()

        assert any('client_id' in problem for problem in problems)
        assert any('ANTHROPIC_API_KEY' in problem for problem in problems)

    def test_save_config_blanks_secrets(self, tmp_path, settings):
        target = tmp_path / "saved.yaml"
        settings.save_config(str(target))

        saved = yaml.safe_load(target.read_text())
        assert saved['spotify']['client_secret'] == ""
        assert saved['chat']['api_key'] == ""
        assert saved['server']['port'] == 3000
