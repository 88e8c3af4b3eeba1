"""
Configuration management for Playlist-Curator

This module handles loading, validation, and management of application settings
from YAML files and environment variables. The configuration is organized into
logical sections using dataclasses:
- Spotify API settings (credentials, redirect URL, scopes)
- Chat endpoint settings (language-model API key and model)
- Recommendation tuning (counts, seeds)
- Local HTTP server, logging, network and token storage

All sensitive data (client secret, API keys) should come from environment
variables or a local .env file, while non-sensitive settings can live in YAML.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, asdict
from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


# Fixed permission set requested on /login
SPOTIFY_SCOPES = [
    'user-read-private',
    'user-read-email',
    'playlist-read-private',
    'playlist-read-collaborative',
    'playlist-modify-public',
    'playlist-modify-private',
]


@dataclass
class SpotifyConfig:
    """
    Spotify API configuration and authentication settings

    Sensitive values (client_id, client_secret) should be provided via
    environment variables.
    """
    client_id: str = ""
    client_secret: str = ""
    redirect_url: str = "http://localhost:3000/callback"
    scope: str = " ".join(SPOTIFY_SCOPES)
    auth_state: str = "spotify-auth-state"
    market: str = ""


@dataclass
class ChatConfig:
    """
    Language-model chat endpoint settings

    The endpoint receives a single user message and answers with text blocks.
    """
    api_key: str = ""
    model: str = "claude-3-5-sonnet-20241022"
    max_tokens: int = 1024
    api_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"


@dataclass
class RecommendationConfig:
    """Tuning for the recommendation round trip."""
    default_count: int = 10
    max_count: int = 20
    seed_count: int = 5  # Spotify accepts at most 5 seed tracks
    spotify_limit: int = 5
    example_tracks: int = 5


@dataclass
class ServerConfig:
    """Local HTTP server hosting /login, /callback and the RPC routes."""
    host: str = "localhost"
    port: int = 3000


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls log level, optional rotating file output and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class NetworkConfig:
    """HTTP behaviour shared by the Spotify and chat clients."""
    request_timeout: int = 30


@dataclass
class SecurityConfig:
    """
    Token storage configuration

    The token file path is resolved against the current working directory
    unless it is absolute or starts with ``~``.
    """
    token_storage_path: str = ".spotify_tokens.json"
    config_directory: str = "~/.playlist-curator/"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from YAML files, overrides them with environment variables
    and offers a unified interface for accessing configuration throughout the
    application.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file and environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path

        self.spotify = SpotifyConfig()
        self.chat = ChatConfig()
        self.recommendation = RecommendationConfig()
        self.server = ServerConfig()
        self.logging = LoggingConfig()
        self.network = NetworkConfig()
        self.security = SecurityConfig()

        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'spotify': self.spotify,
            'chat': self.chat,
            'recommendation': self.recommendation,
            'server': self.server,
            'logging': self.logging,
            'network': self.network,
            'security': self.security,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in order of precedence. The first
        file found is used.
        """
        config_paths = [
            self.config_path,
            Path(self.security.config_directory).expanduser() / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on the dataclass are updated; unknown
        sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'SPOTIFY_CLIENT_ID': lambda v: setattr(self.spotify, 'client_id', v),
            'SPOTIFY_CLIENT_SECRET': lambda v: setattr(self.spotify, 'client_secret', v),
            'SPOTIFY_REDIRECT_URI': lambda v: setattr(self.spotify, 'redirect_url', v),
            'ANTHROPIC_API_KEY': lambda v: setattr(self.chat, 'api_key', v),
            'CHAT_MODEL': lambda v: setattr(self.chat, 'model', v),
            'PORT': lambda v: setattr(self.server, 'port', int(v)),
            'TOKEN_STORAGE_PATH': lambda v: setattr(self.security, 'token_storage_path', v),
            'LOG_LEVEL': lambda v: setattr(self.logging, 'level', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_config_directory(self) -> Path:
        """Get the expanded config directory path"""
        return Path(self.security.config_directory).expanduser()

    def get_token_storage_path(self) -> Path:
        """
        Get the token storage path

        Relative paths are anchored at the current working directory.

        Returns:
            Path object for the token storage file
        """
        path = Path(self.security.token_storage_path).expanduser()
        if not path.is_absolute():
            path = Path.cwd() / path
        return path

    def get_login_url(self) -> str:
        """URL of the local /login endpoint handed to unauthenticated callers."""
        return f"http://{self.server.host}:{self.server.port}/login"

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to a YAML file

        Secrets are blanked before writing.

        Args:
            path: Custom path to save config, defaults to user config directory
        """
        if not path:
            path = self.get_config_directory() / "config.yaml"
        else:
            path = Path(path)

        config_data = {name: asdict(section) for name, section in self._sections().items()}

        # Remove sensitive data from saved config
        config_data['spotify']['client_id'] = ""
        config_data['spotify']['client_secret'] = ""
        config_data['chat']['api_key'] = ""

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f, default_flow_style=False, indent=2)

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable problems; empty when the configuration is usable
        """
        errors = []

        if not self.spotify.client_id or not self.spotify.client_secret:
            errors.append("Spotify client_id and client_secret are required")

        if not self.chat.api_key:
            errors.append("Chat endpoint API key (ANTHROPIC_API_KEY) is required for recommendations")

        if not 1 <= self.recommendation.seed_count <= 5:
            errors.append(f"seed_count must be between 1 and 5, got {self.recommendation.seed_count}")

        if not 0 < int(self.server.port) < 65536:
            errors.append(f"Invalid server port: {self.server.port}")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Server: {self.server.host}:{self.server.port}",
            f"Model: {self.chat.model}",
            f"Tokens: {self.security.token_storage_path}",
        ]
        return f"Settings({', '.join(sections)})"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance, created on first access
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files and environment

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global _settings
    _settings = Settings(config_path)
    return _settings
