"""
Playlist-Curator: Spotify playlist analysis with language-model recommendations

Playlist-Curator signs in to Spotify with OAuth2, summarizes a playlist's
audio features into averages and a mood label, asks a language model for
songs that fit, resolves every suggestion against Spotify search and can add
the picks back to a playlist.

## Modules

**Configuration (`playlist_curator/config/`)**
- Dataclass settings loaded from YAML, environment variables and `.env`
- Token lifecycle manager with an explicit authentication state machine
  and a pluggable token store

**Spotify Integration (`playlist_curator/spotify/`)**
- spotipy-backed client for playlists, audio features, search,
  recommendations and playlist edits
- Read-only data models for tracks, artists, features and playlists

**Analysis (`playlist_curator/analysis/`)**
- Feature averages, mood classification and a plain-English summary

**Recommendations (`playlist_curator/recommend/`)**
- Chat endpoint client, best-effort reply parser and the orchestrator
  joining model suggestions with Spotify's own recommendations

**Surfaces**
- `service.py`: RPC-style methods returning JSON payloads
- `server.py`: local HTTP server for /login, /callback and /rpc/<method>
- `main.py`: click command line (`playlist-curator`)

## Quick Start

```bash
pip install -e .
export SPOTIFY_CLIENT_ID=... SPOTIFY_CLIENT_SECRET=... ANTHROPIC_API_KEY=...
playlist-curator auth login
playlist-curator curate
```
"""

__version__ = "0.1.0"

__author__ = "Playlist-Curator Team"

__description__ = "Analyze Spotify playlists and get language-model recommendations that fit them"

__all__ = [
    "__version__",
    "__author__",
    "__description__",
]
