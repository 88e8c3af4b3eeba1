"""
Main CLI interface for Playlist-Curator

The CLI is built using Click and provides commands for:
- Running the local server (OAuth callback + RPC routes)
- Authentication handling (login, logout, status)
- Playlist operations (playlists, details, recommend, search, create, add)
- The interactive curation loop (curate)
- Configuration display (config show)

Every playlist command goes through CuratorService, so the CLI sees exactly
the payloads an RPC client would.
"""

import functools
import sys
import time
import webbrowser
from typing import Any, Dict, List

import click

from .config.auth import get_auth, reset_auth
from .config.settings import get_settings, reload_settings
from .server import create_server, start_in_background
from .service import SEARCH_LIMIT_DEFAULT, SEARCH_LIMIT_MAX, CuratorService
from .spotify.client import SpotifyClient
from .utils.logger import configure_from_settings, get_logger

logger = get_logger(__name__)

LOGIN_TIMEOUT_SECONDS = 300


def print_banner():
    """Print application banner to console"""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                      Playlist-Curator                         ║
║                                                               ║
║  Analyze Spotify playlists and get matching recommendations   ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    click.echo(click.style(banner, fg='green', bold=True))


def handle_error(func):
    """
    Decorator to handle common CLI errors gracefully

    Catches cancellation and unexpected exceptions, logs them and exits with
    a meaningful status code.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            click.echo(click.style("\n\nOperation cancelled by user", fg='yellow'))
            sys.exit(130)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            click.echo(click.style(f"Error: {e}", fg='red'), err=True)
            sys.exit(1)
    return wrapper


def get_service() -> CuratorService:
    return CuratorService(get_auth(), settings=get_settings())


def check_result(result: Dict[str, Any]) -> Dict[str, Any]:
    """
    Exit with a readable message when a service call returned an error payload

    Returns:
        The payload unchanged when it is not an error
    """
    if 'error' in result:
        click.echo(click.style(f"Error: {result['error']}", fg='red'), err=True)
        if result.get('authUrl'):
            click.echo("   Run 'playlist-curator auth login' or visit "
                       f"{result['authUrl']} while the server is running", err=True)
        sys.exit(1)
    return result


def resolve_playlist_id(value: str) -> str:
    try:
        return SpotifyClient.extract_playlist_id(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='PLAYLIST')


def format_recommendation(rec: Dict[str, Any]) -> str:
    if 'artists' in rec:
        text = f"\"{rec['name']}\" by {', '.join(rec['artists'])}"
    else:
        text = f"\"{rec['name']}\" by {rec.get('artist', 'Unknown Artist')}"
    if rec.get('matched') is False:
        text += click.style(" (not found on Spotify)", fg='yellow')
    return text


def print_details(details: Dict[str, Any]) -> None:
    """Print the analysis of one playlist"""
    summary = details['summary']

    click.echo(click.style(f"\n{details['name']}", bold=True))
    if details.get('description'):
        click.echo(f"   {details['description']}")
    click.echo(f"   Owner: {details.get('owner') or 'Unknown'}")
    click.echo(f"   Tracks: {details['trackCount']}")
    click.echo(f"   Mood: {summary['mood']}")
    click.echo(f"   Average popularity: {summary['popularityAvg']:.1f}")

    click.echo("\nAverages:")
    for name, value in summary['averages'].items():
        shown = f"{value:.2f}" if value is not None else "n/a"
        click.echo(f"   {name}: {shown}")

    click.echo(f"\n{summary['summary']}")


def print_recommendations(recommendations: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Print both recommendation lists with one continuous numbering

    Returns:
        All printed recommendations in display order
    """
    numbered = []

    click.echo(click.style("\nLanguage model recommendations:", bold=True))
    if not recommendations['claudeRecommendations']:
        click.echo("   (none)")
    for rec in recommendations['claudeRecommendations']:
        numbered.append(rec)
        click.echo(f"   {len(numbered)}. {format_recommendation(rec)}")

    click.echo(click.style("\nSpotify recommendations:", bold=True))
    if not recommendations['spotifyRecommendations']:
        click.echo("   (none)")
    for rec in recommendations['spotifyRecommendations']:
        numbered.append(rec)
        click.echo(f"   {len(numbered)}. {format_recommendation(rec)}")

    return numbered


def parse_selection(text: str, upper: int) -> List[int]:
    """
    Parse a comma-separated list of 1-based numbers

    Returns:
        Distinct 0-based indexes in entry order; out-of-range or non-numeric
        entries are ignored
    """
    indexes = []
    for part in text.split(','):
        part = part.strip()
        if not part.isdecimal():
            continue
        index = int(part) - 1
        if 0 <= index < upper and index not in indexes:
            indexes.append(index)
    return indexes


def selected_uris(text: str, numbered: List[Dict[str, Any]]) -> List[str]:
    """URIs of the selected recommendations that exist on Spotify"""
    return [
        numbered[index]['uri']
        for index in parse_selection(text, len(numbered))
        if numbered[index].get('uri')
    ]


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.pass_context
def cli(ctx, version, verbose, config):
    """
    Playlist-Curator - Spotify playlist analysis and recommendations

    Analyzes the audio features of your Spotify playlists, asks a language
    model for matching songs and adds the picks back to Spotify.
    """
    ctx.ensure_object(dict)

    if version:
        from . import __version__
        click.echo(f"Playlist-Curator v{__version__}")
        return

    settings = reload_settings(config) if config else get_settings()

    if verbose:
        settings.logging.level = 'DEBUG'
        ctx.obj['verbose'] = True

    configure_from_settings()

    if config:
        logger.info(f"Loaded config: {config}")

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


@cli.command()
@click.option('--host', help='Interface to bind (overrides config)')
@click.option('--port', type=int, help='Port to listen on (overrides config)')
@handle_error
def serve(host, port):
    """
    Run the local server

    Serves /login and /callback for Spotify authentication and /rpc/<method>
    for the curator methods until interrupted.
    """
    settings = get_settings()
    if host:
        settings.server.host = host
    if port:
        settings.server.port = port

    if not settings.spotify.client_id or not settings.spotify.client_secret:
        click.echo(click.style("Spotify client_id and client_secret must be configured "
                               "(SPOTIFY_CLIENT_ID / SPOTIFY_CLIENT_SECRET)", fg='red'), err=True)
        sys.exit(1)

    for issue in settings.validate():
        logger.warning(issue)

    auth_manager = get_auth()
    server = create_server(auth_manager, get_service(), settings.server.host, settings.server.port)

    if auth_manager.ensure_valid_token():
        logger.console_info("Successfully loaded existing Spotify authentication")
    else:
        logger.console_info(f"Please authenticate with Spotify at {settings.get_login_url()}")

    click.echo(f"Playlist-Curator server is running on {server.base_url} (Ctrl+C to stop)")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        click.echo("\nShutting down")
    finally:
        server.server_close()


@cli.group()
def auth():
    """
    Authentication management

    Commands for signing in to Spotify, checking the stored token and
    removing it.
    """
    pass


@auth.command()
@handle_error
def login():
    """
    Authenticate with Spotify

    Starts the local server, opens the browser at /login and waits until the
    callback has stored a token.
    """
    settings = get_settings()
    auth_manager = get_auth()

    if auth_manager.ensure_valid_token():
        user_info = SpotifyClient(auth_manager).get_current_user()
        click.echo(f"Already authenticated as: {user_info.get('display_name') or user_info.get('id', 'Unknown')}")
        return

    server = create_server(auth_manager, get_service(), settings.server.host, settings.server.port)
    start_in_background(server)

    try:
        login_url = settings.get_login_url()
        click.echo("Opening browser for Spotify authorization...")
        click.echo(f"If browser doesn't open, visit: {login_url}")
        webbrowser.open(login_url)

        click.echo("Waiting for authorization callback...")
        start_time = time.time()
        while not auth_manager.is_authenticated:
            time.sleep(0.5)
            if time.time() - start_time > LOGIN_TIMEOUT_SECONDS:
                raise TimeoutError("Authorization timeout")
    finally:
        server.shutdown()
        server.server_close()

    user_info = SpotifyClient(auth_manager).get_current_user()
    click.echo(f"Successfully authenticated as: {user_info.get('display_name') or user_info.get('id', 'Unknown')}")


@auth.command()
@handle_error
def logout():
    """Remove the stored Spotify token"""
    click.echo("Removing stored authentication...")
    get_auth().revoke()
    reset_auth()
    click.echo("Successfully logged out")


@auth.command()
@handle_error
def status():
    """Check authentication status"""
    auth_manager = get_auth()

    if auth_manager.ensure_valid_token():
        user_info = SpotifyClient(auth_manager).get_current_user()
        expires_in = int(auth_manager.token_state.expires_at - time.time())
        click.echo("Authentication Status: Authenticated")
        click.echo(f"   User: {user_info.get('display_name') or user_info.get('id', 'Unknown')}")
        click.echo(f"   Country: {user_info.get('country', 'Unknown')}")
        click.echo(f"   Token expires in: {max(expires_in, 0) // 60} minutes")
    else:
        click.echo(f"Authentication Status: {auth_manager.state.value.capitalize()}")
        click.echo("   Run 'playlist-curator auth login' to authenticate")


@cli.command()
@handle_error
def playlists():
    """List your Spotify playlists"""
    result = check_result(get_service().get_playlists())

    if not result['playlists']:
        click.echo("No playlists found")
        return

    click.echo(f"Found {len(result['playlists'])} playlists:\n")
    for index, playlist in enumerate(result['playlists'], 1):
        click.echo(f"{index:3d}. {playlist['name']} ({playlist['trackCount']} tracks)  {playlist['id']}")


@cli.command()
@click.argument('playlist')
@handle_error
def details(playlist):
    """Show the audio feature analysis of a playlist (URL, URI or ID)"""
    playlist_id = resolve_playlist_id(playlist)
    print_details(check_result(get_service().get_playlist_details({'playlistId': playlist_id})))


@cli.command()
@click.argument('playlist')
@click.option('--count', '-n', type=click.IntRange(min=1),
              help='Number of songs to ask for (default and maximum come from the recommendation config)')
@click.option('--show-prompt', is_flag=True, help='Print the prompt and raw model reply')
@handle_error
def recommend(playlist, count, show_prompt):
    """Recommend songs that fit a playlist"""
    playlist_id = resolve_playlist_id(playlist)
    args = {'playlistId': playlist_id}
    if count is not None:
        args['count'] = count
    result = check_result(get_service().get_claude_recommendations(args))

    click.echo(f"Recommendations for {result['playlistName']}:")
    print_recommendations(result)

    if show_prompt:
        click.echo(click.style("\nPrompt:", bold=True))
        click.echo(result['originalPrompt'])
        click.echo(click.style("\nModel reply:", bold=True))
        click.echo(result['claudeResponse'])


@cli.command()
@click.argument('query')
@click.option('--limit', '-l', type=click.IntRange(min=1),
              help=f'Number of results (default {SEARCH_LIMIT_DEFAULT}, at most {SEARCH_LIMIT_MAX})')
@handle_error
def search(query, limit):
    """Search Spotify for tracks"""
    args = {'query': query}
    if limit is not None:
        args['limit'] = limit
    result = check_result(get_service().search_tracks(args))

    if not result['tracks']:
        click.echo("No tracks found")
        return

    for index, track in enumerate(result['tracks'], 1):
        click.echo(f"{index:3d}. {format_recommendation(track)}  {track['uri']}")


@cli.command()
@click.argument('name')
@click.option('--description', '-d', default='', help='Playlist description')
@click.option('--public', is_flag=True, help='Make the playlist public')
@handle_error
def create(name, description, public):
    """Create a new playlist"""
    result = check_result(get_service().create_playlist({
        'name': name,
        'description': description,
        'isPublic': public,
    }))
    click.echo(f"Created playlist: {result['name']}")
    click.echo(f"   ID: {result['id']}")
    if result.get('url'):
        click.echo(f"   URL: {result['url']}")


@cli.command()
@click.argument('playlist')
@click.argument('uris', nargs=-1)
@handle_error
def add(playlist, uris):
    """Add track URIs to a playlist"""
    playlist_id = resolve_playlist_id(playlist)
    result = check_result(get_service().add_recommendations_to_playlist({
        'playlistId': playlist_id,
        'trackUris': list(uris),
    }))
    click.echo(result['message'])


@cli.command()
@handle_error
def curate():
    """
    Interactive curation session

    Pick a playlist, review its analysis and recommendations, then add the
    picks to the playlist or to a new one.
    """
    service = get_service()
    max_count = service.settings.recommendation.max_count

    result = check_result(service.get_playlists())
    user_playlists = result['playlists']
    if not user_playlists:
        click.echo("No playlists found")
        return

    click.echo("\nYour playlists:")
    for index, playlist in enumerate(user_playlists, 1):
        click.echo(f"{index:3d}. {playlist['name']} ({playlist['trackCount']} tracks)")

    choice = click.prompt(
        "\nEnter the number of the playlist you want to curate",
        type=click.IntRange(1, len(user_playlists))
    )
    selected = user_playlists[choice - 1]

    click.echo(f"\nAnalyzing playlist: {selected['name']}...")
    print_details(check_result(service.get_playlist_details({'playlistId': selected['id']})))

    count = click.prompt(
        f"\nHow many recommendations would you like? (1-{max_count})",
        type=click.IntRange(1, max_count),
        default=service.settings.recommendation.default_count
    )

    click.echo("\nGetting recommendations...")
    recommendations = check_result(service.get_claude_recommendations({
        'playlistId': selected['id'],
        'count': count,
    }))
    numbered = print_recommendations(recommendations)

    if not numbered:
        return

    if click.confirm("\nWould you like to add some of these recommendations to your playlist?"):
        selection = click.prompt("Enter the numbers of the recommendations to add (comma-separated, e.g., 1,3,5)")
        uris = selected_uris(selection, numbered)
        if uris:
            added = check_result(service.add_recommendations_to_playlist({
                'playlistId': selected['id'],
                'trackUris': uris,
            }))
            click.echo(added['message'])
        else:
            click.echo("No valid tracks selected")

    if click.confirm("\nWould you like to create a new playlist with these recommendations?"):
        name = click.prompt("Enter a name for the new playlist")
        description = click.prompt("Enter a description (optional)", default='', show_default=False)

        created = check_result(service.create_playlist({'name': name, 'description': description}))
        click.echo(f"Created playlist: {created['name']}")

        selection = click.prompt("Enter the numbers of all recommendations to add (comma-separated, e.g., 1,3,5)")
        uris = selected_uris(selection, numbered)
        added = check_result(service.add_recommendations_to_playlist({
            'playlistId': created['id'],
            'trackUris': uris,
        }))
        click.echo(added['message'])
        if created.get('url'):
            click.echo(f"   {created['url']}")


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command()
@handle_error
def show():
    """Show current configuration (secrets masked)"""
    settings = get_settings()

    def mask(value: str) -> str:
        return f"{value[:4]}..." if value else "(not set)"

    click.echo("Current Configuration:\n")

    click.echo("Spotify:")
    click.echo(f"   Client ID: {mask(settings.spotify.client_id)}")
    click.echo(f"   Client secret: {mask(settings.spotify.client_secret)}")
    click.echo(f"   Redirect URL: {settings.spotify.redirect_url}")
    click.echo(f"   Market: {settings.spotify.market or '(account default)'}")

    click.echo("\nChat:")
    click.echo(f"   API key: {mask(settings.chat.api_key)}")
    click.echo(f"   Model: {settings.chat.model}")
    click.echo(f"   Max tokens: {settings.chat.max_tokens}")

    click.echo("\nRecommendations:")
    click.echo(f"   Default count: {settings.recommendation.default_count}")
    click.echo(f"   Max count: {settings.recommendation.max_count}")
    click.echo(f"   Seed tracks: {settings.recommendation.seed_count}")
    click.echo(f"   Spotify recommendations: {settings.recommendation.spotify_limit}")

    click.echo("\nServer:")
    click.echo(f"   Address: {settings.server.host}:{settings.server.port}")
    click.echo(f"   Token file: {settings.get_token_storage_path()}")

    click.echo("\nLogging:")
    click.echo(f"   Level: {settings.logging.level}")
    click.echo(f"   File: {settings.logging.file or '(console only)'}")

    issues = settings.validate()
    if issues:
        click.echo(f"\nFound {len(issues)} issues:")
        for issue in issues:
            click.echo(f"   • {issue}")


if __name__ == '__main__':
    cli()
