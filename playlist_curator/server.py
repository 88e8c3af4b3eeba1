"""
Local HTTP server for the OAuth flow and RPC calls

Routes:

    GET  /login          302 redirect to the Spotify authorization page
    GET  /callback       exchange the authorization code and store the token
    GET  /health         {"status": "ok", "authenticated": bool}
    POST /rpc/<method>   JSON object body -> CuratorService.dispatch() result

The server is an http.server.ThreadingHTTPServer; every request runs on its
own thread and shares one SpotifyAuth, which serializes token refreshes.
"""

import json
import threading
import urllib.parse
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple

from .config.auth import SpotifyAuth
from .service import CuratorService
from .utils.exceptions import CuratorError
from .utils.logger import get_logger

SUCCESS_MESSAGE = "Authentication successful! You can close this window and return to your MCP client."

RPC_PREFIX = '/rpc/'


class CuratorRequestHandler(BaseHTTPRequestHandler):
    """
    Request handler for the curator server

    Attributes:
        server: Parent CuratorServer carrying the auth manager and service
    """

    server: 'CuratorServer'

    def _send_text(self, status: int, text: str) -> None:
        body = text.encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'text/plain; charset=utf-8')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_json(self, status: int, payload: Dict[str, Any]) -> None:
        body = json.dumps(payload).encode('utf-8')
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _route(self) -> Tuple[str, Dict[str, list]]:
        parsed_url = urllib.parse.urlparse(self.path)
        return parsed_url.path, urllib.parse.parse_qs(parsed_url.query)

    def do_GET(self):
        path, query_params = self._route()

        if path == '/login':
            self.send_response(302)
            self.send_header('Location', self.server.auth.build_authorize_url())
            self.end_headers()
        elif path == '/callback':
            self._handle_callback(query_params)
        elif path == '/health':
            self._send_json(200, {
                'status': 'ok',
                'authenticated': self.server.auth.ensure_valid_token(),
            })
        else:
            self._send_json(404, {'error': f"Not found: {path}"})

    def _handle_callback(self, query_params: Dict[str, list]) -> None:
        """
        Finish the authorization code grant

        Any failure is terminal for this attempt; the user starts over at /login.
        """
        try:
            if 'error' in query_params:
                raise CuratorError(f"Authorization failed: {query_params['error'][0]}")

            code = query_params.get('code', [None])[0]
            if not code:
                raise CuratorError("No authorization code received")

            self.server.auth.exchange_code(code)
        except CuratorError as e:
            self.server.logger.error(f"Error during authentication: {e}")
            self._send_text(500, f"Authentication error: {e}")
            return

        self.server.logger.console_info("Spotify authentication successful")
        self._send_text(200, SUCCESS_MESSAGE)

    def do_POST(self):
        path, _ = self._route()

        if not path.startswith(RPC_PREFIX):
            self._send_json(404, {'error': f"Not found: {path}"})
            return

        method_name = path[len(RPC_PREFIX):]
        if self.server.service.resolve_method(method_name) is None:
            self._send_json(404, {'error': f"Unknown method: {method_name}"})
            return

        length = self._content_length()
        if length is None:
            self._send_json(400, {'error': "Invalid Content-Length header"})
            return

        args = self._read_json_body(length)
        if args is None:
            self._send_json(400, {'error': "Request body must be a JSON object"})
            return

        self._send_json(200, self.server.service.dispatch(method_name, args))

    def _content_length(self) -> Optional[int]:
        """Declared body size, None when the header is not a non-negative integer"""
        raw = (self.headers.get('Content-Length') or '0').strip()
        if not raw.isdecimal():
            return None
        return int(raw)

    def _read_json_body(self, length: int) -> Optional[Dict[str, Any]]:
        """Parsed request body; empty bodies count as {}"""
        if length == 0:
            return {}

        raw = self.rfile.read(length)
        try:
            body = json.loads(raw.decode('utf-8'))
        except (UnicodeDecodeError, ValueError):
            return None

        return body if isinstance(body, dict) else None

    def log_message(self, format, *args):
        """Route access logs to the application logger instead of stderr"""
        self.server.logger.debug(f"{self.address_string()} - {format % args}")


class CuratorServer(ThreadingHTTPServer):
    """
    Threaded HTTP server bound to one auth manager and service

    Attributes:
        auth: Token lifecycle manager
        service: RPC service facade
    """

    daemon_threads = True

    def __init__(self, address: Tuple[str, int], auth: SpotifyAuth, service: CuratorService):
        self.auth = auth
        self.service = service
        self.logger = get_logger(__name__)
        super().__init__(address, CuratorRequestHandler)

    @property
    def base_url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


def create_server(auth: SpotifyAuth, service: CuratorService, host: str = 'localhost', port: int = 3000) -> CuratorServer:
    """
    Bind a CuratorServer

    Raises:
        OSError: If the address is already in use
    """
    server = CuratorServer((host, port), auth, service)
    server.logger.info(f"Server listening on {server.base_url}")
    return server


def start_in_background(server: CuratorServer) -> threading.Thread:
    """Run serve_forever() on a daemon thread"""
    thread = threading.Thread(target=server.serve_forever, name="curator-server", daemon=True)
    thread.start()
    return thread
