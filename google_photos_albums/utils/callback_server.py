"""Local HTTP listener that captures the OAuth authorization code."""

import logging
import queue
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Union
from urllib.parse import parse_qs, urlparse

from google_photos_albums.models import (
    CallbackError,
    InvalidStateError,
    MissingCodeError,
)

logger = logging.getLogger(__name__)

CALLBACK_PATH = "/oauth2callback"
CONNECTION_TIMEOUT = 10

SUCCESS_PAGE = b"""<html>
  <body>
    <h1>Authorization Successful!</h1>
    <p>You can close this window now.</p>
    <script>window.close();</script>
  </body>
</html>
"""

FAILURE_PAGE = b"""<html>
  <body>
    <h1>Authorization Failed</h1>
    <p>Return to the terminal for details.</p>
  </body>
</html>
"""

# A callback yields either the authorization code or the error it caused.
Outcome = Union[str, CallbackError]


class _CallbackHTTPServer(ThreadingHTTPServer):
    """HTTP server carrying the expected state and the outcome queue.

    Each connection gets its own thread so an idle connection, such as a
    browser preconnect, cannot hold up the real callback.
    """

    daemon_threads = True

    def __init__(self, address, expected_state: str, outcomes: "queue.Queue[Outcome]"):
        super().__init__(address, _CallbackHandler)
        self.expected_state = expected_state
        self.outcomes = outcomes


class _CallbackHandler(BaseHTTPRequestHandler):
    server: _CallbackHTTPServer

    # Seconds a connection may sit idle before it is dropped
    timeout = CONNECTION_TIMEOUT

    def do_GET(self):  # pylint: disable=invalid-name
        url = urlparse(self.path)
        if url.path != CALLBACK_PATH:
            self.send_error(404)
            return

        params = parse_qs(url.query)
        error = params.get("error", [""])[0]
        state = params.get("state", [""])[0]
        code = params.get("code", [""])[0]

        if error:
            self._fail(CallbackError(f"OAuth error: {error}"))
            return
        if state != self.server.expected_state:
            self._fail(InvalidStateError("invalid state parameter"))
            return
        if not code:
            self._fail(MissingCodeError("no authorization code received"))
            return

        self._respond(200, SUCCESS_PAGE)
        self.server.outcomes.put(code)

    def _fail(self, error: CallbackError) -> None:
        self._respond(400, FAILURE_PAGE)
        self.server.outcomes.put(error)

    def _respond(self, status: int, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", "text/html")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):  # pylint: disable=redefined-builtin
        logger.debug("Callback server: " + format, *args)


class CallbackServer:
    """Serves the OAuth callback route on a background thread.

    Each callback puts one outcome on ``outcomes``: the authorization code or
    the CallbackError it caused. The server keeps accepting requests until
    stopped; the first outcome is the one that counts.

    Usable as a context manager, which stops the server on exit.
    """

    def __init__(
        self,
        expected_state: str,
        host: str = "127.0.0.1",
        port: int = 8080,
        grace_period: float = 5.0,
    ):
        self.host = host
        self.grace_period = grace_period
        self.outcomes: "queue.Queue[Outcome]" = queue.Queue()
        try:
            self._httpd = _CallbackHTTPServer((host, port), expected_state, self.outcomes)
        except OSError as e:
            raise CallbackError(f"Unable to start local server on {host}:{port}: {e}") from e
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="oauth-callback-server", daemon=True
        )
        self._stop_lock = threading.Lock()
        self._stopped = False

    @property
    def port(self) -> int:
        return self._httpd.server_address[1]

    def start(self) -> None:
        logger.info("Starting local server on http://%s:%d", self.host, self.port)
        self._thread.start()

    def stop(self) -> None:
        """Shut the server down, at most once.

        Waits up to ``grace_period`` seconds for the serving thread. Failures
        are logged, not raised.
        """
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        try:
            if self._thread.is_alive():
                stopper = threading.Thread(target=self._httpd.shutdown, daemon=True)
                stopper.start()
                stopper.join(self.grace_period)
                if stopper.is_alive():
                    logger.warning(
                        "Local server did not shut down within %.1f seconds", self.grace_period
                    )
            self._httpd.server_close()
        except OSError as e:
            logger.warning("Error shutting down local server: %s", e)
        else:
            logger.debug("Local server stopped")

    def __enter__(self) -> "CallbackServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
