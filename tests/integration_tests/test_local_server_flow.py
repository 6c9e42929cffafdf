"""Integration tests for authorization through the local callback server."""

import socket
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest
import requests

from google_photos_albums.models import (
    AuthorizationTimeoutError,
    CallbackError,
    InvalidStateError,
    MissingCodeError,
    Token,
)
from google_photos_albums.utils.callback_server import CallbackServer
from google_photos_albums.utils.oauth_flow import OAuthFlow

STATE = "expected-state"


def send_callback(
    port: int, params: Dict[str, str], path: str = "/oauth2callback", wait: float = 5.0
) -> Optional[requests.Response]:
    """Send a callback request once the server accepts connections."""
    deadline = time.monotonic() + wait
    with requests.Session() as session:
        # Never route loopback requests through a configured proxy
        session.trust_env = False
        while time.monotonic() < deadline:
            try:
                return session.get(f"http://127.0.0.1:{port}{path}", params=params, timeout=2)
            except requests.ConnectionError:
                time.sleep(0.05)
    return None


def assert_port_free(port: int) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(("127.0.0.1", port))


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.authorization_url.side_effect = lambda state: f"https://accounts.example/auth?state={state}"
    client.exchange_code.return_value = Token(access_token="new-token")
    return client


@pytest.fixture
def mock_store():
    return MagicMock()


@pytest.fixture
def make_flow(mock_client, mock_store, free_port):
    def _make_flow(timeout: float = 5.0) -> OAuthFlow:
        return OAuthFlow(
            mock_client,
            mock_store,
            port=free_port,
            timeout=timeout,
            state_factory=lambda: STATE,
            announce=MagicMock(),
        )

    return _make_flow


def run_with_callback(flow: OAuthFlow, params: Dict[str, str]):
    """Run the flow while a browser stand-in delivers the callback."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(send_callback, flow.port, params)
        try:
            flow.complete_with_local_server()
        finally:
            response = future.result()
    return response


def test_successful_callback(make_flow, mock_client, mock_store, free_port):
    """Test that a valid callback exchanges the code and saves the token."""
    flow = make_flow()

    response = run_with_callback(flow, {"state": STATE, "code": "auth-code"})

    assert response.status_code == 200
    assert "Authorization Successful!" in response.text
    mock_client.authorization_url.assert_called_once_with(STATE)
    mock_client.exchange_code.assert_called_once_with("auth-code")
    mock_store.save.assert_called_once_with(Token(access_token="new-token"))
    flow.announce.assert_any_call(f"https://accounts.example/auth?state={STATE}")
    assert_port_free(free_port)


def test_invalid_state(make_flow, mock_client, mock_store):
    """Test that a mismatched state is rejected and nothing is persisted."""
    flow = make_flow()

    with pytest.raises(InvalidStateError):
        run_with_callback(flow, {"state": "forged-state", "code": "auth-code"})

    mock_client.exchange_code.assert_not_called()
    mock_store.save.assert_not_called()


def test_missing_code(make_flow, mock_store):
    """Test that a callback without a code is rejected."""
    flow = make_flow()

    with pytest.raises(MissingCodeError):
        run_with_callback(flow, {"state": STATE, "code": ""})

    mock_store.save.assert_not_called()


def test_provider_error(make_flow, mock_store):
    """Test that an error reported by the provider ends the flow."""
    flow = make_flow()

    with pytest.raises(CallbackError) as exc_info:
        run_with_callback(flow, {"error": "access_denied", "state": STATE})

    assert "access_denied" in str(exc_info.value)
    assert not isinstance(exc_info.value, (InvalidStateError, MissingCodeError))
    mock_store.save.assert_not_called()


def test_timeout_shuts_down_server(make_flow, mock_store, free_port):
    """Test that no callback yields a timeout and releases the port."""
    flow = make_flow(timeout=0.3)

    with pytest.raises(AuthorizationTimeoutError):
        flow.complete_with_local_server()

    mock_store.save.assert_not_called()
    assert_port_free(free_port)


def test_server_unknown_path(free_port):
    """Test that only the callback route is served."""
    with CallbackServer(STATE, port=free_port) as server:
        response = send_callback(free_port, {"state": STATE, "code": "x"}, path="/other")

        assert response.status_code == 404
        assert server.outcomes.empty()


def test_server_first_outcome_wins(free_port):
    """Test that later callbacks do not replace the first outcome."""
    with CallbackServer(STATE, port=free_port) as server:
        send_callback(free_port, {"state": STATE, "code": "first"})
        send_callback(free_port, {"state": "other", "code": "second"})

        assert server.outcomes.get(timeout=1) == "first"


def test_server_stop_is_idempotent(free_port):
    """Test that stopping twice is harmless and frees the port."""
    server = CallbackServer(STATE, port=free_port)
    server.start()

    server.stop()
    server.stop()

    assert_port_free(free_port)


def open_idle_connection(port: int, wait: float = 5.0) -> socket.socket:
    """Connect without sending a request, like a browser preconnect."""
    deadline = time.monotonic() + wait
    while True:
        try:
            return socket.create_connection(("127.0.0.1", port), timeout=1)
        except OSError:
            if time.monotonic() >= deadline:
                raise
            time.sleep(0.05)


def test_idle_connection_does_not_block_callback(make_flow, mock_client, mock_store, free_port):
    """Test that a silent connection does not hold up the real callback."""
    flow = make_flow()

    def idle_then_callback():
        idle = open_idle_connection(free_port)
        try:
            return send_callback(free_port, {"state": STATE, "code": "auth-code"})
        finally:
            idle.close()

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(idle_then_callback)
        try:
            flow.complete_with_local_server()
        finally:
            response = future.result()

    assert response.status_code == 200
    mock_client.exchange_code.assert_called_once_with("auth-code")
    mock_store.save.assert_called_once_with(Token(access_token="new-token"))
    assert_port_free(free_port)
