"""Test configuration for pytest."""

import socket
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from google_photos_albums.models import Token
from google_photos_albums.storage.token_store import TokenStore

# Add the project root directory to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture(scope="function")
def token_store(tmp_path: Path) -> TokenStore:
    """Create a token store backed by a temporary file."""
    return TokenStore(str(tmp_path / "token.json"))


@pytest.fixture
def valid_token() -> Token:
    """Create a token that expires in an hour."""
    return Token(
        access_token="valid-token",
        token_type="Bearer",
        expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        refresh_token="refresh-token",
    )


@pytest.fixture
def expired_token() -> Token:
    """Create a token that expired an hour ago."""
    return Token(
        access_token="expired-token",
        token_type="Bearer",
        expiry=datetime.now(timezone.utc) - timedelta(hours=1),
        refresh_token="refresh-token",
    )


@pytest.fixture
def free_port() -> int:
    """Find a loopback port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
