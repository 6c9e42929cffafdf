"""OAuth2 authorization flow for Google Photos Albums."""

import enum
import logging
import queue
import secrets
from dataclasses import dataclass
from typing import Callable, Optional

from google.oauth2.credentials import Credentials

from google_photos_albums.models import (
    AuthenticationError,
    AuthorizationTimeoutError,
    DecodeError,
    PersistError,
    Token,
    TokenNotFoundError,
    TokenWriteError,
)
from google_photos_albums.storage.token_store import TokenStore
from google_photos_albums.utils.auth import OAuthClient
from google_photos_albums.utils.callback_server import CALLBACK_PATH, CallbackServer

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080
DEFAULT_AUTH_TIMEOUT = 10 * 60
SHUTDOWN_GRACE_PERIOD = 5.0


def redirect_uri_for_port(port: int) -> str:
    return f"http://127.0.0.1:{port}{CALLBACK_PATH}"


class AuthStatus(enum.Enum):
    """State of the stored token."""
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"


@dataclass
class AuthConfig:
    """Result of checking the stored token against the OAuth client."""
    client: OAuthClient
    status: AuthStatus
    token: Optional[Token] = None

    @property
    def authorization_required(self) -> bool:
        return self.status is not AuthStatus.VALID


class OAuthFlow:
    """Obtains a usable token, from the token file or by asking the user."""

    def __init__(
        self,
        client: OAuthClient,
        token_store: TokenStore,
        port: int = DEFAULT_PORT,
        timeout: float = DEFAULT_AUTH_TIMEOUT,
        host: str = "127.0.0.1",
        state_factory: Callable[[], str] = secrets.token_urlsafe,
        announce: Callable[[str], None] = print,
    ):
        """Initialize the flow.

        Args:
            client: OAuth client used to build URLs and exchange codes
            token_store: Where the token is loaded from and saved to
            port: Loopback port the callback listener binds to
            timeout: Seconds to wait for the callback
            host: Address the callback listener binds to
            state_factory: Mints the anti-forgery state for each attempt
            announce: Shows the authorization URL to the user
        """
        self.client = client
        self.token_store = token_store
        self.port = port
        self.timeout = timeout
        self.host = host
        self.state_factory = state_factory
        self.announce = announce

    def authenticate(self) -> AuthConfig:
        """Check the stored token.

        Expired tokens are reported as such; no refresh is attempted even when
        a refresh token is stored.

        Raises:
            TokenReadError: If the token file exists but cannot be read
        """
        logger.info("Starting OAuth2 authentication...")

        try:
            token = self.token_store.load()
        except TokenNotFoundError:
            logger.info("No existing token found, authorization required")
            return AuthConfig(self.client, AuthStatus.NO_TOKEN)
        except DecodeError as e:
            logger.warning("Ignoring unreadable token file: %s", e)
            return AuthConfig(self.client, AuthStatus.NO_TOKEN)

        if token.is_valid():
            logger.info("Valid token found, authentication successful")
            return AuthConfig(self.client, AuthStatus.VALID, token)

        logger.info("Token expired, authorization required")
        return AuthConfig(self.client, AuthStatus.EXPIRED, token)

    def load_token(self) -> Token:
        return self.token_store.load()

    def authorization_url(self, state: Optional[str] = None) -> str:
        """Get the URL the user opens to grant access."""
        return self.client.authorization_url(state or self.state_factory())

    def credentials(self, auth_config: AuthConfig) -> Credentials:
        """Build API credentials from an authenticated config.

        Raises:
            AuthenticationError: If the config holds no valid token
        """
        if auth_config.authorization_required or auth_config.token is None:
            raise AuthenticationError(
                f"No valid token available ({auth_config.status.value}), authorize first"
            )
        return self.client.credentials(auth_config.token)

    def complete_with_code(self, code: str) -> None:
        """Exchange an authorization code and store the resulting token.

        Raises:
            ExchangeError: If the code cannot be exchanged
            PersistError: If the token cannot be saved
        """
        logger.info("Completing OAuth2 authentication with code...")

        token = self.client.exchange_code(code)

        try:
            self.token_store.save(token)
        except TokenWriteError as e:
            raise PersistError(f"Token was obtained but could not be saved, re-authenticate: {e}") from e

        logger.info("Authentication completed successfully")

    def complete_with_local_server(self) -> None:
        """Run the authorization flow, capturing the code on a local server.

        The first of three outcomes wins: a code arrives, a callback error
        arrives, or the timeout elapses. The server is stopped in every case.

        Raises:
            CallbackError: If the callback reports an error or fails validation
            AuthorizationTimeoutError: If no callback arrives in time
            ExchangeError: If the code cannot be exchanged
            PersistError: If the token cannot be saved
        """
        logger.info("Starting OAuth2 flow with local server...")

        state = self.state_factory()
        auth_url = self.client.authorization_url(state)

        with CallbackServer(
            state, host=self.host, port=self.port, grace_period=SHUTDOWN_GRACE_PERIOD
        ) as server:
            self.announce("Visit this URL in your browser to authorize:")
            self.announce(auth_url)
            try:
                outcome = server.outcomes.get(timeout=self.timeout)
            except queue.Empty:
                outcome = AuthorizationTimeoutError(
                    f"OAuth flow timed out after {self.timeout:g} seconds"
                )

        if isinstance(outcome, Exception):
            logger.error("Authorization failed: %s", outcome)
            raise outcome

        self.complete_with_code(outcome)
