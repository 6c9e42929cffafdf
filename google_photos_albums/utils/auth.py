"""Authentication utilities for Google Photos API."""

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow

from google_photos_albums.models import ExchangeError, Token

# If modifying these scopes, delete the file token.json.
SCOPES = [
    "https://www.googleapis.com/auth/photoslibrary.readonly.appcreateddata",
    "https://www.googleapis.com/auth/photoslibrary.appendonly",
    "https://www.googleapis.com/auth/photoslibrary.edit.appcreateddata",
]

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


class OAuthClient:
    """OAuth2 client configuration for the installed application."""

    def __init__(self, client_config: Dict[str, Any], scopes: List[str], redirect_uri: str):
        self.client_config = client_config
        self.scopes = scopes
        self.redirect_uri = redirect_uri
        self._flow = self._build_flow()

    @classmethod
    def from_client_secrets_file(
        cls, credentials_path: str, scopes: Optional[List[str]] = None, redirect_uri: str = ""
    ) -> "OAuthClient":
        """Load the client configuration from a client secrets file.

        Args:
            credentials_path: Path to credentials.json file
            scopes: OAuth scopes to request, defaults to SCOPES
            redirect_uri: Redirect URI registered for the client

        Raises:
            FileNotFoundError: If credentials.json is not found
            ValueError: If the file is not a valid client secrets file
        """
        if not os.path.exists(credentials_path):
            raise FileNotFoundError(f"Missing credentials file at {credentials_path}")

        with open(credentials_path, "r", encoding="utf-8") as credentials_file:
            try:
                client_config = json.load(credentials_file)
            except json.JSONDecodeError as e:
                raise ValueError(f"Unable to parse {credentials_path}: {e}") from e

        return cls(client_config, scopes or SCOPES, redirect_uri)

    def _build_flow(self) -> Flow:
        flow = Flow.from_client_config(self.client_config, scopes=self.scopes)
        flow.redirect_uri = self.redirect_uri
        # A code may be pasted into a later run, which would not have the verifier.
        flow.autogenerate_code_verifier = False
        return flow

    @property
    def _secrets(self) -> Dict[str, Any]:
        return self.client_config.get("installed") or self.client_config.get("web") or {}

    def authorization_url(self, state: str) -> str:
        """Get the consent page URL carrying the given state."""
        url, _ = self._flow.authorization_url(access_type="offline", state=state)
        return url

    def exchange_code(self, code: str) -> Token:
        """Exchange an authorization code for a token.

        Raises:
            ExchangeError: If the token endpoint rejects the code or cannot be reached
        """
        try:
            response = self._flow.fetch_token(code=code)
        except Exception as e:
            raise ExchangeError(f"Failed to exchange code for token: {e}") from e

        return token_from_response(response)

    def credentials(self, token: Token) -> Credentials:
        """Build google-auth credentials for a stored token."""
        expiry = None
        if token.expiry is not None:
            # google-auth compares against naive UTC datetimes
            expiry = token.expiry.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=self._secrets.get("token_uri", DEFAULT_TOKEN_URI),
            client_id=self._secrets.get("client_id"),
            client_secret=self._secrets.get("client_secret"),
            scopes=self.scopes,
            expiry=expiry,
        )


def token_from_response(response: Dict[str, Any]) -> Token:
    """Convert a token endpoint response into a Token.

    Raises:
        ExchangeError: If the response carries no access token
    """
    access_token = response.get("access_token")
    if not access_token:
        raise ExchangeError("Token response did not include an access token")

    expiry = None
    if response.get("expires_at"):
        expiry = datetime.fromtimestamp(float(response["expires_at"]), tz=timezone.utc)
    elif response.get("expires_in"):
        expiry = datetime.now(timezone.utc) + timedelta(seconds=int(response["expires_in"]))

    return Token(
        access_token=access_token,
        token_type=response.get("token_type") or "Bearer",
        expiry=expiry,
        refresh_token=response.get("refresh_token"),
    )
