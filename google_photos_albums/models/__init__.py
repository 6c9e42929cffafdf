"""Models for Google Photos Albums."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

# Tokens count as expired this long before their recorded expiry.
EXPIRY_DELTA = timedelta(seconds=10)


class GooglePhotosError(Exception):
    """Base exception for Google Photos operations."""


class TransportError(GooglePhotosError):
    """Raised when the API cannot be reached."""


class ApiError(GooglePhotosError):
    """Raised when API calls fail with a non-2xx response."""

    def __init__(self, status: int, message: str = ""):
        super().__init__(f"API error {status}: {message}" if message else f"API error {status}")
        self.status = status


class DecodeError(GooglePhotosError):
    """Raised when a response or stored record cannot be decoded."""


class TokenStoreError(GooglePhotosError):
    """Base exception for token file operations."""


class TokenNotFoundError(TokenStoreError):
    """Raised when no token file exists."""


class TokenReadError(TokenStoreError):
    """Raised when the token file exists but cannot be read."""


class TokenWriteError(TokenStoreError):
    """Raised when the token file cannot be written."""


class PersistError(TokenStoreError):
    """Raised when an exchanged token could not be saved and is lost."""


class AuthenticationError(GooglePhotosError):
    """Raised when authentication fails."""


class ExchangeError(AuthenticationError):
    """Raised when an authorization code cannot be exchanged for a token."""


class CallbackError(AuthenticationError):
    """Raised when the OAuth callback reports or causes a failure."""


class InvalidStateError(CallbackError):
    """Raised when the callback state does not match the one sent."""


class MissingCodeError(CallbackError):
    """Raised when the callback carries no authorization code."""


class AuthorizationTimeoutError(AuthenticationError):
    """Raised when authorization is not completed in time."""


@dataclass
class Album:
    """Represents an album in Google Photos."""
    id: str
    title: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Album":
        """Build an album from an API album resource.

        Raises:
            DecodeError: If the resource is not an object or has no id
        """
        if not isinstance(data, dict) or not data.get("id"):
            raise DecodeError(f"Invalid album resource: {data!r}")
        return cls(id=str(data["id"]), title=str(data.get("title", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "title": self.title}


@dataclass
class AlbumPage:
    """One page of a paginated album listing."""
    albums: List[Album] = field(default_factory=list)
    next_page_token: Optional[str] = None

    @property
    def has_next_page(self) -> bool:
        return bool(self.next_page_token)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlbumPage":
        """Build a page from an albums.list response body.

        The API omits ``albums`` entirely when there are none.
        """
        if not isinstance(data, dict):
            raise DecodeError(f"Expected a JSON object, got {type(data).__name__}")
        albums = data.get("albums") or []
        if not isinstance(albums, list):
            raise DecodeError("'albums' is not a list")
        return cls(
            albums=[Album.from_dict(album) for album in albums],
            next_page_token=data.get("nextPageToken") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"albums": [album.to_dict() for album in self.albums]}
        if self.next_page_token:
            data["nextPageToken"] = self.next_page_token
        return data


@dataclass
class Token:
    """OAuth2 token persisted in the token file."""
    access_token: str
    token_type: str = "Bearer"
    expiry: Optional[datetime] = None
    refresh_token: Optional[str] = None

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Check whether the access token can still be used.

        A token without an expiry never expires.
        """
        if not self.access_token:
            return False
        if self.expiry is None:
            return True
        now = now or datetime.now(timezone.utc)
        return self.expiry - EXPIRY_DELTA > now

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Token":
        """Build a token from its stored JSON form.

        Raises:
            DecodeError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise DecodeError("Token record is not a JSON object")
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise DecodeError("Token record has no access_token")

        expiry = None
        if data.get("expiry"):
            try:
                expiry = datetime.fromisoformat(data["expiry"])
            except (TypeError, ValueError) as e:
                raise DecodeError(f"Invalid token expiry: {data['expiry']!r}") from e
            if expiry.tzinfo is None:
                expiry = expiry.replace(tzinfo=timezone.utc)

        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            expiry=expiry,
            refresh_token=data.get("refresh_token") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.astimezone(timezone.utc).isoformat() if self.expiry else None,
        }
