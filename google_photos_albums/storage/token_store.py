"""Token file operations for Google Photos Albums."""

import json
import logging
import os
import tempfile

from google_photos_albums.models import (
    DecodeError,
    Token,
    TokenNotFoundError,
    TokenReadError,
    TokenWriteError,
)

logger = logging.getLogger(__name__)


class TokenStore:
    """Reads and writes the single OAuth token file."""

    def __init__(self, token_path: str = "token.json"):
        """Initialize token store.

        Args:
            token_path: Path to the token JSON file
        """
        self.token_path = token_path

    def exists(self) -> bool:
        """Check whether a token file is present."""
        return os.path.isfile(self.token_path)

    def load(self) -> Token:
        """Load the stored token.

        Returns:
            The stored token

        Raises:
            TokenNotFoundError: If there is no token file
            DecodeError: If the token file is malformed
            TokenReadError: If the token file exists but cannot be read
        """
        try:
            with open(self.token_path, "r", encoding="utf-8") as token_file:
                data = json.load(token_file)
        except FileNotFoundError as e:
            raise TokenNotFoundError(f"No token file at {self.token_path}") from e
        except ValueError as e:
            # JSONDecodeError or UnicodeDecodeError
            raise DecodeError(f"Malformed token file {self.token_path}: {e}") from e
        except OSError as e:
            raise TokenReadError(f"Unable to read token file {self.token_path}: {e}") from e

        token = Token.from_dict(data)
        logger.debug("Loaded token from %s", self.token_path)
        return token

    def save(self, token: Token) -> None:
        """Replace the token file with the given token.

        The token is written to a temporary file next to the target and moved
        over it, so a reader sees either the old or the new token.

        Raises:
            TokenWriteError: If the file cannot be written
        """
        directory = os.path.dirname(os.path.abspath(self.token_path))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix=".token-", suffix=".json", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                json.dump(token.to_dict(), tmp_file, indent=2)
            os.replace(tmp_path, self.token_path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise TokenWriteError(f"Failed to write token file {self.token_path}: {e}") from e

        logger.info("Token saved to %s", self.token_path)
