"""Main module for Google Photos Albums."""

import argparse
import logging
import sys
from datetime import datetime
from typing import List, Optional

from tabulate import tabulate

from google_photos_albums.api.album_repository import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    AlbumRepository,
    build_photos_service,
)
from google_photos_albums.models import Album, GooglePhotosError
from google_photos_albums.services.album_service import AlbumService
from google_photos_albums.storage.token_store import TokenStore
from google_photos_albums.utils.auth import SCOPES, OAuthClient
from google_photos_albums.utils.oauth_flow import (
    DEFAULT_AUTH_TIMEOUT,
    DEFAULT_PORT,
    OAuthFlow,
    redirect_uri_for_port,
)

logger = logging.getLogger(__name__)


class AlbumCommands:
    """Runs album commands and prints their results.

    Each command returns a process exit code: 0 on success, 1 on failure.
    Failures are logged and abort the command.
    """

    def __init__(self, album_service: AlbumService):
        self.album_service = album_service

    def list_albums(self) -> int:
        """List albums, following at most one next page."""
        print("--- Listing Albums ---")
        try:
            page = self.album_service.list_albums()
        except GooglePhotosError as e:
            logger.error("Failed to list albums: %s", e)
            return 1

        self.print_albums(page.albums)

        if page.has_next_page:
            print(f"\nNext page token: {page.next_page_token}")
            return self.next_page(page.next_page_token)
        return 0

    def get_album(self, album_id: str) -> int:
        print("--- Getting Album by ID ---")
        try:
            album = self.album_service.get_album(album_id)
        except GooglePhotosError as e:
            logger.error("Failed to get album: %s", e)
            return 1

        print("Album Info:")
        print(f"- ID: {album.id}")
        print(f"- Title: {album.title}")
        return 0

    def create_album(self, title: Optional[str] = None) -> int:
        """Create an album, named after the current time when no title is given."""
        print("--- Creating Album ---")
        title = title or datetime.now().strftime("test-album-%Y-%m-%d-%H-%M-%S")
        try:
            album = self.album_service.create_album(title)
        except GooglePhotosError as e:
            logger.error("Failed to create album: %s", e)
            return 1

        print(f"Successfully created album: {album.title} with ID: {album.id}")
        return 0

    def next_page(self, page_token: str) -> int:
        print("--- Fetching Next Page ---")
        try:
            page = self.album_service.fetch_next_page(page_token)
        except GooglePhotosError as e:
            logger.error("Failed to fetch next page: %s", e)
            return 1

        if page.albums:
            print(f"Found {len(page.albums)} albums on next page:")
        self.print_albums(page.albums)
        return 0

    def print_albums(self, albums: List[Album]) -> None:
        if not albums:
            print("No albums found.")
            return

        rows = [[album.title, album.id] for album in albums]
        print("Albums:")
        print(tabulate(rows, headers=["Title", "ID"], tablefmt="psql"))
        print(f"Total albums: {len(albums)}")


class GooglePhotosAlbums:
    """Wires authentication and album access together."""

    def __init__(
        self,
        credentials_path: str = "credentials.json",
        token_path: str = "token.json",
        port: int = DEFAULT_PORT,
        auth_timeout: float = DEFAULT_AUTH_TIMEOUT,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize the application."""
        self.credentials_path = credentials_path
        self.token_store = TokenStore(token_path)
        self.port = port
        self.auth_timeout = auth_timeout
        self.http_timeout = http_timeout
        self.page_size = page_size
        self._oauth_flow: Optional[OAuthFlow] = None

    @property
    def oauth_flow(self) -> OAuthFlow:
        """OAuth flow, created on first use since it reads credentials.json."""
        if self._oauth_flow is None:
            client = OAuthClient.from_client_secrets_file(
                self.credentials_path, SCOPES, redirect_uri_for_port(self.port)
            )
            self._oauth_flow = OAuthFlow(
                client, self.token_store, port=self.port, timeout=self.auth_timeout
            )
        return self._oauth_flow

    def authenticate(self) -> AlbumService:
        """Authenticate, authorizing through the browser if needed."""
        auth_config = self.oauth_flow.authenticate()
        if auth_config.authorization_required:
            self.oauth_flow.complete_with_local_server()
            auth_config = self.oauth_flow.authenticate()

        credentials = self.oauth_flow.credentials(auth_config)
        service = build_photos_service(credentials, timeout=self.http_timeout)
        return AlbumService(AlbumRepository(service, page_size=self.page_size))

    def run(self, args: argparse.Namespace) -> int:
        """Dispatch a parsed command line."""
        if args.command == "auth":
            self.oauth_flow.complete_with_local_server()
            print("Authorization complete.")
            return 0

        if args.command == "auth-url":
            print("Visit this URL in your browser to authorize:")
            print(self.oauth_flow.authorization_url())
            return 0

        if args.command == "auth-code":
            self.oauth_flow.complete_with_code(args.code)
            print("Authorization complete.")
            return 0

        commands = AlbumCommands(self.authenticate())
        if args.command == "list":
            return commands.list_albums()
        if args.command == "get":
            return commands.get_album(args.album_id)
        if args.command == "create":
            return commands.create_album(args.title)
        if args.command == "next-page":
            return commands.next_page(args.page_token)

        logger.error("Unknown command: %s", args.command)
        return 1


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Google Photos Albums")

    # Global arguments
    parser.add_argument(
        "--credentials", default="credentials.json", help="OAuth client secrets file"
    )
    parser.add_argument("--token", default="token.json", help="Token file")
    parser.add_argument(
        "--port", type=int, default=DEFAULT_PORT, help="Local port for the OAuth callback"
    )
    parser.add_argument(
        "--auth-timeout",
        type=float,
        default=DEFAULT_AUTH_TIMEOUT,
        help="Seconds to wait for browser authorization",
    )
    parser.add_argument(
        "--http-timeout",
        type=float,
        default=DEFAULT_HTTP_TIMEOUT,
        help="Seconds before an API request times out",
    )
    parser.add_argument(
        "--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Albums per page"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Commands", required=True)

    subparsers.add_parser("list", help="List albums")

    get_parser = subparsers.add_parser("get", help="Get an album by ID")
    get_parser.add_argument("album_id", type=str, help="Album ID")

    create_parser = subparsers.add_parser("create", help="Create an album")
    create_parser.add_argument(
        "title", type=str, nargs="?", default=None, help="Album title (defaults to a timestamp)"
    )

    next_page_parser = subparsers.add_parser("next-page", help="Fetch a page of albums by token")
    next_page_parser.add_argument("page_token", type=str, help="Page token")

    subparsers.add_parser("auth", help="Authorize through the browser and a local server")
    subparsers.add_parser("auth-url", help="Print the authorization URL")

    auth_code_parser = subparsers.add_parser(
        "auth-code", help="Complete authorization with a code"
    )
    auth_code_parser.add_argument("code", type=str, help="Authorization code")

    return parser.parse_args(argv)


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Google Photos Albums CLI."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    app = GooglePhotosAlbums(
        credentials_path=args.credentials,
        token_path=args.token,
        port=args.port,
        auth_timeout=args.auth_timeout,
        http_timeout=args.http_timeout,
        page_size=args.page_size,
    )

    try:
        return app.run(args)
    except GooglePhotosError as e:
        logger.error("Command %s failed: %s", args.command, e)
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error("Invalid OAuth client configuration: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
