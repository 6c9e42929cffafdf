"""Album endpoints of the Google Photos Library API."""

import logging
from typing import Any, Dict, Optional

import google_auth_httplib2
import httplib2
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build
from googleapiclient.errors import HttpError

from google_photos_albums.models import (
    Album,
    AlbumPage,
    ApiError,
    DecodeError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 30
DEFAULT_PAGE_SIZE = 50


def build_photos_service(
    credentials: Credentials, timeout: Optional[float] = DEFAULT_HTTP_TIMEOUT
) -> Resource:
    """Build the Photos Library API service.

    Args:
        credentials: Authorized user credentials
        timeout: Socket timeout in seconds for every API request

    Raises:
        TransportError: If the discovery document cannot be fetched
    """
    http = google_auth_httplib2.AuthorizedHttp(credentials, http=httplib2.Http(timeout=timeout))
    try:
        return build("photoslibrary", "v1", http=http, static_discovery=False)
    except HttpError as e:
        raise ApiError(e.resp.status, "unable to load the Photos Library API") from e
    except (httplib2.HttpLib2Error, OSError) as e:
        raise TransportError(f"Unable to reach the Photos Library API: {e}") from e


class AlbumRepository:
    """Issues album requests and decodes the responses."""

    def __init__(self, service: Resource, page_size: int = DEFAULT_PAGE_SIZE):
        self.service = service
        self.page_size = page_size

    def list_albums(self) -> AlbumPage:
        """List the first page of albums."""
        request = self.service.albums().list(pageSize=self.page_size)
        return AlbumPage.from_dict(self._execute(request, "list albums"))

    def get_album(self, album_id: str) -> Album:
        """Get an album by ID.

        A missing album surfaces as ApiError with status 404.
        """
        request = self.service.albums().get(albumId=album_id)
        return Album.from_dict(self._execute(request, f"get album {album_id}"))

    def create_album(self, title: str) -> Album:
        """Create an album with the given title."""
        request = self.service.albums().create(body={"album": {"title": title}})
        return Album.from_dict(self._execute(request, f"create album {title!r}"))

    def fetch_page(self, page_token: str) -> AlbumPage:
        """List the page of albums that starts at page_token."""
        request = self.service.albums().list(pageSize=self.page_size, pageToken=page_token)
        return AlbumPage.from_dict(self._execute(request, "fetch next page"))

    def _execute(self, request, action: str) -> Dict[str, Any]:
        """Execute an API request, translating client errors.

        Raises:
            ApiError: On a non-2xx response
            TransportError: On a network failure
            DecodeError: On a malformed response body
        """
        try:
            response = request.execute()
        except HttpError as e:
            raise ApiError(e.resp.status, f"{action} failed: {e.reason}") from e
        except (httplib2.HttpLib2Error, OSError) as e:
            raise TransportError(f"{action} failed: {e}") from e
        except ValueError as e:
            raise DecodeError(f"{action} returned a malformed response: {e}") from e

        logger.debug("Raw API response: %s", response)
        return response
