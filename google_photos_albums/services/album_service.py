"""Album use cases for Google Photos Albums."""

import logging
from typing import Optional

from google_photos_albums.api.album_repository import AlbumRepository
from google_photos_albums.models import Album, AlbumPage, GooglePhotosError

module_logger = logging.getLogger(__name__)


class AlbumService:
    """Album operations with logging around each repository call."""

    def __init__(self, repository: AlbumRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or module_logger

    def list_albums(self) -> AlbumPage:
        self.logger.info("Fetching albums...")
        try:
            page = self.repository.list_albums()
        except GooglePhotosError as e:
            self.logger.error("Failed to fetch albums: %s", e)
            raise

        self.logger.info("Successfully fetched %d albums", len(page.albums))
        if page.has_next_page:
            self.logger.info("More albums available on next page")
        return page

    def get_album(self, album_id: str) -> Album:
        self.logger.info("Fetching album with ID: %s", album_id)
        try:
            album = self.repository.get_album(album_id)
        except GooglePhotosError as e:
            self.logger.error("Failed to fetch album %s: %s", album_id, e)
            raise

        self.logger.info("Successfully fetched album: %s", album.title)
        return album

    def create_album(self, title: str) -> Album:
        self.logger.info("Creating album with title: %s", title)
        try:
            album = self.repository.create_album(title)
        except GooglePhotosError as e:
            self.logger.error("Failed to create album %s: %s", title, e)
            raise

        self.logger.info("Successfully created album: %s with ID: %s", album.title, album.id)
        return album

    def fetch_next_page(self, page_token: str) -> AlbumPage:
        self.logger.info("Fetching next page of albums...")
        try:
            page = self.repository.fetch_page(page_token)
        except GooglePhotosError as e:
            self.logger.error("Failed to fetch next page: %s", e)
            raise

        self.logger.info("Successfully fetched %d albums from next page", len(page.albums))
        return page
