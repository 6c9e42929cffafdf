"""Configuration for unit tests."""

import logging
from unittest.mock import MagicMock

import pytest

from google_photos_albums.models import Album, AlbumPage


@pytest.fixture(autouse=True)
def setup_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
    yield


@pytest.fixture
def mock_service():
    """Create a mock Photos Library API service."""
    service = MagicMock()
    service.albums.return_value.list.return_value.execute.return_value = {
        "albums": [
            {"id": "1", "title": "A", "productUrl": "https://photos.google.com/lr/album/1"},
            {"id": "2", "title": "B"},
        ],
    }
    return service


@pytest.fixture
def mock_repository():
    """Create a mock album repository with two albums on a single page."""
    repository = MagicMock()
    repository.list_albums.return_value = AlbumPage(
        albums=[Album(id="1", title="A"), Album(id="2", title="B")], next_page_token=None
    )
    return repository
