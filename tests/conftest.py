"""Shared pytest fixtures for all tests."""

import pytest

from common.types import Role
from controller.services.access_service import AccessService
from controller.services.file_service import FileService
from controller.store import Store

ADMIN = "alice"
PUBLISHER = "bob"
VIEWER = "carol"
STRANGER = "mallory"

SMALL_CHUNK_SIZE = 4


@pytest.fixture
def store():
    """
    Store with one principal per role and a tiny chunk size so short
    payloads span several chunks.

    Returns:
        Store instance
    """
    store = Store(chunk_size=SMALL_CHUNK_SIZE)
    store.roles.init_admin(ADMIN)
    store.roles.grant(PUBLISHER, Role.PUBLISHER)
    store.roles.grant(VIEWER, Role.VIEWER)
    return store


@pytest.fixture
def file_service(store):
    return FileService(store)


@pytest.fixture
def access_service(store):
    return AccessService(store)


@pytest.fixture
def uploaded(file_service):
    """
    A file uploaded by the publisher.

    Returns:
        FileMetadata of the uploaded file
    """
    return file_service.upload_file(PUBLISHER, "a.txt", b"hello world")
