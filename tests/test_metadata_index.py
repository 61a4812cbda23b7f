"""Tests for the metadata index."""

from datetime import datetime, timedelta, timezone

import pytest

from common.exceptions import DuplicateFileError, NotFoundError, ValidationError
from common.types import FileMetadata
from filestore.content_store import ContentStore
from filestore.metadata_index import MetadataIndex

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_metadata(contents, file_id, owner="bob", data=b"hello", offset=0):
    digest = contents.put(data)
    return FileMetadata(
        file_id=file_id,
        owner=owner,
        filename=f"{file_id}.txt",
        size=len(data),
        content_hash=digest,
        chunk_count=1,
        uploaded_at=T0 + timedelta(seconds=offset),
    )


@pytest.fixture
def contents():
    return ContentStore()


@pytest.fixture
def index(contents):
    return MetadataIndex(contents)


class TestInsertGet:
    """Test inserting and looking up rows."""

    def test_insert_and_get(self, index, contents):
        metadata = make_metadata(contents, "f1")
        index.insert(metadata)
        assert index.get("f1") == metadata
        assert index.find("f1") == metadata

    def test_duplicate_id_rejected(self, index, contents):
        index.insert(make_metadata(contents, "f1"))
        with pytest.raises(DuplicateFileError):
            index.insert(make_metadata(contents, "f1"))

    def test_get_unknown(self, index):
        with pytest.raises(NotFoundError):
            index.get("missing")
        assert index.find("missing") is None


class TestDelete:
    """Test row deletion and content release."""

    def test_delete_releases_content(self, index, contents):
        metadata = make_metadata(contents, "f1")
        index.insert(metadata)
        index.delete("f1")
        assert index.count() == 0
        assert not contents.contains(metadata.content_hash)

    def test_delete_shared_content_keeps_bytes(self, index, contents):
        index.insert(make_metadata(contents, "f1"))
        second = make_metadata(contents, "f2")
        index.insert(second)
        index.delete("f1")
        assert contents.get(second.content_hash) == b"hello"

    def test_delete_unknown(self, index):
        with pytest.raises(NotFoundError):
            index.delete("missing")


class TestListing:
    """Test listing rows."""

    def test_list_by_owner_sorted_by_upload_time(self, index, contents):
        index.insert(make_metadata(contents, "late", offset=10))
        index.insert(make_metadata(contents, "early", offset=1))
        index.insert(make_metadata(contents, "other", owner="carol"))
        assert [m.file_id for m in index.list_by_owner("bob")] == ["early", "late"]

    def test_list_active_excludes_inactive(self, index, contents):
        index.insert(make_metadata(contents, "f1"))
        index.insert(make_metadata(contents, "f2", offset=1))
        index.set_active("f1", False)
        assert [m.file_id for m in index.list_active()] == ["f2"]
        assert len(index.list_all()) == 2

    def test_reference_counts(self, index, contents):
        first = make_metadata(contents, "f1")
        index.insert(first)
        index.insert(make_metadata(contents, "f2"))
        assert index.reference_counts() == {first.content_hash: 2}


class TestSnapshot:
    """Test index serialization."""

    def test_round_trip(self, index, contents):
        index.insert(make_metadata(contents, "f1"))
        restored = MetadataIndex.from_snapshot(index.snapshot(), contents)
        assert restored.get("f1") == index.get("f1")

    def test_missing_content_rejected(self, index, contents):
        index.insert(make_metadata(contents, "f1"))
        with pytest.raises(ValidationError):
            MetadataIndex.from_snapshot(index.snapshot(), ContentStore())

    def test_malformed_row_rejected(self, contents):
        with pytest.raises(ValidationError):
            MetadataIndex.from_snapshot({"f1": {"file_id": "f1"}}, contents)
