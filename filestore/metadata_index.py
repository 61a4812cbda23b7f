"""Per-file metadata keyed by file id."""

import threading
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from common.exceptions import (
    DuplicateFileError,
    InternalFailureError,
    NotFoundError,
    ValidationError,
)
from common.logging_config import get_logger
from common.types import FileMetadata
from filestore.content_store import ContentStore

logger = get_logger(__name__)


def _sort_key(metadata: FileMetadata):
    return (metadata.uploaded_at, metadata.file_id)


def _check_row(metadata: FileMetadata) -> None:
    """Field types a restored row must have to be listed, sorted and served."""
    text_fields = (metadata.file_id, metadata.owner, metadata.filename, metadata.content_hash)
    if not all(isinstance(value, str) for value in text_fields):
        raise ValidationError(f"Metadata row {metadata.file_id!r} has non-string fields")
    if not all(isinstance(value, str) for value in metadata.chunk_checksums):
        raise ValidationError(f"Metadata row {metadata.file_id} has non-string chunk checksums")
    counts = (metadata.size, metadata.chunk_count, metadata.chunk_size)
    if not all(isinstance(value, int) and not isinstance(value, bool) for value in counts):
        raise ValidationError(f"Metadata row {metadata.file_id} has non-integer sizes")
    if not isinstance(metadata.uploaded_at, datetime) or metadata.uploaded_at.tzinfo is None:
        raise ValidationError(f"Metadata row {metadata.file_id} has a naive upload time")
    if not isinstance(metadata.is_active, bool):
        raise ValidationError(f"Metadata row {metadata.file_id} has a non-boolean active flag")


class MetadataIndex:
    """
    In-memory index mapping file_id to FileMetadata.

    Rows are keyed by file id, never by content digest, so identical content
    uploaded twice yields two rows. Deleting a row releases its reference in
    the backing ContentStore.
    """

    def __init__(self, content_store: ContentStore):
        self._files: Dict[str, FileMetadata] = {}
        self._content_store = content_store
        self._lock = threading.RLock()

    def insert(self, metadata: FileMetadata) -> None:
        """
        Add a metadata row.

        Raises:
            DuplicateFileError: If a row with the same file id exists
        """
        with self._lock:
            if metadata.file_id in self._files:
                raise DuplicateFileError(f"File {metadata.file_id} already exists")
            self._files[metadata.file_id] = metadata
        logger.info(
            f"Indexed file {metadata.file_id} name={metadata.filename} owner={metadata.owner}"
        )

    def get(self, file_id: str) -> FileMetadata:
        """
        Retrieve metadata by file id.

        Raises:
            NotFoundError: If the file id is unknown
        """
        with self._lock:
            metadata = self._files.get(file_id)
        if metadata is None:
            raise NotFoundError(f"File {file_id} not found")
        return metadata

    def find(self, file_id: str) -> Optional[FileMetadata]:
        with self._lock:
            return self._files.get(file_id)

    def delete(self, file_id: str) -> FileMetadata:
        """
        Remove a metadata row and release its content reference.

        Returns:
            The removed metadata

        Raises:
            NotFoundError: If the file id is unknown
        """
        with self._lock:
            metadata = self._files.pop(file_id, None)
            if metadata is None:
                raise NotFoundError(f"File {file_id} not found")
            try:
                removed = self._content_store.delete(metadata.content_hash)
            except NotFoundError:
                logger.error(
                    f"File {file_id} referenced missing content {metadata.content_hash}",
                    exc_info=True
                )
                raise InternalFailureError(
                    f"File {file_id} referenced missing content {metadata.content_hash}"
                )

        logger.info(
            f"Deleted file {file_id} [content={metadata.content_hash} physically_removed={removed}]"
        )
        return metadata

    def set_active(self, file_id: str, active: bool) -> FileMetadata:
        """
        Toggle the active flag of a row.

        Raises:
            NotFoundError: If the file id is unknown
        """
        with self._lock:
            metadata = self._files.get(file_id)
            if metadata is None:
                raise NotFoundError(f"File {file_id} not found")
            updated = metadata.with_active(active)
            self._files[file_id] = updated
        logger.info(f"File {file_id} active={active}")
        return updated

    def list_by_owner(self, owner: str) -> List[FileMetadata]:
        with self._lock:
            rows = [m for m in self._files.values() if m.owner == owner]
        return sorted(rows, key=_sort_key)

    def list_active(self) -> List[FileMetadata]:
        with self._lock:
            rows = [m for m in self._files.values() if m.is_active]
        return sorted(rows, key=_sort_key)

    def list_all(self) -> List[FileMetadata]:
        with self._lock:
            rows = list(self._files.values())
        return sorted(rows, key=_sort_key)

    def count(self) -> int:
        with self._lock:
            return len(self._files)

    def reference_counts(self) -> Dict[str, int]:
        """Number of rows referencing each content digest."""
        counts: Dict[str, int] = {}
        with self._lock:
            for metadata in self._files.values():
                counts[metadata.content_hash] = counts.get(metadata.content_hash, 0) + 1
        return counts

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            rows = list(self._files.values())

        data = {}
        for metadata in rows:
            entry = asdict(metadata)
            entry['uploaded_at'] = metadata.uploaded_at.isoformat()
            data[metadata.file_id] = entry
        return data

    @classmethod
    def from_snapshot(
        cls,
        data: Optional[Dict[str, Dict[str, Any]]],
        content_store: ContentStore,
    ) -> "MetadataIndex":
        """
        Rebuild an index from `snapshot()` output.

        Raises:
            ValidationError: If a row is malformed or references missing content
        """
        index = cls(content_store)
        for file_id, entry in (data or {}).items():
            try:
                fields = dict(entry)
                if isinstance(fields['uploaded_at'], str):
                    fields['uploaded_at'] = datetime.fromisoformat(fields['uploaded_at'])
                fields['chunk_checksums'] = tuple(fields.get('chunk_checksums', ()))
                metadata = FileMetadata(**fields)
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed metadata row {file_id}: {e}")

            _check_row(metadata)
            if metadata.file_id != file_id:
                raise ValidationError(f"Metadata row key {file_id} does not match its file id")
            if not content_store.contains(metadata.content_hash):
                raise ValidationError(
                    f"File {file_id} references missing content {metadata.content_hash}"
                )
            index._files[file_id] = metadata
        return index
