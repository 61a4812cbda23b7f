"""The Store aggregate: every piece of mutable state the file store owns."""

import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional

from pydantic import AwareDatetime, BaseModel, Field

from common.constants import CHUNK_SIZE_BYTES
from common.exceptions import ValidationError
from common.logging_config import get_logger
from controller.access.permissions import PermissionEngine
from controller.access.role_registry import RoleRegistry
from controller.config import RuntimeConfig
from filestore.content_store import ContentStore
from filestore.metadata_index import MetadataIndex

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


class ContentEntry(BaseModel):
    data: str
    ref_count: int


class FileEntry(BaseModel):
    """One serialized metadata row."""
    file_id: str
    owner: str
    filename: str
    size: int = Field(gt=0)
    content_hash: str
    chunk_count: int = Field(gt=0)
    uploaded_at: AwareDatetime
    chunk_checksums: List[str] = []
    chunk_size: int = Field(default=0, ge=0)
    is_active: bool = True


class StoreSnapshot(BaseModel):
    """Shape of a serialized Store; deeper checks happen in each component."""
    version: int
    roles: Dict[str, List[str]] = {}
    contents: Dict[str, ContentEntry] = {}
    files: Dict[str, FileEntry] = {}
    config: Dict[str, Any] = {}
    upload_sequence: int = 0


class Store:
    """
    Owns the RoleRegistry, ContentStore, MetadataIndex and RuntimeConfig.

    Constructed once per process and handed to the services. Operations that
    span several components run inside `transaction()`, which serializes them
    against each other.
    """

    def __init__(
        self,
        roles: Optional[RoleRegistry] = None,
        contents: Optional[ContentStore] = None,
        files: Optional[MetadataIndex] = None,
        config: Optional[RuntimeConfig] = None,
        chunk_size: int = CHUNK_SIZE_BYTES,
        upload_sequence: int = 0,
    ):
        if chunk_size <= 0:
            raise ValidationError("Chunk size must be > 0")

        self.roles = roles or RoleRegistry()
        self.contents = contents or ContentStore()
        self.files = files or MetadataIndex(self.contents)
        self.config = config or RuntimeConfig()
        self.permissions = PermissionEngine(self.roles)
        self.chunk_size = chunk_size
        self._upload_sequence = upload_sequence
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Generator["Store", None, None]:
        """Critical section for one logical multi-component operation."""
        with self._lock:
            yield self

    def next_disambiguator(self) -> str:
        """
        Salt for a new file id: wall-clock nanoseconds plus a monotonically
        increasing sequence number, unique even within one clock tick.
        """
        with self._lock:
            self._upload_sequence += 1
            return f"{time.time_ns()}:{self._upload_sequence}"

    @property
    def upload_sequence(self) -> int:
        return self._upload_sequence

    def check_consistency(self) -> None:
        """
        Verify that every content record's reference count equals the number
        of metadata rows pointing at it.

        Raises:
            ValidationError: On any mismatch
        """
        with self._lock:
            expected = self.files.reference_counts()
            for content_digest in self.contents.digests():
                actual = self.contents.ref_count(content_digest)
                wanted = expected.get(content_digest, 0)
                if actual != wanted:
                    raise ValidationError(
                        f"Content {content_digest} has {actual} references, "
                        f"metadata expects {wanted}"
                    )
            missing = [d for d in expected if not self.contents.contains(d)]
            if missing:
                raise ValidationError(f"Metadata references missing content: {missing}")

    def snapshot(self) -> Dict[str, Any]:
        """Serialize the full state to a JSON-compatible dict."""
        with self._lock:
            return {
                'version': SNAPSHOT_VERSION,
                'roles': self.roles.snapshot(),
                'contents': self.contents.snapshot(),
                'files': self.files.snapshot(),
                'config': self.config.model_dump(mode='json'),
                'upload_sequence': self._upload_sequence,
            }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any], chunk_size: int = CHUNK_SIZE_BYTES) -> "Store":
        """
        Rebuild a Store from `snapshot()` output, all or nothing.

        Raises:
            ValidationError: If any part of the snapshot is malformed or inconsistent
        """
        try:
            snapshot = StoreSnapshot.model_validate(data)
            config = RuntimeConfig.model_validate(snapshot.config)
        except ValueError as e:
            raise ValidationError(f"Malformed snapshot: {e}")

        if snapshot.version != SNAPSHOT_VERSION:
            raise ValidationError(f"Unsupported snapshot version: {snapshot.version}")
        if snapshot.upload_sequence < 0:
            raise ValidationError("Negative upload_sequence in snapshot")

        roles = RoleRegistry.from_snapshot(snapshot.roles)
        contents = ContentStore.from_snapshot(
            {digest: entry.model_dump() for digest, entry in snapshot.contents.items()}
        )
        files = MetadataIndex.from_snapshot(
            {file_id: entry.model_dump() for file_id, entry in snapshot.files.items()},
            contents
        )
        upload_sequence = snapshot.upload_sequence

        store = cls(
            roles=roles,
            contents=contents,
            files=files,
            config=config,
            chunk_size=chunk_size,
            upload_sequence=upload_sequence,
        )
        store.check_consistency()
        return store

    @classmethod
    def restore(cls, data: Optional[Dict[str, Any]], chunk_size: int = CHUNK_SIZE_BYTES) -> "Store":
        """
        Restore from a snapshot, failing closed to an empty Store when the
        snapshot is missing or invalid.
        """
        if data is None:
            return cls(chunk_size=chunk_size)
        try:
            store = cls.from_snapshot(data, chunk_size=chunk_size)
        except ValidationError as e:
            logger.error(f"State restore failed, starting with empty state: {e}")
            return cls(chunk_size=chunk_size)

        logger.info(
            f"Restored state: {len(store.roles.principals())} principals, "
            f"{store.files.count()} files, {store.contents.count()} content records"
        )
        return store
