"""In-memory content-addressed store: digest -> (bytes, reference count)."""

import base64
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from common import hashing
from common.exceptions import NotFoundError, ValidationError
from common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ContentRecord:
    """
    Stored content and the number of metadata rows referencing it.
    """
    digest: str
    data: bytes
    ref_count: int

    @property
    def size(self) -> int:
        return len(self.data)


class ContentStore:
    """
    Content-addressed blob storage keyed by SHA-256 digest.

    Identical content is stored once. Each `put` takes a reference and each
    `delete` releases one; the record is physically removed when its
    reference count reaches zero.
    """

    def __init__(self):
        self._records: Dict[str, ContentRecord] = {}
        self._lock = threading.RLock()

    def put(self, data: bytes) -> str:
        """
        Store content, or take another reference to it if already present.

        Args:
            data: Non-empty content bytes

        Returns:
            Content digest (the same for identical content)
        """
        content_digest = hashing.digest(data)

        with self._lock:
            record = self._records.get(content_digest)
            if record is None:
                self._records[content_digest] = ContentRecord(
                    digest=content_digest,
                    data=bytes(data),
                    ref_count=1,
                )
                logger.info(f"Stored new content {content_digest} ({len(data)} bytes)")
            else:
                record.ref_count += 1
                logger.info(
                    f"Deduplicated content {content_digest} [refs={record.ref_count}]"
                )

        return content_digest

    def get(self, content_digest: str) -> bytes:
        """
        Retrieve content by digest.

        Raises:
            NotFoundError: If no record exists for the digest
        """
        with self._lock:
            record = self._records.get(content_digest)
            if record is None:
                raise NotFoundError(f"Content {content_digest} not found")
            return record.data

    def delete(self, content_digest: str) -> bool:
        """
        Release one reference to content.

        Returns:
            True if the record was physically removed, False if references remain

        Raises:
            NotFoundError: If no record exists for the digest
        """
        with self._lock:
            record = self._records.get(content_digest)
            if record is None:
                raise NotFoundError(f"Content {content_digest} not found")

            record.ref_count -= 1
            if record.ref_count > 0:
                logger.debug(f"Released reference to {content_digest} [refs={record.ref_count}]")
                return False

            del self._records[content_digest]
            logger.info(f"Removed content {content_digest} ({record.size} bytes)")
            return True

    def contains(self, content_digest: str) -> bool:
        with self._lock:
            return content_digest in self._records

    def ref_count(self, content_digest: str) -> int:
        """Reference count of a digest, 0 if absent."""
        with self._lock:
            record = self._records.get(content_digest)
            return record.ref_count if record else 0

    def count(self) -> int:
        """Number of physical content records."""
        with self._lock:
            return len(self._records)

    def total_size(self) -> int:
        """Total bytes held across all physical records."""
        with self._lock:
            return sum(record.size for record in self._records.values())

    def digests(self) -> List[str]:
        with self._lock:
            return list(self._records.keys())

    def audit(self) -> List[str]:
        """
        Find records whose bytes no longer hash to their digest.

        Returns:
            List of corrupted digests
        """
        with self._lock:
            corrupted = [
                content_digest
                for content_digest, record in self._records.items()
                if not hashing.verify(record.data, content_digest)
            ]

        if corrupted:
            logger.error(f"Content audit found {len(corrupted)} corrupted records")
        return corrupted

    def garbage_collect(self) -> int:
        """
        Remove records that no longer have any references.

        Returns:
            Number of records removed
        """
        with self._lock:
            unreferenced = [
                content_digest
                for content_digest, record in self._records.items()
                if record.ref_count <= 0
            ]
            for content_digest in unreferenced:
                del self._records[content_digest]

        if unreferenced:
            logger.info(f"Garbage collected {len(unreferenced)} unreferenced content records")
        return len(unreferenced)

    def snapshot(self) -> Dict[str, Dict]:
        """
        Serialize records to a JSON-compatible mapping (content base64-encoded).
        """
        with self._lock:
            return {
                content_digest: {
                    'data': base64.b64encode(record.data).decode('ascii'),
                    'ref_count': record.ref_count,
                }
                for content_digest, record in self._records.items()
            }

    @classmethod
    def from_snapshot(cls, data: Optional[Dict[str, Dict]]) -> "ContentStore":
        """
        Rebuild a store from `snapshot()` output.

        Raises:
            ValidationError: If any record is malformed or its bytes do not match its digest
        """
        store = cls()
        for content_digest, entry in (data or {}).items():
            try:
                raw = base64.b64decode(entry['data'], validate=True)
                ref_count = int(entry['ref_count'])
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed content record {content_digest}: {e}")

            if not hashing.verify(raw, content_digest):
                raise ValidationError(f"Content record {content_digest} does not match its digest")
            if ref_count < 0:
                raise ValidationError(f"Negative reference count for {content_digest}")

            store._records[content_digest] = ContentRecord(
                digest=content_digest,
                data=raw,
                ref_count=ref_count,
            )
        return store
