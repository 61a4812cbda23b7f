"""File service for business logic."""

from typing import Dict, List, Optional, Tuple

from common import hashing
from common.exceptions import (
    DuplicateFileError,
    InternalFailureError,
    NotFoundError,
    UnauthorizedError,
    UploadsDisabledError,
    ValidationError,
)
from common.logging_config import get_logger
from common.types import Action, FileMetadata, FileSummary
from controller.store import Store
from controller.utils import utcnow, validate_file_size, validate_filename
from filestore import chunking

logger = get_logger(__name__)

SCOPE_ALL = "all"
SCOPE_OWN = "own"


class FileService:
    def __init__(self, store: Store):
        self.store = store

    def upload_file(self, identity: str, filename: str, content: bytes) -> FileMetadata:
        """
        Store a file for a Publisher or Admin.

        Content is validated, split into chunks and reassembled as a
        self-check, then stored once per distinct digest. A metadata row is
        created for every upload, even of content already in the store. If
        indexing fails the content reference taken by this upload is released.

        Returns:
            Metadata of the new file (its file_id is the handle for later calls)

        Raises:
            UnauthorizedError: Caller may not upload
            UploadsDisabledError: Uploads are switched off in config
            ValidationError: Bad filename, empty or oversized content
            InternalFailureError: Chunk round-trip mismatch or id collision
        """
        if not isinstance(content, (bytes, bytearray)):
            raise ValidationError("File content must be bytes")
        content = bytes(content)

        with self.store.transaction() as store:
            store.permissions.authorize(identity, Action.UPLOAD_FILE)

            config = store.config
            if not config.uploads_enabled:
                logger.warning(f"Upload rejected for {identity}: uploads disabled")
                raise UploadsDisabledError("Uploads are currently disabled")

            validate_filename(filename)
            validate_file_size(len(content), config.max_file_size_bytes)

            chunks = chunking.split(content, store.chunk_size)
            checksums = chunking.hash_each(chunks)
            if chunking.reassemble(chunks) != content:
                logger.error(f"Chunk round-trip mismatch for upload {filename} by {identity}")
                raise InternalFailureError("Chunk reassembly mismatch")

            content_digest = store.contents.put(content)
            try:
                metadata = FileMetadata(
                    file_id=hashing.file_id(content_digest, store.next_disambiguator()),
                    owner=identity,
                    filename=filename,
                    size=len(content),
                    content_hash=content_digest,
                    chunk_count=len(chunks),
                    uploaded_at=utcnow(),
                    chunk_checksums=tuple(checksums),
                    chunk_size=store.chunk_size,
                )
                store.files.insert(metadata)
            except DuplicateFileError as e:
                store.contents.delete(content_digest)
                logger.error(f"File id collision during upload: {e}", exc_info=True)
                raise InternalFailureError(str(e))
            except Exception:
                store.contents.delete(content_digest)
                raise

        logger.info(
            f"Uploaded file {metadata.file_id} name={filename} size={metadata.size} "
            f"chunks={metadata.chunk_count} owner={identity}"
        )
        return metadata

    def download_file(self, identity: str, file_id: str) -> Tuple[str, bytes]:
        """
        Fetch a file's name and content.

        Allowed for any role with download permission and for the file's owner.

        Raises:
            UnauthorizedError: Caller is neither permitted nor the owner
            NotFoundError: Unknown or inactive file id
        """
        with self.store.transaction() as store:
            metadata = self._get_accessible(store, identity, file_id, Action.DOWNLOAD_FILE)
            if not metadata.is_active:
                raise NotFoundError(f"File {file_id} not found")
            content = store.contents.get(metadata.content_hash)

        logger.info(f"Downloaded file {file_id} ({metadata.size} bytes) by {identity}")
        return metadata.filename, content

    def get_file_metadata(self, identity: str, file_id: str) -> FileMetadata:
        """
        Full metadata of one file. Inactive files are only visible to Admins
        and to their owner.
        """
        with self.store.transaction() as store:
            metadata = self._get_accessible(store, identity, file_id, Action.VIEW_METADATA)
            if (
                not metadata.is_active
                and metadata.owner != identity
                and not store.permissions.is_authorized(identity, Action.DELETE_FILE)
            ):
                raise NotFoundError(f"File {file_id} not found")
            return metadata

    def delete_file(self, identity: str, file_id: str) -> None:
        """
        Delete a file's metadata and release its content.

        Allowed for Admins and, as self-service, for the file's owner.

        Raises:
            UnauthorizedError: Caller is neither Admin nor the owner
            NotFoundError: Unknown file id
        """
        with self.store.transaction() as store:
            self._get_accessible(store, identity, file_id, Action.DELETE_FILE)
            store.files.delete(file_id)

        logger.info(f"File {file_id} deleted by {identity}")

    def list_files(self, identity: str, scope: Optional[str] = None) -> List[FileSummary]:
        """
        List active files.

        Args:
            identity: Caller
            scope: "all" (Admins only) or "own"; defaults to "all" for Admins
                and "own" for everyone else

        Raises:
            UnauthorizedError: Caller may not view metadata, or asked for "all" without being Admin
            ValidationError: Unknown scope
        """
        return [metadata.summary() for metadata in self.list_file_metadata(identity, scope)]

    def list_file_metadata(self, identity: str, scope: Optional[str] = None) -> List[FileMetadata]:
        with self.store.transaction() as store:
            store.permissions.authorize(identity, Action.VIEW_METADATA)
            is_admin = store.permissions.is_authorized(identity, Action.MANAGE_USERS)

            if scope is None:
                scope = SCOPE_ALL if is_admin else SCOPE_OWN

            if scope == SCOPE_ALL:
                if not is_admin:
                    logger.warning(f"Denied listing all files for {identity}")
                    raise UnauthorizedError("Only Admins may list all files")
                files = store.files.list_active()
            elif scope == SCOPE_OWN:
                files = [m for m in store.files.list_by_owner(identity) if m.is_active]
            else:
                raise ValidationError(f"Invalid list scope: {scope}")

        logger.debug(f"Listed {len(files)} files for {identity} [scope={scope}]")
        return files

    def set_file_active(self, identity: str, file_id: str, active: bool) -> FileMetadata:
        """
        Activate or deactivate a file. Inactive files cannot be downloaded or listed.

        Allowed for Admins and for a Publisher on a file they own.

        Raises:
            UnauthorizedError: Caller is neither Admin nor a Publisher owning the file
            NotFoundError: Unknown file id
        """
        with self.store.transaction() as store:
            if not store.permissions.is_authorized(identity, Action.DELETE_FILE):
                store.permissions.authorize(identity, Action.UPLOAD_FILE)
            self._get_accessible(store, identity, file_id, Action.DELETE_FILE)
            metadata = store.files.set_active(file_id, active)

        logger.info(f"File {file_id} active={active} set by {identity}")
        return metadata

    def validate_file_integrity(self, identity: str, file_id: str) -> bool:
        """
        Re-split stored content and compare against the per-chunk checksums
        recorded at upload.

        Returns:
            True if the content digest and every chunk checksum match
        """
        with self.store.transaction() as store:
            metadata = self._get_accessible(store, identity, file_id, Action.VIEW_METADATA)
            content = store.contents.get(metadata.content_hash)
            chunk_size = metadata.chunk_size or store.chunk_size

        if not hashing.verify(content, metadata.content_hash):
            logger.error(f"Content digest mismatch for file {file_id}")
            return False

        actual = chunking.hash_each(chunking.split(content, chunk_size))
        if tuple(actual) != metadata.chunk_checksums:
            logger.error(f"Chunk checksum mismatch for file {file_id}")
            return False
        return True

    def collect_garbage(self, identity: str) -> int:
        """
        Explicit pass removing content records with no references.
        """
        with self.store.transaction() as store:
            store.permissions.authorize(identity, Action.MANAGE_CONFIG)
            return store.contents.garbage_collect()

    def audit_contents(self, identity: str) -> List[str]:
        """
        Re-hash every content record. Admin only.

        Returns:
            Digests whose stored bytes no longer match
        """
        with self.store.transaction() as store:
            store.permissions.authorize(identity, Action.MANAGE_CONFIG)
            return store.contents.audit()

    def storage_stats(self, identity: str) -> Dict[str, int]:
        """
        Counts of files, content records and bytes. Admin only.

        `logical_bytes` sums the size of every file row; `stored_bytes` is what
        is actually held after deduplication.
        """
        with self.store.transaction() as store:
            store.permissions.authorize(identity, Action.MANAGE_CONFIG)
            rows = store.files.list_all()
            active = sum(1 for m in rows if m.is_active)
            return {
                'files': len(rows),
                'active_files': active,
                'inactive_files': len(rows) - active,
                'content_records': store.contents.count(),
                'logical_bytes': sum(m.size for m in rows),
                'stored_bytes': store.contents.total_size(),
                'principals': len(store.roles.principals()),
                'admins': len(store.roles.admins()),
            }

    @staticmethod
    def _get_accessible(store: Store, identity: str, file_id: str, action: Action) -> FileMetadata:
        """
        Metadata of a file the caller may act on, either through a role
        permitting `action` or by owning the file.
        """
        if store.permissions.is_authorized(identity, action):
            return store.files.get(file_id)

        metadata = store.files.find(file_id)
        if metadata is None or metadata.owner != identity:
            logger.warning(f"Denied {action.value} on {file_id} for {identity}")
            raise UnauthorizedError(f"{identity} is not allowed to perform {action.value}")
        return metadata
