"""Content-addressed storage: chunking, deduplicated content records and file metadata."""

from filestore.content_store import ContentStore
from filestore.metadata_index import MetadataIndex

__all__ = [
    "ContentStore",
    "MetadataIndex",
]
