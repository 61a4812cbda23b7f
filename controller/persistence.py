"""Persists the Store snapshot to a JSON state file across restarts."""

import json
import os
from pathlib import Path
from typing import Optional, Union

from common.constants import CHUNK_SIZE_BYTES
from common.exceptions import StorageUnavailableError
from common.logging_config import get_logger
from controller.store import Store

logger = get_logger(__name__)


def save_state(store: Store, path: Union[str, Path]) -> None:
    """
    Persist the store to a JSON file.

    The snapshot is written to a temporary file next to `path` and moved into
    place, so a crash mid-write never leaves a truncated state file.

    Args:
        store: Store to persist
        path: Destination JSON file

    Raises:
        StorageUnavailableError: If the file cannot be written
    """
    path = Path(path)
    tmp_path = path.with_suffix(path.suffix + '.tmp')
    snapshot = store.snapshot()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, 'w') as f:
            json.dump(snapshot, f)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        logger.error(f"Failed to save state to {path}: {e}", exc_info=True)
        raise StorageUnavailableError(f"Cannot write state file {path}: {e}")

    logger.info(
        f"Saved state to {path}: {len(snapshot['files'])} files, "
        f"{len(snapshot['contents'])} content records"
    )


def load_state(
    path: Union[str, Path],
    chunk_size: int = CHUNK_SIZE_BYTES,
) -> Store:
    """
    Load the store from a JSON file.

    A missing file yields an empty store. An unreadable, corrupted or
    inconsistent file also yields an empty store (fail closed) and is logged;
    nothing is partially restored.
    """
    path = Path(path)
    data: Optional[dict] = None

    if not path.exists():
        logger.warning(f"State file not found at {path}, starting with empty state")
    else:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read state file {path}: {e}")
            return Store(chunk_size=chunk_size)

    return Store.restore(data, chunk_size=chunk_size)
