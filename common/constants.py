"""Project-wide constants (chunk size, size caps, filename rules)."""

CHUNK_SIZE_BYTES: int = 1024 * 1024  # 1 MiB default chunk size

DEFAULT_MAX_FILE_SIZE_BYTES: int = 50 * 1024 * 1024  # 50 MiB
MAX_FILE_SIZE_HARD_CAP_BYTES: int = 1_000_000_000  # 1 GB

MAX_FILENAME_LENGTH: int = 255
FILENAME_EXTRA_CHARS = frozenset("._-")

PRINCIPAL_HEADER = "X-Principal-Id"

DEFAULT_STATE_PATH = "/app/data/cdn_state.json"
