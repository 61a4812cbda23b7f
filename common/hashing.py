"""SHA-256 content digests and file id derivation."""

import hashlib
import hmac
from typing import Union

from common.exceptions import ValidationError


def digest(data: bytes) -> str:
    """
    Compute the SHA-256 digest of non-empty content.

    Args:
        data: Bytes to hash

    Returns:
        Hexadecimal string representation of SHA-256 hash

    Raises:
        ValidationError: If data is empty
    """
    if not data:
        raise ValidationError("Cannot hash empty content")
    return hashlib.sha256(data).hexdigest()


def file_id(content_digest: str, disambiguator: Union[str, int]) -> str:
    """
    Derive a stable, opaque file id from a content digest.

    Two uploads of identical content with different disambiguators
    (timestamp, sequence number) get different ids.

    Args:
        content_digest: Digest of the file content
        disambiguator: Salt distinguishing this upload

    Returns:
        Hexadecimal SHA-256 file id
    """
    if not content_digest:
        raise ValidationError("Cannot derive file id from empty digest")
    salted = f"{content_digest}:{disambiguator}".encode("utf-8")
    return hashlib.sha256(salted).hexdigest()


def verify(data: bytes, expected: str) -> bool:
    """
    Verify that data matches an expected digest.

    Returns:
        True if digest matches, False otherwise (empty data never matches)
    """
    if not data:
        return False
    return hmac.compare_digest(digest(data), expected)
