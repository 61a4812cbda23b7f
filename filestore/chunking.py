"""Splits content into fixed-size chunks and reassembles it. Pure, no storage side effects."""

from typing import Iterable, List

from common import hashing
from common.exceptions import ValidationError
from common.types import Chunk


def split(data: bytes, chunk_size: int) -> List[Chunk]:
    """
    Split content into chunks of `chunk_size` bytes.

    Args:
        data: Full file content
        chunk_size: Size of every chunk except possibly the last

    Returns:
        Chunks with contiguous 0-based indices

    Raises:
        ValidationError: If data is empty or chunk_size is not positive
    """
    if not data:
        raise ValidationError("File content is empty")
    if chunk_size <= 0:
        raise ValidationError("Chunk size must be > 0")

    return [
        Chunk(index=index, data=bytes(data[start:start + chunk_size]))
        for index, start in enumerate(range(0, len(data), chunk_size))
    ]


def reassemble(chunks: Iterable[Chunk]) -> bytes:
    """
    Concatenate chunks in index order.

    Chunks may arrive in any order; they are sorted by index here. The
    indices must form the contiguous range 0..n-1.

    Raises:
        ValidationError: If no chunks are given or indices have gaps/duplicates
    """
    ordered = sorted(chunks, key=lambda chunk: chunk.index)
    if not ordered:
        raise ValidationError("No chunks provided")

    for expected, chunk in enumerate(ordered):
        if chunk.index != expected:
            raise ValidationError(
                f"Chunk out of order: expected index {expected}, got {chunk.index}"
            )

    return b"".join(chunk.data for chunk in ordered)


def hash_each(chunks: Iterable[Chunk]) -> List[str]:
    """Digest of every chunk, preserving order. Used for integrity audits only."""
    return [hashing.digest(chunk.data) for chunk in chunks]
