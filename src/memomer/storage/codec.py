"""
Binary vector and tag encoding for stored index rows.

Vectors are stored as little-endian IEEE-754 doubles. Tags are stored as a
comma-joined string; tags that would not survive the join are rejected.
"""

from __future__ import annotations

import struct
from typing import Iterable, Sequence

from ..errors import IndexIOError, ValidationError


TAG_SEPARATOR = ","
_DOUBLE_SIZE = 8


def encode_embedding(vector: Sequence[float]) -> bytes:
    """Encode a vector as ``8 * len(vector)`` bytes of little-endian float64."""
    try:
        return struct.pack(f"<{len(vector)}d", *vector)
    except struct.error as exc:
        raise ValidationError(f"Embedding is not a sequence of numbers: {exc}") from exc


def decode_embedding(blob: bytes) -> tuple[float, ...]:
    """Decode a stored blob back into a vector."""
    if len(blob) % _DOUBLE_SIZE != 0:
        raise IndexIOError(
            f"Corrupt embedding blob: {len(blob)} bytes is not a multiple of {_DOUBLE_SIZE}."
        )
    count = len(blob) // _DOUBLE_SIZE
    return struct.unpack(f"<{count}d", blob)


def normalize_tags(tags: Iterable[str]) -> tuple[str, ...]:
    """Validate tags and drop duplicates, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError(f"Tag must be a string, got {type(tag).__name__}.")
        if not tag:
            raise ValidationError("Tags must not be empty.")
        if TAG_SEPARATOR in tag:
            raise ValidationError(
                f"Tag {tag!r} contains the reserved separator {TAG_SEPARATOR!r}."
            )
        if tag != tag.strip():
            raise ValidationError(f"Tag {tag!r} has leading or trailing whitespace.")
        if tag not in seen:
            seen.append(tag)
    return tuple(seen)


def encode_tags(tags: Iterable[str]) -> str:
    return TAG_SEPARATOR.join(normalize_tags(tags))


def decode_tags(text: str | None) -> tuple[str, ...]:
    if not text:
        return ()
    return tuple(text.split(TAG_SEPARATOR))
