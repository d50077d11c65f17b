"""
Content fingerprints for change detection.

The fingerprint is written into the edit summary of every upload
("Hash:<digest>") and compared against the newest history entry before
publishing again.
"""

import hashlib
from pathlib import Path
from typing import BinaryIO

CHUNK_SIZE = 64 * 1024


def fingerprint(source: str | Path | BinaryIO) -> str:
    """
    Hash an artifact without reading it into memory at once.

    Args:
        source: Path to the artifact, or an open binary stream (left open)

    Returns:
        Full SHA-256 hex digest

    Raises:
        OSError: if the artifact cannot be opened or read
    """
    if isinstance(source, (str, Path)):
        with open(source, 'rb') as fh:
            return _digest_stream(fh)
    return _digest_stream(source)


def fingerprint_bytes(data: bytes) -> str:
    """Hash in-memory content (same digest as fingerprint() of a file with these bytes)."""
    return hashlib.sha256(data).hexdigest()


def _digest_stream(stream: BinaryIO) -> str:
    h = hashlib.sha256()
    for chunk in iter(lambda: stream.read(CHUNK_SIZE), b''):
        h.update(chunk)
    return h.hexdigest()
