"""Content addressing: CIDv1 identifiers for byte buffers.

Identifiers are CIDv1 with the ``raw`` codec and a sha2-256 multihash,
rendered in lower-case base32 multibase (``b`` prefix). Any byte sequence,
including the empty one, has exactly one identifier.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
from collections.abc import Mapping

_CID_VERSION = 0x01
_RAW_CODEC = 0x55
_SHA2_256 = 0x12
_SHA2_256_LENGTH = 0x20
_PREFIX = bytes((_CID_VERSION, _RAW_CODEC, _SHA2_256, _SHA2_256_LENGTH))
_BASE32_MULTIBASE = "b"


def hash_bytes(content: bytes) -> str:
    """Return the content identifier of ``content``.

    Args:
        content: Bytes to address

    Returns:
        CIDv1 string such as ``bafkrei...``
    """
    digest = hashlib.sha256(content).digest()
    encoded = base64.b32encode(_PREFIX + digest).decode("ascii")
    return _BASE32_MULTIBASE + encoded.rstrip("=").lower()


def verify_hash(content: bytes, expected: str) -> bool:
    """Check that ``content`` addresses to ``expected``."""
    return hash_bytes(content) == expected


async def hash_files(files: Mapping[str, bytes]) -> dict[str, str]:
    """Hash many buffers concurrently.

    Each digest runs in a worker thread.

    Returns:
        Mapping from the input key to the content identifier
    """
    names = list(files)
    hashes = await asyncio.gather(
        *(asyncio.to_thread(hash_bytes, files[name]) for name in names)
    )
    return dict(zip(names, hashes, strict=True))
