"""
Content fingerprinting: exact digest + perceptual hash.

The digest identifies the exact byte sequence (chain of custody). The
perceptual hash is a DCT pHash from the `imagehash` library; at the default
size of 8 it is 64 bits wide and the near-duplicate threshold of 6 is
calibrated for that width. Changing PHASH_SIZE means recalibrating
PHASH_SIMILARITY_THRESHOLD.
"""

import hashlib
import logging
from typing import Optional

import imagehash

from ecotrust.config import settings
from ecotrust.core.imaging import decode_image

logger = logging.getLogger(__name__)


def sha256_digest(data: bytes) -> str:
    """Securely hash raw bytes using SHA-256."""
    return hashlib.sha256(data).hexdigest()


def perceptual_hash(data: bytes, hash_size: Optional[int] = None) -> str:
    """
    pHash of the decoded image as a fixed-width hex string.
    Raises MediaDecodeError when the bytes are not an image.
    """
    size = hash_size or settings.phash_size
    img = decode_image(data)
    try:
        return str(imagehash.phash(img, hash_size=size))
    finally:
        img.close()


def fingerprint(data: bytes) -> tuple[str, str]:
    """Returns (sha256, phash) for the original bytes."""
    digest = sha256_digest(data)
    phash = perceptual_hash(data)
    logger.info(f"[HASH] sha256={digest[:12]}... phash({settings.phash_bits}-bit)={phash}")
    return digest, phash


def hamming_distance(hash_a: str, hash_b: str) -> int:
    """
    Number of differing bits between two hex hashes.
    Raises ValueError for invalid hex or hashes of different width.
    """
    a = hash_a.strip().lower()
    b = hash_b.strip().lower()
    if len(a) != len(b):
        raise ValueError(f"Hash width mismatch: {len(a) * 4} vs {len(b) * 4} bits")
    return bin(int(a, 16) ^ int(b, 16)).count("1")
