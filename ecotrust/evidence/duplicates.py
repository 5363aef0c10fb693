"""
Near-duplicate detection against the project's recent perceptual hashes.

The prior window is a read-only snapshot supplied by the caller, most recent
first. The scan stops at the first prior within the similarity threshold.
"""

import logging
from typing import Optional, Sequence

from ecotrust.config import settings
from ecotrust.evidence.hashing import hamming_distance

logger = logging.getLogger(__name__)


def is_near_duplicate(
    phash: str,
    prior_hashes: Sequence[str],
    threshold: Optional[int] = None,
    window: Optional[int] = None,
) -> bool:
    threshold = settings.phash_similarity_threshold if threshold is None else threshold
    window = settings.prior_hash_window if window is None else window

    if not phash or not prior_hashes:
        return False

    for idx, prior in enumerate(prior_hashes[:window]):
        try:
            distance = hamming_distance(phash, prior)
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning(f"[DUPLICATE] Skipping malformed prior hash #{idx}: {e}")
            continue

        if distance <= threshold:
            logger.info(f"[DUPLICATE] Near-duplicate of prior #{idx} (distance={distance}, threshold={threshold})")
            return True

    return False
