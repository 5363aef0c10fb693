"""
Builds the read-only `SubmissionContext` for a submission from a registry.

Registry calls are synchronous (Firestore SDK), so they run in worker
threads and are fetched concurrently.
"""

import asyncio
import logging
from typing import Optional

from ecotrust.config import settings
from ecotrust.core.interfaces import Registry
from ecotrust.schemas.evidence import SubmissionContext, SubmissionKind

logger = logging.getLogger(__name__)


async def load_submission_context(
    registry: Registry,
    project_id: str,
    kind: SubmissionKind = SubmissionKind.PERIODIC,
    submission_id: Optional[str] = None,
    expected_location: Optional[str] = None,
    window: Optional[int] = None,
) -> SubmissionContext:
    window = window or settings.prior_hash_window

    ring, priors = await asyncio.gather(
        asyncio.to_thread(registry.geofence, project_id),
        asyncio.to_thread(registry.prior_hashes, project_id, window),
    )

    if ring is not None and len({tuple(v) for v in ring}) < 3:
        logger.warning(f"[REGISTRY] Geofence for {project_id} has fewer than 3 vertices, ignoring")
        ring = None

    return SubmissionContext(
        project_id=project_id,
        submission_id=submission_id,
        geofence=tuple(tuple(v) for v in ring) if ring else None,
        prior_hashes=tuple(priors[:window]),
        kind=kind,
        expected_location=expected_location,
    )
