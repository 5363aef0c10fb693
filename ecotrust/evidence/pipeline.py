"""
Submission orchestrator: public entry point for scoring evidence.

`SubmissionPipeline.assess` drives one submission through:
  1. RECEIVED            → normalize input; zero images short-circuits to NO_MEDIA
  2. FINGERPRINTED       → provenance + SHA-256 + pHash for every image (original bytes)
  3. GEO_CHECKED         → location, capture-time and near-duplicate flags (primary image)
  4. STAMPED_AND_STORED  → stamp every image, then upload them all (the only fatal stage)
  5. MODEL_ANALYZED      → visual-authenticity adapter on the primary image
  6. SCORED              → rule penalties + model verdict → TrustAssessment
"""

import asyncio
import logging
import os
import re
import uuid
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from ecotrust.config import settings
from ecotrust.core.errors import InvalidStateTransition, StorageStageError, UploadError
from ecotrust.core.interfaces import Storage, VisionModel
from ecotrust.evidence.authenticity import AuthenticityAdapter
from ecotrust.evidence.constants import FLAG_NO_EXIF_TIME, FLAG_PHASH_SIMILAR
from ecotrust.evidence.duplicates import is_near_duplicate
from ecotrust.evidence.geofence import check_location
from ecotrust.evidence.hashing import fingerprint
from ecotrust.evidence.provenance import extract_provenance
from ecotrust.evidence.scoring import aggregate, no_media_assessment
from ecotrust.evidence.stamper import build_stamp_text, stamp_image
from ecotrust.schemas.evidence import (
    MediaItem,
    Provenance,
    RawImage,
    SubmissionContext,
    SubmissionResult,
)

logger = logging.getLogger(__name__)

ImageInput = Union[bytes, RawImage]


class SubmissionState(str, Enum):
    RECEIVED = "RECEIVED"
    FINGERPRINTED = "FINGERPRINTED"
    GEO_CHECKED = "GEO_CHECKED"
    STAMPED_AND_STORED = "STAMPED_AND_STORED"
    MODEL_ANALYZED = "MODEL_ANALYZED"
    SCORED = "SCORED"


_STATE_ORDER = list(SubmissionState)


class SubmissionRun:
    """Per-call state holder. Moves forward only; SCORED is terminal."""

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        self.state = SubmissionState.RECEIVED

    def advance(self, new_state: SubmissionState) -> None:
        if _STATE_ORDER.index(new_state) <= _STATE_ORDER.index(self.state):
            raise InvalidStateTransition(
                f"Submission {self.submission_id}: {self.state.value} → {new_state.value} is not allowed"
            )
        logger.debug(f"[PIPELINE] {self.submission_id}: {self.state.value} → {new_state.value}")
        self.state = new_state


def _normalize(images: Sequence[ImageInput]) -> List[RawImage]:
    normalized = []
    for idx, image in enumerate(images or []):
        if isinstance(image, RawImage):
            normalized.append(image)
        else:
            normalized.append(RawImage(data=bytes(image), filename=f"evidence-{idx + 1}.jpg"))
    return normalized


def _storage_name(project_id: str, filename: str) -> str:
    stem = os.path.splitext(os.path.basename(filename))[0] or "evidence"
    folder = re.sub(r"[^A-Za-z0-9_-]+", "_", project_id).strip("_") or "unknown"
    return f"projects/{folder}/{stem}.jpeg"


async def _gather_or_cancel(*aws):
    """
    Like asyncio.gather, but on the first failure the siblings still running
    are cancelled and awaited before the error propagates.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class SubmissionPipeline:
    def __init__(
        self,
        storage: Storage,
        vision: Optional[VisionModel] = None,
        adapter: Optional[AuthenticityAdapter] = None,
    ):
        self.storage = storage
        self.adapter = adapter or AuthenticityAdapter(vision)

    async def _fingerprint(self, image: RawImage) -> Tuple[Provenance, str, str]:
        provenance = await asyncio.to_thread(extract_provenance, image.data)
        digest, phash = await asyncio.to_thread(fingerprint, image.data)
        return provenance, digest, phash

    async def _store(
        self,
        image: RawImage,
        stamped: bytes,
        provenance: Provenance,
        digest: str,
        phash: str,
        context: SubmissionContext,
    ) -> MediaItem:
        metadata = {
            "projectId": context.project_id,
            "sha256": digest,
            "pHash": phash,
            "originalName": image.filename,
        }
        try:
            stored = await self.storage.put(stamped, _storage_name(context.project_id, image.filename), metadata)
        except StorageStageError:
            raise
        except Exception as e:
            logger.error(f"[PIPELINE] Upload failed for {image.filename}: {e}")
            raise UploadError(f"Upload failed for {image.filename}: {e}") from e

        return MediaItem(
            sha256=digest,
            phash=phash,
            provenance=provenance,
            storage_url=stored.url,
            storage_key=stored.key,
            stamped=True,
        )

    async def assess(self, images: Sequence[ImageInput], context: SubmissionContext) -> SubmissionResult:
        """
        Scores one submission.

        Raises StorageStageError (MediaDecodeError / UploadError) when the
        evidence cannot be stamped and stored; every other degraded condition
        is reported as a flag on the returned assessment.
        """
        submission_id = context.submission_id or uuid.uuid4().hex
        run = SubmissionRun(submission_id)
        raw_images = _normalize(images)

        logger.info(
            f"[PIPELINE] Submission {submission_id} for project {context.project_id}: "
            f"{len(raw_images)} image(s), kind={context.kind.value}"
        )

        if not raw_images:
            logger.warning(f"[PIPELINE] Submission {submission_id} has no media")
            run.advance(SubmissionState.SCORED)
            return SubmissionResult(assessment=no_media_assessment(), media=[])

        # --- Fingerprint: original bytes, before any stamping ---
        prints = await asyncio.gather(*(self._fingerprint(img) for img in raw_images))
        run.advance(SubmissionState.FINGERPRINTED)

        # --- Rule checks on the primary image ---
        primary_provenance, _, primary_phash = prints[0]
        flags = []
        location_flag = check_location(primary_provenance, context.geofence)
        if location_flag:
            flags.append(location_flag)
        if primary_provenance.captured_at is None:
            flags.append(FLAG_NO_EXIF_TIME)
        if is_near_duplicate(primary_phash, context.prior_hashes):
            flags.append(FLAG_PHASH_SIMILAR)
        run.advance(SubmissionState.GEO_CHECKED)

        # --- Stamp every image, then store (fatal on failure) ---
        stamp_text = build_stamp_text(submission_id, context.project_id)
        stamped = await asyncio.gather(
            *(asyncio.to_thread(stamp_image, img.data, stamp_text) for img in raw_images)
        )
        media = await _gather_or_cancel(
            *(
                self._store(img, stamped_bytes, prov, digest, phash, context)
                for img, stamped_bytes, (prov, digest, phash) in zip(raw_images, stamped, prints)
            )
        )
        run.advance(SubmissionState.STAMPED_AND_STORED)

        # --- Visual authenticity (primary image only) ---
        outcome = await self.adapter.analyze(raw_images[0].data, primary_provenance, flags, context)
        run.advance(SubmissionState.MODEL_ANALYZED)

        assessment = aggregate(flags, outcome.analysis, outcome.available)
        run.advance(SubmissionState.SCORED)

        logger.info(
            f"[PIPELINE] Submission {submission_id} scored {assessment.score} ({assessment.verdict.value})"
        )
        return SubmissionResult(assessment=assessment, media=list(media))

    async def assess_many(
        self,
        submissions: Sequence[Tuple[Sequence[ImageInput], SubmissionContext]],
        max_concurrency: Optional[int] = None,
    ) -> List[Union[SubmissionResult, BaseException]]:
        """
        Scores independent submissions concurrently. Results come back in
        input order; a failed submission yields its exception in place.
        """
        semaphore = asyncio.Semaphore(max_concurrency or settings.max_concurrent_submissions)

        async def _bounded(images, context):
            async with semaphore:
                return await self.assess(images, context)

        results = await asyncio.gather(
            *(_bounded(images, context) for images, context in submissions),
            return_exceptions=True,
        )
        failed = sum(1 for r in results if isinstance(r, BaseException))
        logger.info(f"[PIPELINE] Batch done: {len(results) - failed} scored, {failed} failed")
        return list(results)
