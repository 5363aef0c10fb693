"""
Visual-authenticity adapter.

Wraps a `VisionModel` so the pipeline never sees its failures:
  1. Build the prompt from provenance, raised flags and project context.
  2. Call the model under a bounded wait, at most `vision_max_attempts` times.
  3. Parse the three labelled lines tolerantly (per-label defaults).
  4. If every attempt failed, derive a verdict from the flags alone.

The result is a `VisionOutcome`; callers branch on `outcome.available`.
"""

import asyncio
import logging
import re
from typing import Optional, Sequence

from ecotrust.config import settings
from ecotrust.core.interfaces import VisionModel
from ecotrust.evidence.constants import (
    CRITICAL_FLAGS,
    FALLBACK_CLEAN_CONFIDENCE,
    FALLBACK_CRITICAL_CONFIDENCE,
    FALLBACK_NO_METADATA_CONFIDENCE,
    FLAG_NO_EXIF_TIME,
    FLAG_NO_GPS,
    PARSE_DEFAULT_CONFIDENCE,
    PARSE_DEFAULT_REASONING,
)
from ecotrust.evidence.prompts import build_analysis_prompt
from ecotrust.schemas.evidence import (
    ModelAnalysis,
    Provenance,
    SubmissionContext,
    Verdict,
    VisionOutcome,
)

logger = logging.getLogger(__name__)

# Label lines may carry markdown decoration, e.g. "**VERDICT:** FAKE" or "- Confidence: 80%"
_LABEL_LINE = r"^[ \t*_#>\-]*{label}[ \t*_]*:[ \t*_]*(?P<value>.*?)[ \t\r*_]*$"
_VERDICT_RE = re.compile(_LABEL_LINE.format(label="VERDICT"), re.IGNORECASE | re.MULTILINE)
_CONFIDENCE_RE = re.compile(_LABEL_LINE.format(label="CONFIDENCE"), re.IGNORECASE | re.MULTILINE)
_REASONING_RE = re.compile(_LABEL_LINE.format(label="REASONING"), re.IGNORECASE | re.MULTILINE)


def parse_verdict_text(text: str) -> ModelAnalysis:
    """
    Extracts VERDICT / CONFIDENCE / REASONING independently.
    Absent or out-of-range values fall back to SUSPICIOUS / 50 / "unparseable".
    Never raises.
    """
    verdict = Verdict.SUSPICIOUS
    confidence = PARSE_DEFAULT_CONFIDENCE
    reasoning = PARSE_DEFAULT_REASONING
    text = text if isinstance(text, str) else ""

    match = _VERDICT_RE.search(text)
    if match:
        candidate = match.group("value").strip(" []()`'\".").upper()
        if candidate in Verdict.__members__:
            verdict = Verdict[candidate]

    match = _CONFIDENCE_RE.search(text)
    if match:
        number = re.match(r"\s*(\d+)(?!\.\d)(?!\d)", match.group("value"))
        if number:
            value = int(number.group(1))
            if 0 <= value <= 100:
                confidence = value

    match = _REASONING_RE.search(text)
    if match and match.group("value").strip():
        reasoning = match.group("value").strip()

    return ModelAnalysis(verdict=verdict, confidence=confidence, reasoning=reasoning)


def fallback_analysis(flags: Sequence[str]) -> ModelAnalysis:
    """Verdict derived from already-computed flags when the model is unavailable."""
    flag_set = set(flags)

    if FLAG_NO_GPS in flag_set and FLAG_NO_EXIF_TIME in flag_set:
        return ModelAnalysis(
            verdict=Verdict.FAKE,
            confidence=FALLBACK_NO_METADATA_CONFIDENCE,
            reasoning="Missing critical metadata and no image analysis available",
        )

    if flag_set & CRITICAL_FLAGS:
        return ModelAnalysis(
            verdict=Verdict.SUSPICIOUS,
            confidence=FALLBACK_CRITICAL_CONFIDENCE,
            reasoning="Critical trust flags detected, image analysis unavailable",
        )

    return ModelAnalysis(
        verdict=Verdict.AUTHENTIC,
        confidence=FALLBACK_CLEAN_CONFIDENCE,
        reasoning="Image analysis unavailable; no critical trust flags raised",
    )


class AuthenticityAdapter:
    """Bounded, failure-absorbing front for a VisionModel."""

    def __init__(
        self,
        model: Optional[VisionModel],
        timeout_sec: Optional[float] = None,
        max_attempts: Optional[int] = None,
        retry_delay_sec: Optional[float] = None,
    ):
        self.model = model
        self.timeout_sec = timeout_sec if timeout_sec is not None else settings.vision_timeout_sec
        self.max_attempts = max_attempts if max_attempts is not None else settings.vision_max_attempts
        self.retry_delay_sec = (
            retry_delay_sec if retry_delay_sec is not None else settings.vision_retry_delay_sec
        )

    def _unavailable(self, flags: Sequence[str], error: str, attempts: int) -> VisionOutcome:
        analysis = fallback_analysis(flags)
        logger.warning(
            f"[VISION] Model unavailable after {attempts} attempt(s) ({error}); "
            f"fallback verdict={analysis.verdict.value}/{analysis.confidence}"
        )
        return VisionOutcome(available=False, analysis=analysis, error=error, attempts=attempts)

    async def analyze(
        self,
        image_bytes: bytes,
        provenance: Provenance,
        flags: Sequence[str],
        context: SubmissionContext,
    ) -> VisionOutcome:
        if self.model is None:
            return self._unavailable(flags, "no vision model configured", 0)

        prompt = build_analysis_prompt(provenance, flags, context)
        last_error = "unknown error"

        for attempt in range(1, self.max_attempts + 1):
            try:
                text = await asyncio.wait_for(
                    self.model.analyze(image_bytes, prompt), timeout=self.timeout_sec
                )
            except asyncio.TimeoutError:
                last_error = f"timed out after {self.timeout_sec}s"
            except Exception as e:
                last_error = f"{type(e).__name__}: {e}"
            else:
                if isinstance(text, str) and text.strip():
                    analysis = parse_verdict_text(text)
                    logger.info(
                        f"[VISION] verdict={analysis.verdict.value}, confidence={analysis.confidence} "
                        f"(attempt {attempt})"
                    )
                    return VisionOutcome(available=True, analysis=analysis, attempts=attempt)
                last_error = "empty or non-text response"

            logger.warning(f"[VISION] Attempt {attempt}/{self.max_attempts} failed: {last_error}")
            if attempt < self.max_attempts and self.retry_delay_sec:
                await asyncio.sleep(self.retry_delay_sec)

        return self._unavailable(flags, last_error, self.max_attempts)
