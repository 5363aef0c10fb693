"""
Trust score aggregation.

Pure functions only: the score is a fold of the ordered rule penalties over
INITIAL_SCORE, followed by the model-verdict cap and the confidence blend.
When the model was unavailable only the fallback verdict's cap applies and the
verdict comes from the score thresholds. No state is shared between
submissions.
"""

import logging
from functools import reduce
from typing import Iterable, List, Optional, Sequence

from ecotrust.config import settings
from ecotrust.evidence.constants import (
    AUTHENTIC_SCORE_BONUS,
    BLEND_MIDPOINT,
    FAKE_SCORE_CAP,
    FLAG_MODEL_UNAVAILABLE,
    FLAG_NO_MEDIA,
    INITIAL_SCORE,
    RULE_PENALTIES,
    SUSPICIOUS_SCORE_CAP,
)
from ecotrust.schemas.evidence import (
    ModelAnalysis,
    RecommendedAction,
    TrustAssessment,
    Verdict,
)

logger = logging.getLogger(__name__)


def clamp(score: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, score)))


def dedupe_flags(flags: Iterable[str]) -> List[str]:
    """Drops repeats and empty entries, keeping first-seen order."""
    return list(dict.fromkeys(f for f in flags if f))


def apply_rule_penalties(flags: Iterable[str], initial: int = INITIAL_SCORE) -> int:
    present = set(flags)
    return reduce(
        lambda score, rule: score - rule[1] if rule[0] in present else score,
        RULE_PENALTIES,
        initial,
    )


def apply_verdict_cap(score: int, verdict: Verdict) -> int:
    if verdict == Verdict.FAKE:
        return min(score, FAKE_SCORE_CAP)
    if verdict == Verdict.SUSPICIOUS:
        return min(score, SUSPICIOUS_SCORE_CAP)
    return score


def apply_model_analysis(score: int, analysis: ModelAnalysis) -> int:
    """
    Verdict cap, then confidence blend:

        FAKE        → min(score, 20)
        SUSPICIOUS  → min(score, 60)
        AUTHENTIC   → min(score + 10, 100)
        score = round(score * c/100 + (100 - c) * 0.5)

    Low confidence pulls the result toward 50 whichever verdict was given.
    """
    if analysis.verdict == Verdict.AUTHENTIC:
        score = min(score + AUTHENTIC_SCORE_BONUS, 100)
    else:
        score = apply_verdict_cap(score, analysis.verdict)

    # Integer form of the blend; +50 rounds half up
    confidence = analysis.confidence
    weighted = score * confidence + (100 - confidence) * BLEND_MIDPOINT
    return (weighted + 50) // 100


def verdict_from_score(
    score: int,
    auto_approve: Optional[int] = None,
    human_review: Optional[int] = None,
) -> Verdict:
    auto_approve = settings.auto_approve_threshold if auto_approve is None else auto_approve
    human_review = settings.human_review_threshold if human_review is None else human_review

    if score >= auto_approve:
        return Verdict.AUTHENTIC
    if score >= human_review:
        return Verdict.SUSPICIOUS
    return Verdict.FAKE


def aggregate(
    flags: Sequence[str],
    analysis: Optional[ModelAnalysis],
    model_available: bool,
) -> TrustAssessment:
    """
    Builds the final assessment.

    With `model_available`, `analysis` is the model's answer: it is capped and
    blended, and its verdict is final. Otherwise `analysis` is the
    metadata-only fallback: only its verdict cap applies, it is kept as
    `fallback_analysis`, and the verdict comes from the score thresholds.
    """
    ordered = dedupe_flags(flags)
    if not model_available and FLAG_MODEL_UNAVAILABLE not in ordered:
        ordered.append(FLAG_MODEL_UNAVAILABLE)

    rule_score = apply_rule_penalties(ordered)
    if model_available and analysis is not None:
        score = clamp(apply_model_analysis(rule_score, analysis))
        verdict = analysis.verdict
    else:
        score = rule_score
        if analysis is not None:
            score = apply_verdict_cap(score, analysis.verdict)
        score = clamp(score)
        verdict = verdict_from_score(score)

    logger.info(
        f"[SCORE] rules={rule_score} → final={score}, verdict={verdict.value}, "
        f"flags={ordered}, model={'yes' if model_available else 'no'}"
    )

    return TrustAssessment(
        score=score,
        flags=ordered,
        verdict=verdict,
        model_analysis=analysis if model_available else None,
        fallback_analysis=analysis if not model_available else None,
    )


def no_media_assessment() -> TrustAssessment:
    return TrustAssessment(score=0, flags=[FLAG_NO_MEDIA], verdict=Verdict.FAKE)


def recommend_action(
    assessment: TrustAssessment,
    auto_approve: Optional[int] = None,
    human_review: Optional[int] = None,
) -> RecommendedAction:
    """Maps an assessment onto the downstream gate."""
    auto_approve = settings.auto_approve_threshold if auto_approve is None else auto_approve
    human_review = settings.human_review_threshold if human_review is None else human_review

    if assessment.score >= auto_approve and assessment.verdict == Verdict.AUTHENTIC:
        return RecommendedAction.AUTO_APPROVE
    if assessment.score >= human_review:
        return RecommendedAction.HUMAN_REVIEW
    return RecommendedAction.REJECT
