"""
Unit tests for ecotrust/evidence/scoring.py: pure functions, no I/O.
"""

import pytest

from ecotrust.config import settings
from ecotrust.evidence.constants import (
    FLAG_GPS_OUTSIDE_POLYGON,
    FLAG_MODEL_UNAVAILABLE,
    FLAG_NO_EXIF_TIME,
    FLAG_NO_GPS,
    FLAG_PHASH_SIMILAR,
)
from ecotrust.evidence.scoring import (
    aggregate,
    apply_model_analysis,
    apply_rule_penalties,
    clamp,
    dedupe_flags,
    no_media_assessment,
    recommend_action,
    verdict_from_score,
)
from ecotrust.schemas.evidence import ModelAnalysis, RecommendedAction, TrustAssessment, Verdict


def _analysis(verdict: Verdict, confidence: int) -> ModelAnalysis:
    return ModelAnalysis(verdict=verdict, confidence=confidence, reasoning="test")


# ---------------------------------------------------------------------------
# Rule penalties
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "flags, expected",
    [
        ([], 100),
        ([FLAG_NO_GPS], 70),
        ([FLAG_GPS_OUTSIDE_POLYGON], 60),
        ([FLAG_NO_EXIF_TIME], 80),
        ([FLAG_PHASH_SIMILAR], 85),
        ([FLAG_NO_GPS, FLAG_NO_EXIF_TIME], 50),
        ([FLAG_GPS_OUTSIDE_POLYGON, FLAG_NO_EXIF_TIME, FLAG_PHASH_SIMILAR], 25),
        ([FLAG_MODEL_UNAVAILABLE], 100),
    ],
)
def test_rule_penalties(flags, expected):
    assert apply_rule_penalties(flags) == expected


def test_rule_penalties_ignore_duplicates():
    assert apply_rule_penalties([FLAG_NO_GPS, FLAG_NO_GPS]) == 70


# ---------------------------------------------------------------------------
# Model verdict cap + blend
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "score, verdict, confidence, expected",
    [
        (100, Verdict.AUTHENTIC, 95, 98),    # min(110,100)=100 → 95 + 2.5 = 97.5 → 98
        (100, Verdict.AUTHENTIC, 100, 100),
        (70, Verdict.AUTHENTIC, 80, 74),     # 80*0.8 + 10 = 74
        (100, Verdict.SUSPICIOUS, 50, 55),   # 60*0.5 + 25 = 55
        (40, Verdict.SUSPICIOUS, 100, 40),
        (100, Verdict.FAKE, 90, 23),         # 20*0.9 + 5 = 23
        (50, Verdict.FAKE, 20, 44),          # 20*0.2 + 40 = 44
        (0, Verdict.FAKE, 0, 50),            # no confidence → midpoint
    ],
)
def test_apply_model_analysis(score, verdict, confidence, expected):
    assert apply_model_analysis(score, _analysis(verdict, confidence)) == expected


def test_blend_rounds_half_up():
    # 15 * 0.5 + 25 = 32.5
    assert apply_model_analysis(15, _analysis(Verdict.FAKE, 50)) == 33


# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "score, expected",
    [(100, Verdict.AUTHENTIC), (80, Verdict.AUTHENTIC), (79, Verdict.SUSPICIOUS),
     (60, Verdict.SUSPICIOUS), (59, Verdict.FAKE), (0, Verdict.FAKE)],
)
def test_verdict_from_score_defaults(score, expected):
    assert verdict_from_score(score) == expected


def test_verdict_from_score_custom_thresholds():
    assert verdict_from_score(75, auto_approve=70, human_review=40) == Verdict.AUTHENTIC
    assert verdict_from_score(45, auto_approve=70, human_review=40) == Verdict.SUSPICIOUS


def test_clamp_bounds():
    assert clamp(-15) == 0
    assert clamp(130) == 100
    assert clamp(42) == 42


def test_dedupe_flags_keeps_first_seen_order():
    assert dedupe_flags(["B", "A", "B", "", "C", "A"]) == ["B", "A", "C"]


# ---------------------------------------------------------------------------
# aggregate
# ---------------------------------------------------------------------------


def test_aggregate_scenario_a():
    assessment = aggregate([], _analysis(Verdict.AUTHENTIC, 95), model_available=True)

    assert assessment.score == 98
    assert assessment.verdict == Verdict.AUTHENTIC
    assert assessment.flags == []
    assert assessment.model_analysis.confidence == 95
    assert assessment.fallback_analysis is None


def test_aggregate_scenario_b_fallback():
    fallback = _analysis(Verdict.FAKE, 20)
    assessment = aggregate([FLAG_NO_GPS, FLAG_NO_EXIF_TIME], fallback, model_available=False)

    assert assessment.flags == [FLAG_NO_GPS, FLAG_NO_EXIF_TIME, FLAG_MODEL_UNAVAILABLE]
    # 100 - 30 - 20 = 50 → FAKE cap 20, no blend
    assert assessment.score == 20
    assert assessment.verdict == Verdict.FAKE
    assert assessment.model_analysis is None
    assert assessment.fallback_analysis == fallback


@pytest.mark.parametrize(
    "flags, fallback, score, verdict",
    [
        ([], _analysis(Verdict.AUTHENTIC, 80), 100, Verdict.AUTHENTIC),
        ([FLAG_NO_EXIF_TIME], _analysis(Verdict.AUTHENTIC, 80), 80, Verdict.AUTHENTIC),
        ([FLAG_NO_GPS], _analysis(Verdict.SUSPICIOUS, 40), 60, Verdict.SUSPICIOUS),
        ([FLAG_PHASH_SIMILAR], _analysis(Verdict.SUSPICIOUS, 40), 60, Verdict.SUSPICIOUS),
        ([FLAG_GPS_OUTSIDE_POLYGON, FLAG_NO_EXIF_TIME], _analysis(Verdict.SUSPICIOUS, 40), 40, Verdict.FAKE),
    ],
)
def test_aggregate_fallback_caps_without_blend(flags, fallback, score, verdict):
    assessment = aggregate(flags, fallback, model_available=False)

    assert assessment.score == score
    assert assessment.verdict == verdict
    assert assessment.fallback_analysis == fallback


def test_aggregate_fallback_verdict_follows_configured_thresholds(monkeypatch):
    monkeypatch.setattr(settings, "auto_approve_threshold", 90)
    monkeypatch.setattr(settings, "human_review_threshold", 70)

    assessment = aggregate([FLAG_NO_EXIF_TIME], _analysis(Verdict.AUTHENTIC, 80), model_available=False)

    assert assessment.score == 80
    assert assessment.verdict == Verdict.SUSPICIOUS


def test_aggregate_without_any_analysis_uses_thresholds():
    assessment = aggregate([FLAG_NO_EXIF_TIME], None, model_available=False)

    assert assessment.score == 80
    assert assessment.verdict == Verdict.AUTHENTIC
    assert assessment.flags == [FLAG_NO_EXIF_TIME, FLAG_MODEL_UNAVAILABLE]


def test_aggregate_model_verdict_wins_over_score():
    # Heavy penalties but the model says AUTHENTIC: verdict follows the model
    assessment = aggregate(
        [FLAG_NO_GPS, FLAG_NO_EXIF_TIME, FLAG_PHASH_SIMILAR],
        _analysis(Verdict.AUTHENTIC, 100),
        model_available=True,
    )
    assert assessment.score == 45
    assert assessment.verdict == Verdict.AUTHENTIC


def test_aggregate_dedupes_flags():
    assessment = aggregate(
        [FLAG_PHASH_SIMILAR, FLAG_PHASH_SIMILAR, FLAG_MODEL_UNAVAILABLE],
        None,
        model_available=False,
    )
    assert assessment.flags == [FLAG_PHASH_SIMILAR, FLAG_MODEL_UNAVAILABLE]
    assert assessment.score == 85


@pytest.mark.parametrize("confidence", [0, 1, 33, 50, 99, 100])
@pytest.mark.parametrize("verdict", list(Verdict))
def test_aggregate_score_always_in_bounds(verdict, confidence):
    worst = [FLAG_NO_GPS, FLAG_GPS_OUTSIDE_POLYGON, FLAG_NO_EXIF_TIME, FLAG_PHASH_SIMILAR]
    for flags in ([], worst):
        assessment = aggregate(flags, _analysis(verdict, confidence), model_available=True)
        assert 0 <= assessment.score <= 100


def test_no_media_assessment():
    assessment = no_media_assessment()
    assert (assessment.score, assessment.flags, assessment.verdict) == (0, ["NO_MEDIA"], Verdict.FAKE)


# ---------------------------------------------------------------------------
# recommend_action
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "score, verdict, expected",
    [
        (98, Verdict.AUTHENTIC, RecommendedAction.AUTO_APPROVE),
        (98, Verdict.SUSPICIOUS, RecommendedAction.HUMAN_REVIEW),
        (65, Verdict.AUTHENTIC, RecommendedAction.HUMAN_REVIEW),
        (44, Verdict.FAKE, RecommendedAction.REJECT),
        (44, Verdict.AUTHENTIC, RecommendedAction.REJECT),
    ],
)
def test_recommend_action(score, verdict, expected):
    assessment = TrustAssessment(score=score, flags=[], verdict=verdict)
    assert recommend_action(assessment) == expected
