from ecotrust.schemas.evidence import (
    MediaItem,
    ModelAnalysis,
    Provenance,
    RawImage,
    RecommendedAction,
    StoredObject,
    SubmissionContext,
    SubmissionKind,
    SubmissionResult,
    TrustAssessment,
    Verdict,
    VisionOutcome,
)

__all__ = [
    "MediaItem",
    "ModelAnalysis",
    "Provenance",
    "RawImage",
    "RecommendedAction",
    "StoredObject",
    "SubmissionContext",
    "SubmissionKind",
    "SubmissionResult",
    "TrustAssessment",
    "Verdict",
    "VisionOutcome",
]
