from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Verdict(str, Enum):
    AUTHENTIC = "AUTHENTIC"
    SUSPICIOUS = "SUSPICIOUS"
    FAKE = "FAKE"


class SubmissionKind(str, Enum):
    BASELINE = "baseline"
    PERIODIC = "periodic"
    VERIFICATION = "verification"   # third-party verification visit


class RecommendedAction(str, Enum):
    AUTO_APPROVE = "AUTO_APPROVE"
    HUMAN_REVIEW = "HUMAN_REVIEW"
    REJECT = "REJECT"


class RawImage(BaseModel):
    """One image exactly as submitted."""
    model_config = ConfigDict(frozen=True)

    data: bytes
    filename: str = "evidence.jpg"


class Provenance(BaseModel):
    """Capture facts embedded in the image. Every field is independently optional."""
    model_config = ConfigDict(frozen=True)

    captured_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    make: Optional[str] = None
    model: Optional[str] = None

    @property
    def has_gps(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def as_exif_summary(self) -> dict:
        """Flat view handed to the vision model and logs."""
        return {
            "DateTimeOriginal": self.captured_at.isoformat() if self.captured_at else None,
            "GPSLatitude": self.latitude,
            "GPSLongitude": self.longitude,
            "Make": self.make,
            "Model": self.model,
        }


class StoredObject(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    key: str


class MediaItem(BaseModel):
    """A fingerprinted, stamped and stored image. Raw bytes are never kept."""
    model_config = ConfigDict(frozen=True)

    sha256: str
    phash: str
    provenance: Provenance
    storage_url: Optional[str] = None
    storage_key: Optional[str] = None
    stamped: bool = False


class SubmissionContext(BaseModel):
    """Caller-owned facts needed to judge a submission. Read-only to the pipeline."""
    model_config = ConfigDict(frozen=True)

    project_id: str
    submission_id: Optional[str] = None
    geofence: Optional[Tuple[Tuple[float, float], ...]] = Field(
        None, description="Single ring of (lon, lat) vertices, closed implicitly"
    )
    prior_hashes: Tuple[str, ...] = Field(
        (), description="Perceptual hashes of prior submissions, most recent first"
    )
    kind: SubmissionKind = SubmissionKind.PERIODIC
    expected_location: Optional[str] = None

    @field_validator("geofence")
    @classmethod
    def _ring_has_area(cls, ring):
        if ring is None:
            return ring
        distinct = {tuple(v) for v in ring}
        if len(distinct) < 3:
            raise ValueError("geofence needs at least 3 distinct vertices")
        return ring


class ModelAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    confidence: int = Field(ge=0, le=100)
    reasoning: str


class VisionOutcome(BaseModel):
    """
    Result of the visual-authenticity step.

    `available` is False when the model could not answer; `analysis` then
    holds the metadata-only fallback and `error` says why.
    """
    model_config = ConfigDict(frozen=True)

    available: bool
    analysis: ModelAnalysis
    error: Optional[str] = None
    attempts: int = 0


class TrustAssessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: int = Field(ge=0, le=100)
    flags: List[str] = Field(default_factory=list)
    verdict: Verdict
    model_analysis: Optional[ModelAnalysis] = None
    fallback_analysis: Optional[ModelAnalysis] = None


class SubmissionResult(BaseModel):
    """The assessment plus the storage references of the stamped evidence."""
    model_config = ConfigDict(frozen=True)

    assessment: TrustAssessment
    media: List[MediaItem] = Field(default_factory=list)
