"""
Central pipeline configuration.

Every tunable value lives here as a typed, documented field.
Any field can be overridden at runtime via an environment variable of the
same name (case-insensitive), e.g.:

    AUTO_APPROVE_THRESHOLD=85 python -m ecotrust ...   # stricter approvals
    export VISION_TIMEOUT_SEC=10                        # faster fallback

A `.env` file at the project root is loaded automatically.
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,   # AUTO_APPROVE_THRESHOLD == auto_approve_threshold
        extra="ignore",         # silently drop unknown env vars
    )

    # ------------------------------------------------------------------ #
    # Verdict Thresholds                                                  #
    # ------------------------------------------------------------------ #
    auto_approve_threshold: int = Field(
        80, ge=0, le=100, description="Score >= this → AUTHENTIC when no model verdict exists"
    )
    human_review_threshold: int = Field(
        60, ge=0, le=100, description="Score >= this → SUSPICIOUS when no model verdict exists"
    )

    # ------------------------------------------------------------------ #
    # Duplicate Detection                                                 #
    # ------------------------------------------------------------------ #
    phash_size: int = Field(
        8, ge=4, description="pHash side length; hash width is phash_size² bits (8 → 64-bit)"
    )
    phash_similarity_threshold: int = Field(
        6, ge=0, description="Hamming distance <= this → near-duplicate (calibrated for 64-bit pHash)"
    )
    prior_hash_window: int = Field(
        10, ge=1, description="Most-recent prior submissions compared against"
    )

    # ------------------------------------------------------------------ #
    # Visual-Authenticity Adapter                                         #
    # ------------------------------------------------------------------ #
    vision_timeout_sec: float = Field(
        20.0, gt=0, description="Bounded wait for one model call (seconds)"
    )
    vision_max_attempts: int = Field(
        2, ge=1, description="Total model attempts before falling back (2 = one retry)"
    )
    vision_retry_delay_sec: float = Field(
        0.5, ge=0, description="Pause between model attempts (seconds)"
    )

    # ------------------------------------------------------------------ #
    # Orchestrator                                                        #
    # ------------------------------------------------------------------ #
    max_concurrent_submissions: int = Field(
        4, ge=1, description="Submissions assessed in parallel by assess_many()"
    )

    # ------------------------------------------------------------------ #
    # Provenance Stamping                                                 #
    # ------------------------------------------------------------------ #
    stamp_font_ratio: float = Field(
        0.03, gt=0, description="Stamp font size as a fraction of image width"
    )
    stamp_min_font_px: int = Field(12, description="Smallest stamp font size (px)")
    stamp_padding_ratio: float = Field(
        0.02, ge=0, description="Stamp corner padding as a fraction of image width"
    )
    stamp_min_padding_px: int = Field(10, description="Smallest stamp padding (px)")
    stamp_backdrop_alpha: int = Field(
        140, ge=0, le=255, description="Opacity of the dark box behind the stamp text"
    )
    stamp_jpeg_quality: int = Field(
        90, ge=1, le=100, description="JPEG quality of the stamped artifact"
    )
    stamp_font_path: Optional[str] = Field(
        None, description="TrueType font for the stamp; Pillow's bundled font when unset"
    )

    # ------------------------------------------------------------------ #
    # Image Decoding                                                      #
    # ------------------------------------------------------------------ #
    pil_max_image_pixels: int = Field(
        50_000_000, description="PIL decompression-bomb guard (pixels)"
    )

    # ------------------------------------------------------------------ #
    # Gemini Vision Model                                                 #
    # ------------------------------------------------------------------ #
    gemini_model: str = Field(
        "gemini-1.5-flash", description="Model used for visual authenticity analysis"
    )
    gemini_http_timeout_ms: int = Field(
        30_000, description="HTTP client total timeout (ms); the adapter timeout is tighter"
    )
    gemini_max_pixels: int = Field(
        4_194_304, description="2048×2048 resize cap before upload"
    )
    gemini_jpeg_quality: int = Field(
        90, description="JPEG quality for the upload to Gemini"
    )
    gemini_temperature: float = Field(
        0.1, description="Sampling temperature for Gemini model"
    )

    # ------------------------------------------------------------------ #
    # Cloudflare R2 (S3 API)                                              #
    # ------------------------------------------------------------------ #
    r2_account_id: Optional[str] = Field(None, description="Cloudflare account ID")
    r2_access_key_id: Optional[str] = Field(None, description="R2 access key")
    r2_secret_access_key: Optional[str] = Field(None, description="R2 secret key")
    r2_bucket_name: Optional[str] = Field(None, description="Bucket for stamped evidence")
    r2_public_url: Optional[str] = Field(
        None, description="Public base URL (e.g. https://pub-xxxx.r2.dev); endpoint URL when unset"
    )

    # ------------------------------------------------------------------ #
    # Firestore Project Registry                                          #
    # ------------------------------------------------------------------ #
    firestore_projects_collection: str = Field(
        "projects", description="Collection holding project documents (geofence)"
    )
    firestore_submissions_collection: str = Field(
        "submissions", description="Collection holding past submissions (pHash history)"
    )

    @model_validator(mode="after")
    def _check_threshold_order(self) -> "Settings":
        if self.human_review_threshold > self.auto_approve_threshold:
            raise ValueError("human_review_threshold must not exceed auto_approve_threshold")
        return self

    # ------------------------------------------------------------------ #
    # Derived properties                                                  #
    # ------------------------------------------------------------------ #
    @property
    def phash_bits(self) -> int:
        return self.phash_size * self.phash_size

    @property
    def r2_endpoint_url(self) -> str:
        return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"


# Single shared instance, import this everywhere.
settings = Settings()
