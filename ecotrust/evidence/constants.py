"""
Flag identifiers and rule penalties for trust scoring.

Flag strings are persisted by callers and shown to reviewers; treat them as
a stable vocabulary.
"""

FLAG_NO_MEDIA = "NO_MEDIA"
FLAG_NO_GPS = "NO_GPS"
FLAG_GPS_OUTSIDE_POLYGON = "GPS_OUTSIDE_POLYGON"
FLAG_NO_EXIF_TIME = "NO_EXIF_TIME"
FLAG_PHASH_SIMILAR = "PHASH_SIMILAR"
FLAG_MODEL_UNAVAILABLE = "MODEL_UNAVAILABLE"

INITIAL_SCORE = 100

# Applied in this order; each fires when its flag is present.
RULE_PENALTIES = (
    (FLAG_NO_GPS, 30),
    (FLAG_GPS_OUTSIDE_POLYGON, 40),
    (FLAG_NO_EXIF_TIME, 20),
    (FLAG_PHASH_SIMILAR, 15),
)

# Model verdict caps (applied before the confidence blend)
FAKE_SCORE_CAP = 20
SUSPICIOUS_SCORE_CAP = 60
AUTHENTIC_SCORE_BONUS = 10

# Score the confidence blend pulls uncertain verdicts toward
BLEND_MIDPOINT = 50

# Metadata-only fallback when the vision model is unavailable
CRITICAL_FLAGS = frozenset({FLAG_NO_GPS, FLAG_GPS_OUTSIDE_POLYGON, FLAG_PHASH_SIMILAR})
FALLBACK_CRITICAL_CONFIDENCE = 40
FALLBACK_NO_METADATA_CONFIDENCE = 20
FALLBACK_CLEAN_CONFIDENCE = 80

# Tolerant parse defaults for the model's three-line answer
PARSE_DEFAULT_CONFIDENCE = 50
PARSE_DEFAULT_REASONING = "unparseable"
