"""
Visual-authenticity prompt factory.

The prompt is stateless: it takes the already-computed provenance, the
flags raised so far and the project context, and returns the full
instruction the vision model reasons over. It is provider-agnostic.
"""

import json
from typing import Sequence

from ecotrust.schemas.evidence import Provenance, SubmissionContext


def build_analysis_prompt(
    provenance: Provenance,
    flags: Sequence[str],
    context: SubmissionContext,
) -> str:
    """Returns the forensic instruction with the submission's metadata attached."""
    exif_block = json.dumps(provenance.as_exif_summary(), default=str)
    flags_block = ", ".join(flags) if flags else "None"
    project_block = json.dumps(
        {
            "projectId": context.project_id,
            "submissionType": context.kind.value,
            "expectedLocation": context.expected_location or "Unknown",
            "geofenceConfigured": bool(context.geofence),
        }
    )

    return f"""[PERSONA]
    You are an expert digital forensics analyst specializing in image authenticity verification
    for ecological restoration evidence (tree planting, mangrove and soil restoration work).

    [TASK]
    Analyze the attached photo and decide whether it is a genuine, unmanipulated field photo.
    Give a single-word verdict: AUTHENTIC, SUSPICIOUS, or FAKE.

    [WHAT TO LOOK FOR]
    1. MANIPULATION ARTIFACTS:
    * Cloning or copy-paste regions, inconsistent noise or compression between areas.
    * Signs of AI generation: waxy textures, vegetation that melts into soil, gibberish text on signs.
    * Stock-photo tells: watermarks, studio framing, overly perfect composition.

    2. LIGHTING & PHYSICS:
    * Shadows must point away from the single dominant light source.
    * Foreground illumination must match sky conditions and sun position.

    3. SETTING PLAUSIBILITY:
    * Does this look like a real outdoor site: natural soil, terrain, weathering, realistic plant growth?
    * Does the scene fit the submission type and the expected location below?
    * Indoor, studio, or screen-photographed scenes are not valid field evidence.

    [ATTACHED DATA]
    * EXIF fields (already extracted): {exif_block}
    * Trust flags already raised: {flags_block}
    * Project context: {project_block}

    Treat missing EXIF or raised flags as context, not as proof; judge the pixels.

    [OUTPUT FORMAT]
    Respond with exactly these three lines and nothing else:
    VERDICT: <AUTHENTIC|SUSPICIOUS|FAKE>
    CONFIDENCE: <integer 0-100>
    REASONING: <one or two sentences describing what you observed>
    """
