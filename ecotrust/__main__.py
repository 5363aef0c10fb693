"""
Operator CLI: score local evidence photos.

    python -m ecotrust --project PRJ-001 --geofence site.geojson photo1.jpg photo2.jpg

Stamped copies are written under --out. Gemini is used when GEMINI_API_KEY
is set; otherwise the metadata-only fallback verdict applies.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables at the very beginning
load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

from ecotrust.core.errors import StorageStageError
from ecotrust.evidence.geofence import polygon_from_geojson
from ecotrust.evidence.pipeline import SubmissionPipeline
from ecotrust.evidence.scoring import recommend_action
from ecotrust.integrations.local_storage import LocalStorage
from ecotrust.schemas.evidence import RawImage, SubmissionContext, SubmissionKind


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ecotrust", description="Score photographic field evidence.")
    parser.add_argument("images", nargs="*", help="Image files; the first is the primary image")
    parser.add_argument("--project", required=True, help="Project identifier")
    parser.add_argument("--submission", default=None, help="Submission identifier (generated when omitted)")
    parser.add_argument("--geofence", default=None, help="GeoJSON file with the project's Polygon")
    parser.add_argument("--prior", action="append", default=[], help="Prior pHash, most recent first (repeatable)")
    parser.add_argument(
        "--kind",
        choices=[k.value for k in SubmissionKind],
        default=SubmissionKind.PERIODIC.value,
    )
    parser.add_argument("--expected-location", default=None, help="Free-text location hint for the model")
    parser.add_argument("--out", default="stamped", help="Directory for stamped copies")
    return parser


def load_geofence(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return polygon_from_geojson(json.load(f))


def build_vision_model():
    if not os.getenv("GEMINI_API_KEY"):
        logger.warning("[STARTUP] GEMINI_API_KEY not set, model analysis will be unavailable")
        return None
    from ecotrust.integrations.gemini.client import GeminiVisionModel
    return GeminiVisionModel()


async def run(args) -> dict:
    images = [RawImage(data=Path(p).read_bytes(), filename=os.path.basename(p)) for p in args.images]
    context = SubmissionContext(
        project_id=args.project,
        submission_id=args.submission,
        geofence=load_geofence(args.geofence) if args.geofence else None,
        prior_hashes=tuple(args.prior),
        kind=SubmissionKind(args.kind),
        expected_location=args.expected_location,
    )

    pipeline = SubmissionPipeline(LocalStorage(args.out), vision=build_vision_model())
    result = await pipeline.assess(images, context)

    payload = result.model_dump(mode="json")
    payload["recommended_action"] = recommend_action(result.assessment).value
    return payload


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        payload = asyncio.run(run(args))
    except StorageStageError as e:
        logger.error(f"[PIPELINE] Submission aborted: {e}")
        return 2
    except (OSError, ValueError) as e:
        logger.error(f"Could not read input: {e}")
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
