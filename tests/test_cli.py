"""
Tests for the operator CLI (ecotrust/__main__.py).

Runs the real pipeline against temp files with the vision model disabled.
"""

import json
from unittest.mock import patch

from ecotrust.__main__ import build_parser, main
from tests.conftest import make_jpeg

SITE_GEOJSON = {
    "type": "Feature",
    "geometry": {
        "type": "Polygon",
        "coordinates": [[[77.5, 12.9], [77.7, 12.9], [77.7, 13.0], [77.5, 13.0], [77.5, 12.9]]],
    },
}


def test_parser_defaults():
    args = build_parser().parse_args(["--project", "PRJ-001", "a.jpg"])
    assert args.kind == "periodic"
    assert args.prior == []
    assert args.images == ["a.jpg"]


def test_cli_scores_and_stores(tmp_path, capsys):
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(make_jpeg())
    fence = tmp_path / "site.geojson"
    fence.write_text(json.dumps(SITE_GEOJSON))
    out_dir = tmp_path / "out"

    with patch("ecotrust.__main__.build_vision_model", return_value=None):
        code = main([
            "--project", "PRJ-001",
            "--geofence", str(fence),
            "--out", str(out_dir),
            str(photo),
        ])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["assessment"]["flags"] == ["MODEL_UNAVAILABLE"]
    assert payload["assessment"]["score"] == 100
    assert payload["recommended_action"] == "AUTO_APPROVE"
    stored = list(out_dir.rglob("*.jpeg"))
    assert len(stored) == 1


def test_cli_without_images_reports_no_media(tmp_path, capsys):
    with patch("ecotrust.__main__.build_vision_model", return_value=None):
        code = main(["--project", "PRJ-001", "--out", str(tmp_path)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["assessment"]["flags"] == ["NO_MEDIA"]
    assert payload["recommended_action"] == "REJECT"


def test_cli_corrupt_image_exits_nonzero(tmp_path):
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"not an image")

    with patch("ecotrust.__main__.build_vision_model", return_value=None):
        assert main(["--project", "PRJ-001", "--out", str(tmp_path / "out"), str(bad)]) == 2


def test_cli_missing_file_exits_nonzero(tmp_path):
    assert main(["--project", "PRJ-001", str(tmp_path / "missing.jpg")]) == 1
