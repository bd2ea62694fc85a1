from __future__ import annotations

import json
import math

import pytest

from glowplan.analysis import AnalysisError, PhotoAnalysis, load_analysis


def test_camel_and_snake_case_keys_are_accepted() -> None:
    camel = PhotoAnalysis.model_validate({"skinTextureScore": 4.5, "faceShape": "Heart"})
    snake = PhotoAnalysis.model_validate({"skin_texture_score": 4.5, "face_shape": "Heart"})

    assert camel.skin_texture_score == snake.skin_texture_score == 4.5
    assert camel.face_shape == snake.face_shape == "Heart"


def test_nulls_and_junk_are_coerced() -> None:
    analysis = PhotoAnalysis.model_validate(
        {
            "lightingQuality": None,
            "poseNaturalness": "not a number",
            "colorHarmony": math.nan,
            "eyebrowDensityScore": True,
            "makeupSuitability": "6.5",
            "lightingFeedback": None,
            "bestColors": None,
            "avoidColors": "Neon",
            "skinConcernHighlights": ["Pores", None],
            "extraMetrics": None,
            "unknownField": "ignored",
        }
    )

    assert analysis.lighting_quality == 0.0
    assert analysis.pose_naturalness == 0.0
    assert analysis.color_harmony == 0.0
    assert analysis.eyebrow_density_score == 0.0
    assert analysis.makeup_suitability == 6.5
    assert analysis.lighting_feedback == ""
    assert analysis.best_colors == []
    assert analysis.avoid_colors == ["Neon"]
    assert analysis.skin_concern_highlights == ["Pores"]
    assert analysis.extra_metrics == []
    assert analysis.face_shape is None


def test_empty_analysis_is_marked_fallback() -> None:
    empty = PhotoAnalysis.empty()

    assert empty.is_fallback
    assert empty.id is None
    assert empty.skin_texture_score == 0.0


def test_load_bare_record(write_analysis) -> None:
    analysis = load_analysis(write_analysis())

    assert analysis.id == "scan-1"
    assert analysis.skin_texture_score == 3.0
    assert not analysis.is_fallback


def test_load_wrapped_record(tmp_path) -> None:
    path = tmp_path / "wrapped.json"
    path.write_text(
        json.dumps({"id": "scan-7", "isFallback": True, "variables": {"lightingQuality": 5}}),
        encoding="utf-8",
    )

    analysis = load_analysis(path)

    assert analysis.id == "scan-7"
    assert analysis.is_fallback
    assert analysis.lighting_quality == 5.0


@pytest.mark.parametrize(
    "content",
    ["{not json", "[1, 2, 3]", json.dumps({"extraMetrics": [{"title": "no key"}]})],
)
def test_load_rejects_bad_payloads(tmp_path, content) -> None:
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(AnalysisError):
        load_analysis(path)


def test_load_missing_file(tmp_path) -> None:
    with pytest.raises(AnalysisError):
        load_analysis(tmp_path / "missing.json")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("false", False), ("true", True), (0, False), (1, True), (None, False), (False, False)],
)
def test_fallback_flag_parses_text_and_numbers(raw, expected) -> None:
    analysis = PhotoAnalysis.model_validate({"isFallback": raw})

    assert analysis.is_fallback is expected


def test_wrapped_fallback_flag_as_text(tmp_path) -> None:
    path = tmp_path / "wrapped.json"
    path.write_text(json.dumps({"isFallback": "false", "variables": {"lightingQuality": 5}}), encoding="utf-8")

    assert not load_analysis(path).is_fallback


def test_unparseable_fallback_flag_is_rejected(tmp_path) -> None:
    path = tmp_path / "flag.json"
    path.write_text(json.dumps({"isFallback": "sometimes"}), encoding="utf-8")

    with pytest.raises(AnalysisError):
        load_analysis(path)
