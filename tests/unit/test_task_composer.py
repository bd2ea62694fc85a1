from __future__ import annotations

from glowplan.analysis import PhotoAnalysis
from glowplan.planning.composer import (
    CONTENT_TABLE,
    GENERIC_TEMPLATES,
    compose_tasks,
    interpolation_fields,
)
from glowplan.planning.focus import FocusCandidate


def _candidate(key: str, notes: str = "Some notes.") -> FocusCandidate:
    return FocusCandidate(metric_key=key, display_title=key, category="Test", score=3.0, notes=notes)


def test_every_builtin_key_has_three_templates() -> None:
    assert set(CONTENT_TABLE) == {
        "Skin Texture",
        "Eyebrow Density",
        "Facial Harmony",
        "Lighting Quality",
        "Makeup Suitability",
        "Pose Naturalness",
        "Color Harmony",
    }
    assert all(len(templates) == 3 for templates in CONTENT_TABLE.values())
    assert len(GENERIC_TEMPLATES) == 3


def test_known_key_uses_dedicated_content(analysis) -> None:
    drafts = compose_tasks(_candidate("Lighting Quality"), analysis)

    assert [draft.title for draft in drafts] == [
        "Find your window zone",
        "Five-minute test shoot",
        "Travel-ready lighting kit",
    ]
    assert drafts[0].timeframe == "Today"
    assert drafts[0].product_suggestions == ("Search 'window lighting portrait guide'",)


def test_unknown_key_falls_back_to_generic_content(analysis) -> None:
    drafts = compose_tasks(_candidate("Hair Volume", notes="Flat at the roots."), analysis)

    assert [draft.title for draft in drafts] == [
        "Clarify the issue",
        "Daily adjustment",
        "End-of-week reflection",
    ]
    assert [draft.timeframe for draft in drafts] == ["Today", "Daily", "End of week"]
    assert "Flat at the roots." in drafts[0].body
    assert drafts[0].product_suggestions == ("Search 'how to audit hair volume'",)


def test_descriptors_are_interpolated_lowercased(analysis) -> None:
    drafts = compose_tasks(_candidate("Facial Harmony"), analysis)

    assert "Search 'best selfie angles for oval face'" in drafts[0].product_suggestions


def test_missing_descriptors_use_fallback_wording() -> None:
    bare = PhotoAnalysis()
    for key in list(CONTENT_TABLE) + ["Unknown Metric"]:
        for draft in compose_tasks(_candidate(key), bare):
            rendered = " ".join([draft.title, draft.timeframe, draft.body, *draft.product_suggestions])
            assert "{" not in rendered
            assert "}" not in rendered

    fields = interpolation_fields(_candidate("Makeup Suitability"), bare)
    assert fields["face_shape"] == "your face shape"
    assert fields["undertone"] == "your undertone"
    assert fields["makeup_style"] == "natural"
    assert fields["palette"] == "seasonal"
    assert fields["best_color"] == "your best color"
    assert fields["avoid_color"] == "a high-contrast shade"


def test_notes_collapse_blank_lines(analysis) -> None:
    fields = interpolation_fields(_candidate("Skin Texture", notes="First.\n\nSecond."), analysis)

    assert fields["notes"] == "First.\nSecond."
    assert fields["best_color"] == "Coral"
    assert fields["top_colors"] == "Coral, Teal, Cream"
