"""Typed view of the photo analysis payload consumed by the roadmap engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

__all__ = [
    "AnalysisError",
    "ExtraMetric",
    "PhotoAnalysis",
    "load_analysis",
]


class AnalysisError(ValueError):
    """Raised when an analysis payload cannot be read or validated."""


class _ProviderModel(BaseModel):
    """Lenient base: accepts camelCase or snake_case keys and ignores extras."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _coerce_score(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return score


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _coerce_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None]


class ExtraMetric(_ProviderModel):
    """Metric shipped by the provider beyond the built-in set."""

    key: str
    title: str = ""
    category: str = "General"
    score: float = 0.0
    notes: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def _score(cls, value: Any) -> float:
        return _coerce_score(value)

    @field_validator("title", "notes", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> str:
        text = _coerce_text(value).strip()
        return text or "General"


class PhotoAnalysis(_ProviderModel):
    """Scores and descriptive fields from a completed photo analysis.

    Missing or null numbers become ``0.0``, strings ``""`` and lists ``[]``;
    optional descriptors stay ``None`` so text interpolation can pick its own
    fallback wording.
    """

    id: Optional[str] = None
    is_fallback: bool = False

    face_shape: Optional[str] = None
    skin_undertone: Optional[str] = None
    eye_color: Optional[str] = None
    hair_color: Optional[str] = None
    seasonal_palette: Optional[str] = None
    face_fullness_descriptor: str = ""

    facial_harmony_score: float = 0.0
    feature_balance_description: str = ""

    lighting_quality: float = 0.0
    lighting_feedback: str = ""

    color_harmony: float = 0.0
    best_colors: List[str] = Field(default_factory=list)
    avoid_colors: List[str] = Field(default_factory=list)

    makeup_suitability: float = 0.0
    makeup_style: str = ""
    makeup_feedback: str = ""

    skin_texture_score: float = 0.0
    skin_texture_description: str = ""
    skin_concern_highlights: List[str] = Field(default_factory=list)

    eyebrow_density_score: float = 0.0
    eyebrow_feedback: str = ""

    pose_naturalness: float = 0.0
    pose_feedback: str = ""

    extra_metrics: List[ExtraMetric] = Field(default_factory=list)

    @field_validator(
        "facial_harmony_score",
        "lighting_quality",
        "color_harmony",
        "makeup_suitability",
        "skin_texture_score",
        "eyebrow_density_score",
        "pose_naturalness",
        mode="before",
    )
    @classmethod
    def _scores(cls, value: Any) -> float:
        return _coerce_score(value)

    @field_validator(
        "face_fullness_descriptor",
        "feature_balance_description",
        "lighting_feedback",
        "makeup_style",
        "makeup_feedback",
        "skin_texture_description",
        "eyebrow_feedback",
        "pose_feedback",
        mode="before",
    )
    @classmethod
    def _texts(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("best_colors", "avoid_colors", "skin_concern_highlights", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return _coerce_list(value)

    @field_validator("is_fallback", mode="before")
    @classmethod
    def _fallback_flag(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("extra_metrics", mode="before")
    @classmethod
    def _extra_metrics(cls, value: Any) -> Any:
        return value or []

    @classmethod
    def empty(cls) -> "PhotoAnalysis":
        """Degraded analysis with no usable scores."""
        return cls(is_fallback=True)


def load_analysis(path: Path | str) -> PhotoAnalysis:
    """Load an analysis JSON file.

    Accepts either the bare variables record or a wrapper carrying it under
    ``variables`` alongside ``isFallback``.
    """
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as error:
        raise AnalysisError(f"Unable to read analysis {source}: {error}") from error

    if not isinstance(payload, dict):
        raise AnalysisError(f"Analysis {source} must be a JSON object.")

    record = payload
    variables = payload.get("variables")
    if isinstance(variables, dict):
        record = dict(variables)
        for key in ("isFallback", "is_fallback", "id"):
            if key in payload and key not in record:
                record[key] = payload[key]

    try:
        return PhotoAnalysis.model_validate(record)
    except ValidationError as error:
        raise AnalysisError(f"Invalid analysis {source}: {error}") from error
