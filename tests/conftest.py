from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from glowplan.analysis import PhotoAnalysis  # noqa: E402
from glowplan.memory.store import RoadmapStore  # noqa: E402
from glowplan.planning.progression import ProgressionController  # noqa: E402
from glowplan.reminders import RoadmapEvent  # noqa: E402

START = datetime(2025, 11, 3, 9, 30, tzinfo=timezone.utc)


@dataclass(slots=True)
class FakeClock:
    """Controllable clock handed to the controller."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: Any) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@dataclass(slots=True)
class RecordingSink:
    """Reminder sink that keeps every event it receives."""

    events: List[RoadmapEvent]

    def __call__(self, event: RoadmapEvent) -> None:
        self.events.append(event)


def analysis_payload(**overrides: Any) -> Dict[str, Any]:
    """Provider-shaped (camelCase) analysis with three clearly weak metrics."""
    payload: Dict[str, Any] = {
        "id": "scan-1",
        "faceShape": "Oval",
        "skinUndertone": "Warm",
        "faceFullnessDescriptor": "Soft",
        "facialHarmonyScore": 8.5,
        "featureBalanceDescription": "Balanced proportions.",
        "lightingQuality": 4.0,
        "lightingFeedback": "Harsh overhead light flattens features.",
        "colorHarmony": 8.0,
        "bestColors": ["Coral", "Teal", "Cream"],
        "avoidColors": ["Neon Yellow"],
        "seasonalPalette": "Spring",
        "makeupSuitability": 9.0,
        "makeupStyle": "Natural",
        "makeupFeedback": "Works well.",
        "skinTextureScore": 3.0,
        "skinTextureDescription": "Visible texture on cheeks.",
        "skinConcernHighlights": ["Enlarged pores", "Dry patches"],
        "eyebrowDensityScore": 5.5,
        "eyebrowFeedback": "Sparse tails.",
        "poseNaturalness": 8.2,
        "poseFeedback": "Relaxed posture.",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def make_analysis() -> Callable[..., PhotoAnalysis]:
    """Build a validated analysis from the default payload plus overrides."""

    def _make(**overrides: Any) -> PhotoAnalysis:
        return PhotoAnalysis.model_validate(analysis_payload(**overrides))

    return _make


@pytest.fixture()
def analysis(make_analysis: Callable[..., PhotoAnalysis]) -> PhotoAnalysis:
    return make_analysis()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def events() -> List[RoadmapEvent]:
    return []


@pytest.fixture()
def store(tmp_path: Path) -> Iterator[RoadmapStore]:
    with RoadmapStore(tmp_path / "glowplan.sqlite") as roadmap_store:
        yield roadmap_store


@pytest.fixture()
def controller(store: RoadmapStore, clock: FakeClock, events: List[RoadmapEvent]) -> ProgressionController:
    return ProgressionController(store, clock=clock, sinks=[RecordingSink(events)])


@pytest.fixture()
def write_analysis(tmp_path: Path) -> Callable[..., Path]:
    """Write a provider-shaped analysis JSON file and return its path."""
    counter = {"value": 0}

    def _write(**overrides: Any) -> Path:
        counter["value"] += 1
        path = tmp_path / f"analysis-{counter['value']}.json"
        path.write_text(json.dumps(analysis_payload(**overrides)), encoding="utf-8")
        return path

    return _write
