"""Static coaching content that turns a focus area into concrete tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping

from ..analysis import PhotoAnalysis
from .focus import FocusCandidate, list_summary

__all__ = [
    "CONTENT_TABLE",
    "GENERIC_TEMPLATES",
    "TaskDraft",
    "TaskTemplate",
    "compose_tasks",
    "interpolation_fields",
]


@dataclass(frozen=True, slots=True)
class TaskDraft:
    """A generated task before it is attached to a week."""

    title: str
    timeframe: str
    body: str
    product_suggestions: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TaskTemplate:
    """Task copy with ``{field}`` placeholders filled from the analysis."""

    title: str
    timeframe: str
    body: str
    suggestions: tuple[str, ...] = ()

    def render(self, fields: Mapping[str, str]) -> TaskDraft:
        return TaskDraft(
            title=self.title.format_map(fields),
            timeframe=self.timeframe.format_map(fields),
            body=self.body.format_map(fields),
            product_suggestions=tuple(item.format_map(fields) for item in self.suggestions),
        )


CONTENT_TABLE: Dict[str, tuple[TaskTemplate, ...]] = {
    "Skin Texture": (
        TaskTemplate(
            title="Daily texture reset",
            timeframe="Morning & night",
            body=(
                "Morning:\n"
                "- Cleanse with lukewarm water and a gel cleanser.\n"
                "- Pat in a hydrating toner, then apply vitamin C or antioxidant serum.\n"
                "Night:\n"
                "- Double cleanse, then swipe a 0.5%-1% polyhydroxy or lactic acid toner over uneven patches.\n"
                "- Seal with a ceramide-rich moisturizer so the barrier stays calm.\n"
                "Why it matters: {notes}"
            ),
            suggestions=(
                "Search 'polyhydroxy acid toner sensitive skin'",
                "Search 'ceramide barrier repair moisturizer'",
            ),
        ),
        TaskTemplate(
            title="Twice-weekly resurfacing night",
            timeframe="2 evenings per week",
            body=(
                "Choose two evenings spaced three nights apart. After cleansing, apply a gentle BHA or "
                "enzyme mask for 8-10 minutes, rinse, mist with thermal water, and finish with a sleeping "
                "mask. Expect noticeably smoother texture within 2-3 weeks."
            ),
            suggestions=(
                "Search 'enzyme mask for dull skin'",
                "Search 'overnight sleeping mask hydration'",
            ),
        ),
        TaskTemplate(
            title="Sunday glow check-in",
            timeframe="Weekly wrap",
            body=(
                "Shoot a selfie in consistent window light, compare it to last week, and jot quick notes "
                "on any rough patches. End with a two-minute upward massage using facial oil to boost "
                "circulation and keep progress rolling."
            ),
            suggestions=("Search 'facial massage oil techniques'",),
        ),
    ),
    "Eyebrow Density": (
        TaskTemplate(
            title="Daily brow refresh",
            timeframe="Every morning",
            body=(
                "Brush brows upward with a spoolie, fill sparse gaps using hair-like strokes, then set "
                "with a tinted gel. Highlight the brow bone with a cream stick so the arch pops on camera."
            ),
            suggestions=(
                "Search 'tinted brow gel before and after'",
                "Search 'brow pencil hairlike strokes tutorial'",
            ),
        ),
        TaskTemplate(
            title="Weekly brow mapping",
            timeframe="Every Sunday",
            body=(
                "Use a brow pencil to mark the start, arch, and tail before tweezing. Trim only hairs "
                "that fall clearly outside the guide so density keeps improving instead of thinning."
            ),
            suggestions=("Search 'how to map brows at home'",),
        ),
        TaskTemplate(
            title="Nightly growth ritual",
            timeframe="Nightly",
            body=(
                "Massage a drop of castor or peptide serum into each brow for 60 seconds. Pair it with "
                "a five-minute gentle forehead gua sha pass to stimulate circulation."
            ),
            suggestions=(
                "Search 'castor oil brow growth routine'",
                "Search 'gua sha for eyebrows tutorial'",
            ),
        ),
    ),
    "Facial Harmony": (
        TaskTemplate(
            title="Angle practice session",
            timeframe="Three sessions",
            body=(
                "Record a 60-second selfie video turning chin down 5 degrees, up 5 degrees, and toward "
                "your best side. Pause where cheekbones catch light evenly and save screenshots for "
                "pose references."
            ),
            suggestions=(
                "Search 'best selfie angles for {face_shape} face'",
                "Search 'triangle lighting selfie setup'",
            ),
        ),
        TaskTemplate(
            title="Framing refresh",
            timeframe="Mid-week",
            body=(
                "Adjust your hair part one finger toward the fuller side, add crown volume with dry "
                "shampoo, and tuck one side to show more jawline. These tweaks counter {fullness} "
                "features."
            ),
            suggestions=(
                "Search 'dry shampoo for lift tutorial'",
                "Search 'face framing layers styling tips'",
            ),
        ),
        TaskTemplate(
            title="Highlight & contour drill",
            timeframe="Weekend",
            body=(
                "Map concealer above cheekbones and blend a soft contour under them, stopping "
                "mid-cheek. Snap before/after photos to confirm the planes look even without harsh lines."
            ),
            suggestions=(
                "Search 'subtle cream contour tutorial'",
                "Search 'highlight placement for symmetry'",
            ),
        ),
    ),
    "Lighting Quality": (
        TaskTemplate(
            title="Find your window zone",
            timeframe="Today",
            body=(
                "Test three window spots at the same time of day. Hold your phone front-facing, note "
                "where eye whites look brightest, and mark the floor with painter's tape for future shoots."
            ),
            suggestions=("Search 'window lighting portrait guide'",),
        ),
        TaskTemplate(
            title="Five-minute test shoot",
            timeframe="Every other day",
            body=(
                "Set a timer, capture five poses rotating 45 degrees each shot. Review which direction "
                "kills shadows under the chin. Keep the best clip to reuse for future content."
            ),
            suggestions=(
                "Search 'self portrait lighting tips at home'",
                "Search 'phone reflector diy tutorial'",
            ),
        ),
        TaskTemplate(
            title="Travel-ready lighting kit",
            timeframe="Before next outing",
            body=(
                "Pack a foldable white napkin or mini foam board as a bounce card plus a pocket-sized "
                "clip light. Practice clipping it slightly above eye level to replicate your ideal "
                "window glow anywhere."
            ),
            suggestions=(
                "Search 'portable selfie light comparison'",
                "Search 'foam board bounce card diy'",
            ),
        ),
    ),
    "Makeup Suitability": (
        TaskTemplate(
            title="Prep & base upgrade",
            timeframe="Each makeup day",
            body=(
                "Layer hydrating primer on glow zones, color-correct discoloration, then stipple "
                "foundation with a damp sponge. Finish with a sheer powder only on the T-zone to keep "
                "highlights alive."
            ),
            suggestions=(
                "Search 'color corrector for {undertone} skin'",
                "Search 'hydrating primer vs mattifying comparison'",
            ),
        ),
        TaskTemplate(
            title="Palette sync test",
            timeframe="Mid-week",
            body=(
                "Create two monochrome looks: one in {best_color} and one in {avoid_color}. Photograph "
                "both in daylight to see which brightens your complexion."
            ),
            suggestions=(
                "Search 'monochrome makeup tutorial {makeup_style}'",
                "Search 'best blush for {undertone} undertone'",
            ),
        ),
        TaskTemplate(
            title="Weekend rehearsal",
            timeframe="Weekend",
            body=(
                "Recreate your go-to look on camera in real time, narrating each step. Watching it back "
                "reveals where blending or shade tweaks will make the finish more camera-friendly."
            ),
            suggestions=(
                "Search 'soft glam makeup practice routine'",
                "Search 'everyday makeup tutorial {makeup_style}'",
            ),
        ),
    ),
    "Pose Naturalness": (
        TaskTemplate(
            title="Micro-expression practice",
            timeframe="Three sessions",
            body=(
                "Film a 90-second clip cycling through soft smile, smize, and relaxed jaw. Count to "
                "three between each shift. Rewatch at half speed to memorize which looks most natural."
            ),
            suggestions=(
                "Search 'posing micro expression drill'",
                "Search 'smize practice tips'",
            ),
        ),
        TaskTemplate(
            title="Posture anchor",
            timeframe="Daily",
            body=(
                "Stand against a wall, engage core, roll shoulders back, and lengthen neck for 30 "
                "seconds. Replicate the stance in front of a mirror holding your phone to lock in "
                "muscle memory."
            ),
            suggestions=(
                "Search 'posture exercises for photos'",
                "Search 'standing pose tips for beginners'",
            ),
        ),
        TaskTemplate(
            title="Five-shot routine",
            timeframe="Before every photo",
            body=(
                "Set your camera timer for bursts of five. Flow through chin down, chin out, "
                "over-shoulder, hand-to-face, and laugh shot. Keep the best frame and note which angles "
                "felt effortless."
            ),
            suggestions=(
                "Search 'self timer posing sequence'",
                "Search 'hand placement pose ideas'",
            ),
        ),
    ),
    "Color Harmony": (
        TaskTemplate(
            title="Closet pull",
            timeframe="Today",
            body=(
                "Pull three items in {top_colors} and steam them so they are ready. Hang them at the "
                "front of your closet for easy access whenever you shoot content."
            ),
            suggestions=(
                "Search 'outfit ideas {palette} palette'",
                "Search 'color palette wardrobe edit tips'",
            ),
        ),
        TaskTemplate(
            title="Two-tone outfit lab",
            timeframe="Twice this week",
            body=(
                "Style outfits that layer one hero color with a neutral anchor. Snap mirror photos and "
                "compare how each combo lifts your complexion compared to last week's go-to looks."
            ),
            suggestions=(
                "Search 'color blocking {palette} palette'",
                "Search 'neutral base outfit ideas women'",
            ),
        ),
        TaskTemplate(
            title="Shoot-ready flatlay",
            timeframe="Weekend",
            body=(
                "Plan next week's outfit by arranging clothes on the bed, adding jewelry and lipstick. "
                "Take a flatlay photo to reference before you get dressed, ensuring everything stays "
                "on palette."
            ),
            suggestions=(
                "Search 'flatlay outfit planning tips'",
                "Search 'wardrobe planner template'",
            ),
        ),
    ),
}

GENERIC_TEMPLATES: tuple[TaskTemplate, ...] = (
    TaskTemplate(
        title="Clarify the issue",
        timeframe="Today",
        body=(
            "Write down what you notice most: {notes}. Snap a photo capturing the issue so you can "
            "compare progress halfway through the week."
        ),
        suggestions=("Search 'how to audit {focus}'",),
    ),
    TaskTemplate(
        title="Daily adjustment",
        timeframe="Daily",
        body=(
            "Dedicate five focused minutes each day to a corrective habit tied to {focus}. Track it "
            "in your notes app to reinforce consistency."
        ),
        suggestions=("Search 'daily habit tracker app ideas'",),
    ),
    TaskTemplate(
        title="End-of-week reflection",
        timeframe="End of week",
        body=(
            "Review your progress photos and jot what improved, what held you back, and one tweak to "
            "try next week. Keeping receipts keeps momentum high."
        ),
        suggestions=("Search 'weekly reflection template aesthetic'",),
    ),
)


def _lower_or(value: str | None, fallback: str) -> str:
    text = (value or "").strip()
    return (text or fallback).lower()


def interpolation_fields(candidate: FocusCandidate, analysis: PhotoAnalysis) -> Dict[str, str]:
    """Every placeholder the content table may use, each with a literal fallback."""
    notes = candidate.notes.replace("\n\n", "\n").strip()
    return {
        "notes": notes,
        "focus": _lower_or(candidate.display_title, candidate.metric_key),
        "face_shape": _lower_or(analysis.face_shape, "your face shape"),
        "fullness": _lower_or(analysis.face_fullness_descriptor, "softer"),
        "undertone": _lower_or(analysis.skin_undertone, "your undertone"),
        "makeup_style": _lower_or(analysis.makeup_style, "natural"),
        "palette": _lower_or(analysis.seasonal_palette, "seasonal"),
        "best_color": list_summary(analysis.best_colors, limit=1, fallback="your best color"),
        "avoid_color": list_summary(analysis.avoid_colors, limit=1, fallback="a high-contrast shade"),
        "top_colors": list_summary(analysis.best_colors, limit=3, fallback="your top colors"),
    }


def compose_tasks(candidate: FocusCandidate, analysis: PhotoAnalysis) -> List[TaskDraft]:
    """Render the three tasks for ``candidate``; unknown keys get the generic template."""
    templates = CONTENT_TABLE.get(candidate.metric_key, GENERIC_TEMPLATES)
    fields = interpolation_fields(candidate, analysis)
    return [template.render(fields) for template in templates]
