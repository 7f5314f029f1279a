"""Letter grades for derived battle statistics."""

from __future__ import annotations

from dataclasses import dataclass

from .stats import DerivedStats

# (minimum value, points) per ratio, checked top-down.
KILL_RATIO_POINTS = ((2.0, 30), (1.0, 20), (0.5, 10))
DAMAGE_EFFICIENCY_POINTS = ((2.0, 30), (1.0, 20), (0.5, 10))
TROOP_EFFICIENCY_POINTS = ((2.0, 40), (1.0, 25), (0.5, 15))

# (minimum score, band, label, color), checked top-down; F is the floor.
GRADE_BANDS = (
    (80, "S", "Exceptional", "#ffd700"),
    (65, "A", "Excellent", "#4ade80"),
    (50, "B", "Good", "#60a5fa"),
    (35, "C", "Average", "#f7c548"),
    (20, "D", "Below Average", "#fb923c"),
)
FLOOR_BAND = ("F", "Needs Work", "#ef4444")


@dataclass(frozen=True, slots=True)
class Grade:
    band: str
    label: str
    score: int
    color: str

    def as_dict(self) -> dict[str, object]:
        return {
            "band": self.band,
            "label": self.label,
            "score": self.score,
            "color": self.color,
        }


def _points(value: float, thresholds: tuple[tuple[float, int], ...]) -> int:
    for minimum, points in thresholds:
        if value >= minimum:
            return points
    return 0


def score_stats(stats: DerivedStats) -> int:
    """Weighted score out of 100, computed on the two-decimal display values."""
    shown = stats.rounded()
    return (
        _points(shown.kill_ratio, KILL_RATIO_POINTS)
        + _points(shown.damage_efficiency, DAMAGE_EFFICIENCY_POINTS)
        + _points(shown.troop_efficiency, TROOP_EFFICIENCY_POINTS)
    )


def grade(stats: DerivedStats) -> Grade:
    score = score_stats(stats)
    for minimum, band, label, color in GRADE_BANDS:
        if score >= minimum:
            return Grade(band=band, label=label, score=score, color=color)
    band, label, color = FLOOR_BAND
    return Grade(band=band, label=label, score=score, color=color)


__all__ = ["Grade", "grade", "score_stats"]
