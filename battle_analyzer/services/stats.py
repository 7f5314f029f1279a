"""Derived battle statistics.

All functions here are pure: they read parsed results or history entries and
return new values without touching shared state.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional, Union

from battle_analyzer.schemas import AnalysisResult, HistoryEntry

Number = Union[int, float]

_POWER_SUFFIXES = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}
_POWER_PATTERN = re.compile(r"^([0-9]*\.?[0-9]+)\s*([kmb])?$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class DerivedStats:
    """Comparative ratios for one battle, kept at full precision."""

    kill_ratio: float = 0.0
    damage_efficiency: float = 0.0
    troop_efficiency: float = 0.0
    power_difference: int = 0

    def rounded(self) -> "DerivedStats":
        """Two-decimal copy for display; chain further arithmetic on ``self``."""
        return DerivedStats(
            kill_ratio=round(self.kill_ratio, 2),
            damage_efficiency=round(self.damage_efficiency, 2),
            troop_efficiency=round(self.troop_efficiency, 2),
            power_difference=self.power_difference,
        )

    def as_dict(self) -> dict[str, Number]:
        return asdict(self)


def ratio_or_numerator(numerator: Number, denominator: Number) -> float:
    """Divide, or return the numerator itself when the denominator is not positive."""
    if denominator > 0:
        return numerator / denominator
    return float(numerator)


def parse_power(value: Any) -> int:
    """Interpret a power reading such as ``12345678``, ``"12,345,678"`` or ``"12.3M"``.

    Anything unreadable counts as zero.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if not isinstance(value, str):
        return 0
    cleaned = value.replace(",", "").replace("_", "").replace(" ", "").strip()
    match = _POWER_PATTERN.match(cleaned)
    if not match:
        return 0
    number = float(match.group(1))
    suffix = match.group(2)
    if suffix:
        number *= _POWER_SUFFIXES[suffix.lower()]
    return int(number)


def _num(value: Optional[Number]) -> Number:
    return value or 0


def compute_stats(result: AnalysisResult) -> DerivedStats:
    """Derive kill ratio, damage efficiency, troop efficiency and power gap.

    Zero denominators never raise: kill ratio and damage efficiency fall back
    to the raw numerator, troop efficiency stays 0 unless both troop totals
    are known and positive.
    """
    casualties = result.casualties
    player_losses = opponent_losses = 0
    if casualties is not None:
        player_losses = _num(casualties.player.killed if casualties.player else None)
        opponent_losses = _num(casualties.opponent.killed if casualties.opponent else None)

    kill_ratio = 0.0
    if casualties is not None:
        kill_ratio = ratio_or_numerator(opponent_losses, player_losses)

    damage_efficiency = 0.0
    if result.damage is not None:
        dealt = _num(result.damage.dealt.total if result.damage.dealt else None)
        received = _num(result.damage.received.total if result.damage.received else None)
        damage_efficiency = ratio_or_numerator(dealt, received)

    troop_efficiency = 0.0
    if result.troops is not None:
        player_total = _num(result.troops.player.total if result.troops.player else None)
        opponent_total = _num(result.troops.opponent.total if result.troops.opponent else None)
        if player_total > 0 and opponent_total > 0:
            player_loss_rate = player_losses / player_total
            troop_efficiency = (opponent_losses / opponent_total) / (player_loss_rate or 1)

    power_difference = 0
    player_power = result.player.power if result.player else None
    opponent_power = result.opponent.power if result.opponent else None
    if player_power not in (None, "") and opponent_power not in (None, ""):
        power_difference = parse_power(player_power) - parse_power(opponent_power)

    return DerivedStats(
        kill_ratio=float(kill_ratio),
        damage_efficiency=float(damage_efficiency),
        troop_efficiency=float(troop_efficiency),
        power_difference=power_difference,
    )


@dataclass(frozen=True, slots=True)
class BattleComparison:
    """Difference between two history entries (``current`` minus ``previous``)."""

    damage_dealt_diff: Number
    damage_received_diff: Number
    kills_diff: Number
    outcome_change: bool
    improvement: bool

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def compare_battles(current: HistoryEntry, previous: HistoryEntry) -> BattleComparison:
    damage_dealt_diff = current.damage_dealt - previous.damage_dealt
    kills_diff = current.enemy_killed - previous.enemy_killed
    outcome_change = current.outcome != previous.outcome
    improvement = (
        damage_dealt_diff > 0
        or kills_diff > 0
        or (current.is_victory and not previous.is_victory)
    )
    return BattleComparison(
        damage_dealt_diff=damage_dealt_diff,
        damage_received_diff=current.damage_received - previous.damage_received,
        kills_diff=kills_diff,
        outcome_change=outcome_change,
        improvement=improvement,
    )


@dataclass(frozen=True, slots=True)
class HistorySummary:
    """Aggregate counters across a history, as shown next to the battle list."""

    battles: int
    wins: int
    losses: int
    win_rate: float
    total_damage: Number
    total_kills: Number

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_history(history: Iterable[HistoryEntry]) -> HistorySummary:
    entries = list(history)
    battles = len(entries)
    wins = sum(1 for entry in entries if entry.is_victory)
    win_rate = round(wins / battles * 100, 1) if battles else 0.0
    return HistorySummary(
        battles=battles,
        wins=wins,
        losses=battles - wins,
        win_rate=win_rate,
        total_damage=sum(entry.damage_dealt for entry in entries),
        total_kills=sum(entry.enemy_killed for entry in entries),
    )


__all__ = [
    "BattleComparison",
    "DerivedStats",
    "HistorySummary",
    "compare_battles",
    "compute_stats",
    "parse_power",
    "ratio_or_numerator",
    "summarize_history",
]
