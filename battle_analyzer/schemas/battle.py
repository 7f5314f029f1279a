"""
Pydantic models for parsed battle analyses and history entries.

Field names follow the camelCase keys the inference service is asked to emit
and that history stores persist, while Python code uses snake_case
attributes. Unknown keys are preserved so nothing the service reports is
silently dropped.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional, Union

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _coerce_number(value: Any) -> Optional[Union[int, float]]:
    """Accept numbers or numeric strings such as ``"1,234"``; anything else is null."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        cleaned = value.replace(",", "").replace("_", "").strip()
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
        return int(number) if number.is_integer() else number
    return None


def _coerce_number_or_zero(value: Any) -> Union[int, float]:
    number = _coerce_number(value)
    return 0 if number is None else number


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return value if isinstance(value, str) else str(value)


def _coerce_power(value: Any) -> Optional[Union[int, float, str]]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, str)):
        return value
    return None


def _mapping_or_none(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else None


def _list_or_empty(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _text_list(value: Any) -> list[str]:
    return [str(item) for item in _list_or_empty(value) if item is not None]


def _dict_or_empty(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text_or_unknown(value: Any) -> str:
    text = _coerce_text(value)
    return text if text and text.strip() else "Unknown"


def _battle_type_or_default(value: Any) -> str:
    text = _coerce_text(value)
    return text if text and text.strip() else "PVP"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _hero_item(value: Any) -> Any:
    if isinstance(value, str):
        return {"name": value}
    return value


LooseNumber = Annotated[Optional[Union[int, float]], BeforeValidator(_coerce_number)]
Count = Annotated[Union[int, float], BeforeValidator(_coerce_number_or_zero)]
LooseText = Annotated[Optional[str], BeforeValidator(_coerce_text)]
Power = Annotated[Optional[Union[int, float, str]], BeforeValidator(_coerce_power)]
TextList = Annotated[list[str], BeforeValidator(_text_list)]


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases and keeping unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class UsageInfo(BaseModel):
    """Daily quota figures reported by the proxy alongside each reply."""

    requests_today: int
    daily_limit: int
    remaining: int


class Combatant(CamelModel):
    name: LooseText = None
    power: Power = None
    alliance: LooseText = None


class UnitTroops(CamelModel):
    count: LooseNumber = None
    tier: LooseText = None


class SideTroops(CamelModel):
    infantry: Annotated[Optional[UnitTroops], BeforeValidator(_mapping_or_none)] = None
    vehicles: Annotated[Optional[UnitTroops], BeforeValidator(_mapping_or_none)] = None
    aircraft: Annotated[Optional[UnitTroops], BeforeValidator(_mapping_or_none)] = None
    total: LooseNumber = None


class Troops(CamelModel):
    player: Annotated[Optional[SideTroops], BeforeValidator(_mapping_or_none)] = None
    opponent: Annotated[Optional[SideTroops], BeforeValidator(_mapping_or_none)] = None


class DamageBreakdown(CamelModel):
    total: LooseNumber = None
    infantry: LooseNumber = None
    vehicles: LooseNumber = None
    aircraft: LooseNumber = None


class Damage(CamelModel):
    dealt: Annotated[Optional[DamageBreakdown], BeforeValidator(_mapping_or_none)] = None
    received: Annotated[Optional[DamageBreakdown], BeforeValidator(_mapping_or_none)] = None


class SideCasualties(CamelModel):
    killed: LooseNumber = None
    wounded: LooseNumber = None


class Casualties(CamelModel):
    player: Annotated[Optional[SideCasualties], BeforeValidator(_mapping_or_none)] = None
    opponent: Annotated[Optional[SideCasualties], BeforeValidator(_mapping_or_none)] = None


class Hero(CamelModel):
    name: LooseText = None
    level: LooseNumber = None
    stars: LooseNumber = None
    skills: TextList = Field(default_factory=list)
    side: LooseText = None


class Resources(CamelModel):
    gained: Annotated[dict[str, Any], BeforeValidator(_dict_or_empty)] = Field(default_factory=dict)
    lost: Annotated[dict[str, Any], BeforeValidator(_dict_or_empty)] = Field(default_factory=dict)


class AnalysisResult(CamelModel):
    """Structured (or fallback) interpretation of one battle.

    When ``parse_error`` is true only ``raw_response`` and ``notes`` carry
    information; the structured fields stay empty.
    """

    battle_type: LooseText = None
    outcome: LooseText = None
    player: Annotated[Optional[Combatant], BeforeValidator(_mapping_or_none)] = None
    opponent: Annotated[Optional[Combatant], BeforeValidator(_mapping_or_none)] = None
    troops: Annotated[Optional[Troops], BeforeValidator(_mapping_or_none)] = None
    damage: Annotated[Optional[Damage], BeforeValidator(_mapping_or_none)] = None
    casualties: Annotated[Optional[Casualties], BeforeValidator(_mapping_or_none)] = None
    heroes: Annotated[
        list[Annotated[Hero, BeforeValidator(_hero_item)]],
        BeforeValidator(_list_or_empty),
    ] = Field(default_factory=list)
    resources: Annotated[Optional[Resources], BeforeValidator(_mapping_or_none)] = None
    screenshots_analyzed: LooseNumber = None
    notes: LooseText = None
    raw_response: Optional[str] = None
    parse_error: bool = False
    usage: Optional[UsageInfo] = Field(None, alias="_usage")

    @classmethod
    def unparsed(cls, raw_text: str, usage: Optional[UsageInfo] = None) -> "AnalysisResult":
        """Fallback result for replies without a decodable JSON object."""
        return cls(
            raw_response=raw_text,
            parse_error=True,
            notes="Could not parse structured data. See raw response.",
            usage=usage,
        )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HistoryEntry(CamelModel):
    """Storage-facing summary of one analysed battle.

    Entries are produced by :meth:`from_result` and persisted by whoever owns
    the history; this service only reads them back to compute insights.
    """

    id: Optional[Union[int, str]] = None
    date: Annotated[datetime, AfterValidator(_as_utc)] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    outcome: Annotated[str, BeforeValidator(_text_or_unknown)] = "Unknown"
    opponent: Annotated[str, BeforeValidator(_text_or_unknown)] = "Unknown"
    battle_type: Annotated[str, BeforeValidator(_battle_type_or_default)] = "PVP"
    damage_dealt: Count = 0
    damage_received: Count = 0
    enemy_killed: Count = 0
    screenshot_count: int = Field(1, ge=1)
    analysis: Optional[AnalysisResult] = None

    @property
    def is_victory(self) -> bool:
        return self.outcome.strip().lower() == "victory"

    @classmethod
    def from_result(
        cls,
        result: AnalysisResult,
        *,
        screenshot_count: int = 1,
        created_at: Optional[datetime] = None,
    ) -> "HistoryEntry":
        created = created_at or datetime.now(timezone.utc)
        dealt = result.damage.dealt if result.damage else None
        received = result.damage.received if result.damage else None
        opponent_losses = (
            result.casualties.opponent if result.casualties else None
        )
        return cls(
            id=int(created.timestamp() * 1000),
            date=created,
            outcome=result.outcome or "Unknown",
            opponent=(result.opponent.name if result.opponent else None) or "Unknown",
            battle_type=result.battle_type or "PVP",
            damage_dealt=(dealt.total if dealt else None) or 0,
            damage_received=(received.total if received else None) or 0,
            enemy_killed=(opponent_losses.killed if opponent_losses else None) or 0,
            screenshot_count=max(1, screenshot_count),
            analysis=result,
        )


__all__ = [
    "AnalysisResult",
    "Casualties",
    "Combatant",
    "Damage",
    "DamageBreakdown",
    "Hero",
    "HistoryEntry",
    "Resources",
    "SideCasualties",
    "SideTroops",
    "Troops",
    "UnitTroops",
    "UsageInfo",
]
