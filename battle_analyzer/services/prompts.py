"""Instruction templates sent to the inference service."""

from __future__ import annotations

from textwrap import dedent

GAME_TITLE = "Last War: Survival"

_RESULT_SCHEMA = dedent(
    """\
    {
        "battleType": "PVP/Rally/Alliance War/etc",
        "outcome": "Victory/Defeat/Draw",
        "player": {
            "name": "player name if visible",
            "power": "power level if visible",
            "alliance": "alliance name if visible"
        },
        "opponent": {
            "name": "opponent name if visible",
            "power": "power level if visible",
            "alliance": "alliance name if visible"
        },
        "troops": {
            "player": {
                "infantry": {"count": 0, "tier": "T1-T10"},
                "vehicles": {"count": 0, "tier": "T1-T10"},
                "aircraft": {"count": 0, "tier": "T1-T10"},
                "total": 0
            },
            "opponent": {
                "infantry": {"count": 0, "tier": "T1-T10"},
                "vehicles": {"count": 0, "tier": "T1-T10"},
                "aircraft": {"count": 0, "tier": "T1-T10"},
                "total": 0
            }
        },
        "damage": {
            "dealt": {"total": 0, "infantry": 0, "vehicles": 0, "aircraft": 0},
            "received": {"total": 0, "infantry": 0, "vehicles": 0, "aircraft": 0}
        },
        "casualties": {
            "player": {"killed": 0, "wounded": 0},
            "opponent": {"killed": 0, "wounded": 0}
        },
        "heroes": [
            {
                "name": "hero name",
                "level": 0,
                "stars": 0,
                "skills": ["skill1", "skill2"],
                "side": "player/opponent"
            }
        ],
        "resources": {"gained": {}, "lost": {}},%(extra_fields)s
        "notes": "%(notes_hint)s"
    }"""
)

SINGLE_SCREENSHOT_TEMPLATE = dedent(
    """\
    You are an expert analyzer for the mobile game "%(game)s". Analyze this PVP battle screenshot and extract all relevant battle information.

    Please provide a detailed analysis in the following JSON format:

    %(schema)s

    Important instructions:
    1. Extract ALL visible numbers and statistics from the screenshot
    2. If a value is not visible or unclear, use null instead of guessing
    3. Pay attention to troop tiers (T1-T10) as they significantly impact battle analysis
    4. Note any special battle conditions or buffs visible
    5. Include hero information if commanders/heroes are shown
    6. The game uses terms like "Infantry", "Vehicles/Tanks", "Aircraft/Helicopters"

    Respond ONLY with the JSON object, no additional text."""
)

COMBINED_SCREENSHOTS_TEMPLATE = dedent(
    """\
    You are an expert analyzer for the mobile game "%(game)s".

    I am providing you with %(count)d screenshot(s) from the SAME battle. These screenshots may show different tabs or views of the same battle report (e.g., overview tab, troop details tab, damage breakdown tab, hero stats tab).

    Analyze ALL screenshots together and combine the information into a single comprehensive battle analysis. Extract data from whichever screenshot shows it most clearly.

    Please provide a detailed analysis in the following JSON format:

    %(schema)s

    Important instructions:
    1. Combine information from ALL %(count)d screenshots into ONE unified analysis
    2. Extract ALL visible numbers and statistics from any screenshot that shows them
    3. If the same data appears in multiple screenshots, use the most complete/clear value
    4. If a value is not visible in ANY screenshot, use null instead of guessing
    5. Pay attention to troop tiers (T1-T10) as they significantly impact battle analysis
    6. Note any special battle conditions or buffs visible
    7. Include hero information if commanders/heroes are shown in any screenshot
    8. The game uses terms like "Infantry", "Vehicles/Tanks", "Aircraft/Helicopters"

    Respond ONLY with the JSON object, no additional text."""
)

GAME_MECHANICS_KNOWLEDGE = dedent(
    """\
    === LAST WAR GAME MECHANICS KNOWLEDGE ===

    **TROOP TYPE COUNTER SYSTEM (Rock-Paper-Scissors):**
    - Tanks > Aircraft (20% damage bonus + 20% damage reduction = 40% effective swing)
    - Aircraft > Missile Vehicles (20% damage bonus + 20% damage reduction)
    - Missile Vehicles > Tanks (20% damage bonus + 20% damage reduction)
    - Type advantage provides ~44% effective power swing (1.44x vs 0.64x = 2.25x difference)

    **CURRENT META:**
    - Tank-heavy formations dominate (3-4 Tanks standard, 60-80% tank ratio optimal)
    - 3-4 tank compositions represent 85%+ of successful competitive teams
    - Control heroes are now mandatory (1-2 dedicated control specialists required)
    - Solo excellence insufficient - alliance coordination critical

    **FORMATION BONUSES (after Capitol conquest):**
    - 3 same-type heroes: +5% HP/ATK/DEF
    - 3 same + 2 different: +10% HP/ATK/DEF
    - 4 same-type heroes: +15% HP/ATK/DEF
    - 5 same-type heroes: +20% HP/ATK/DEF

    **MORALE MECHANICS:**
    - Morale Bonus = 1 + (Your Morale - Enemy Morale) / 100
    - +100% morale advantage = DOUBLE damage
    - Can range from draw to 300% attack power at extremes
    - Most underutilized mechanic - can overcome significant power disadvantages

    **DAMAGE FORMULA:**
    Final Damage = Base Attack x Type Modifier x Morale Modifier x Formation Bonus x Skill Multipliers x Equipment x Critical Hit x (1 - Enemy Defense)

    **TOP TIER HEROES:**
    S-Tier: Kimberly (AoE tank), DVA (single-target burst), Tesla (endgame scaling), Murphy (best tank)
    A-Tier: Williams (defensive backbone), Marshall (consistent), Fiona (short-mid encounters)
    Best F2P core: Kimberly, Murphy, Mason

    **RALLY STRATEGY:**
    - 25%+ power advantage recommended for reliable wins
    - War Fever provides 1% damage boost (must trigger manually)
    - Rally prep times: 5min (active), 10min (standard), 30min (cross-timezone), 60min (max participation)
    - R4/R5 rally participation gives +5% damage boost

    **KEY INSIGHTS:**
    - A 3.5M power player with optimal bonuses can fight like 12.6M power (360% increase)
    - Smart fighters beat strong fighters through mechanics mastery
    - Buildings get +25% damage vs Aircraft (aircraft vulnerable in base defense)"""
)

_INSIGHT_SCHEMA = dedent(
    """\
    {
        "overallPerformance": {
            "rating": "Excellent/Good/Average/Needs Improvement",
            "winRate": 0,
            "averageDamageEfficiency": 0,
            "trend": "Improving/Stable/Declining"
        },
        "strengths": ["Specific strength observed (reference game mechanics)"],
        "weaknesses": ["Specific weakness based on game mechanics understanding"],
        "patterns": {
            "bestPerformingTroopType": "Tank/Missile/Aircraft",
            "worstPerformingTroopType": "Tank/Missile/Aircraft",
            "typeCounterUsage": "Analysis of whether player uses counters effectively",
            "formationAnalysis": "Whether player achieves type bonuses",
            "riskyOpponents": ["Characteristics of opponents that cause losses"]
        },
        "recommendations": [
            {
                "priority": "High/Medium/Low",
                "category": "Troops/Heroes/Counters/Morale/Formation/Rally",
                "suggestion": "Specific actionable recommendation based on game mechanics",
                "reasoning": "Why this matters mechanically"
            }
        ],
        "counterStrategy": {
            "againstTanks": "Recommendation for fighting tank-heavy enemies",
            "againstAircraft": "Recommendation for fighting aircraft-heavy enemies",
            "againstMissiles": "Recommendation for fighting missile-heavy enemies"
        },
        "nextBattleTips": ["Immediate tips referencing specific game mechanics"],
        "heroAnalysis": {
            "detectedHeroes": ["List of heroes seen in battles"],
            "heroTierAssessment": "Assessment based on S/A/B/C tier list",
            "heroRecommendations": "Suggestions based on current meta"
        },
        "moraleAndBuffs": {
            "moraleUsage": "Assessment of morale advantage usage",
            "formationBonusUsage": "Assessment of type bonus usage",
            "improvementTips": "How to leverage these mechanics better"
        },
        "summary": "2-3 sentence summary with specific game mechanics references"
    }"""
)

INSIGHTS_TEMPLATE = dedent(
    """\
    You are an expert game analyst for "%(game)s". Analyze this player's battle history using your knowledge of the game's combat mechanics.

    %(knowledge)s

    === PLAYER BATTLE HISTORY ===
    %(history)s

    === ANALYSIS REQUIRED ===
    Based on the battle data AND the game mechanics above, provide strategic insights:

    %(schema)s

    IMPORTANT: Reference specific game mechanics in your recommendations. Be specific about counter relationships, formation bonuses, and morale advantages.
    Respond ONLY with the JSON object."""
)


def result_schema(*, screenshot_count: int | None = None) -> str:
    """Render the output schema, adding the image count for combined requests."""
    if screenshot_count is None:
        return _RESULT_SCHEMA % {
            "extra_fields": "",
            "notes_hint": "Any additional observations about the battle",
        }
    return _RESULT_SCHEMA % {
        "extra_fields": f'\n    "screenshotsAnalyzed": {screenshot_count},',
        "notes_hint": (
            "Any additional observations about the battle, mention which "
            "screenshots provided which data"
        ),
    }


def single_screenshot_prompt() -> str:
    return SINGLE_SCREENSHOT_TEMPLATE % {"game": GAME_TITLE, "schema": result_schema()}


def combined_screenshots_prompt(count: int) -> str:
    return COMBINED_SCREENSHOTS_TEMPLATE % {
        "game": GAME_TITLE,
        "count": count,
        "schema": result_schema(screenshot_count=count),
    }


def insights_prompt(history_json: str) -> str:
    return INSIGHTS_TEMPLATE % {
        "game": GAME_TITLE,
        "knowledge": GAME_MECHANICS_KNOWLEDGE,
        "history": history_json,
        "schema": _INSIGHT_SCHEMA,
    }


__all__ = [
    "GAME_MECHANICS_KNOWLEDGE",
    "GAME_TITLE",
    "combined_screenshots_prompt",
    "insights_prompt",
    "result_schema",
    "single_screenshot_prompt",
]
