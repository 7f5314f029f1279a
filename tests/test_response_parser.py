try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from battle_analyzer.schemas import UsageInfo
from battle_analyzer.services.response_parser import (
    extract_json_object,
    iter_json_candidates,
    parse_analysis_reply,
    reply_text,
    usage_from_reply,
)


def test_object_embedded_in_prose_is_extracted():
    result = parse_analysis_reply('Here is the result: {"outcome":"Victory"} Thanks!')

    assert result.outcome == "Victory"
    assert result.parse_error is False
    assert result.raw_response is None


def test_reply_without_braces_falls_back_to_raw_text():
    text = "Sorry, I could not read this screenshot."

    result = parse_analysis_reply(text)

    assert result.parse_error is True
    assert result.raw_response == text
    assert result.notes == "Could not parse structured data. See raw response."


def test_unbalanced_object_is_a_parse_failure():
    text = 'Result: {"outcome": "Victory", "player": {"name": "Ace"'

    result = parse_analysis_reply(text)

    assert result.parse_error is True
    assert result.raw_response == text


def test_braces_inside_strings_do_not_end_the_candidate():
    text = 'Note {"notes": "formation {A} was used \\"}\\"", "outcome": "Defeat"} done'

    payload = extract_json_object(text)

    assert payload == {"notes": 'formation {A} was used "}"', "outcome": "Defeat"}


def test_first_decodable_candidate_wins():
    text = "{not json} then {\"outcome\": \"Victory\"} and {\"outcome\": \"Defeat\"}"

    assert list(iter_json_candidates(text)) == [
        "{not json}",
        "{\"outcome\": \"Victory\"}",
        "{\"outcome\": \"Defeat\"}",
    ]
    assert extract_json_object(text) == {"outcome": "Victory"}


def test_nested_objects_are_not_separate_candidates():
    text = '{"a": {"b": {"c": 1}}} tail {"d": 2}'

    assert list(iter_json_candidates(text)) == ['{"a": {"b": {"c": 1}}}', '{"d": 2}']


def test_malformed_outer_object_is_a_parse_failure():
    # Trailing comma makes the outer object invalid; its nested casualties
    # object must not be picked up in its place.
    text = '{"outcome": "Victory", "casualties": {"player": {"killed": 5}}, }'

    result = parse_analysis_reply(text)

    assert result.parse_error is True
    assert result.raw_response == text
    assert result.outcome is None
    assert result.player is None


def test_unclosed_outer_object_does_not_yield_inner_fragment():
    text = 'Result: {"outcome": "Victory", "casualties": {"player": {"killed": 5}}'

    assert list(iter_json_candidates(text)) == []
    assert parse_analysis_reply(text).parse_error is True


def test_nested_result_is_coerced_into_typed_fields():
    text = """```json
    {
      "battleType": "PVP",
      "outcome": "Victory",
      "player": {"name": "Ace", "power": "52,300,000"},
      "damage": {"dealt": {"total": "1,250,000"}, "received": {"total": 400000}},
      "casualties": {"player": {"killed": 120}, "opponent": {"killed": "480"}},
      "heroes": ["Murphy", {"name": "Kimberly", "level": 80}],
      "morale": {"player": 110}
    }
    ```"""

    result = parse_analysis_reply(text)

    assert result.parse_error is False
    assert result.battle_type == "PVP"
    assert result.damage.dealt.total == 1250000
    assert result.casualties.opponent.killed == 480
    assert [hero.name for hero in result.heroes] == ["Murphy", "Kimberly"]
    payload = result.to_payload()
    assert payload["morale"] == {"player": 110}
    assert payload["player"]["power"] == "52,300,000"


def test_reply_cannot_forge_parser_owned_fields():
    result = parse_analysis_reply('{"outcome": "Victory", "parseError": true, "_usage": {"x": 1}}')

    assert result.parse_error is False
    assert result.usage is None


def test_usage_is_attached_on_success_and_failure():
    usage = UsageInfo(requests_today=3, daily_limit=50, remaining=47)

    parsed = parse_analysis_reply('{"outcome": "Defeat"}', usage=usage)
    fallback = parse_analysis_reply("no data", usage=usage)

    assert parsed.usage == usage
    assert fallback.usage == usage
    assert parsed.to_payload()["_usage"] == {
        "requests_today": 3,
        "daily_limit": 50,
        "remaining": 47,
    }


def test_reply_text_and_usage_are_read_from_upstream_reply():
    reply = {
        "content": [
            {"type": "text", "text": '{"outcome":'},
            {"type": "tool_use", "id": "ignored"},
            {"type": "text", "text": ' "Victory"}'},
        ],
        "usage_info": {"requests_today": 1, "daily_limit": 50, "remaining": 49},
    }

    assert reply_text(reply) == '{"outcome": "Victory"}'
    assert usage_from_reply(reply).remaining == 49
    assert usage_from_reply({"content": []}) is None
