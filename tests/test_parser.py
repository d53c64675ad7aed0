import pytest

from miniagent.parser import ActionParseError, ParsedAction, parse_action


def test_parse_well_formed_action() -> None:
    text = 'Function: Search\nInput: "weather today"\nReasoning: need data'
    assert parse_action(text) == ParsedAction("Search", "weather today", "need data")


def test_parse_ignores_noise_and_indentation() -> None:
    text = "Sure, here is my step.\n  Function: Browse  \n  Input: https://example.com\nCriticism: none"
    action = parse_action(text)
    assert action.name == "Browse"
    assert action.input == "https://example.com"
    assert action.reasoning == ""


def test_first_occurrence_wins() -> None:
    text = "Function: Search\nInput: first\nFunction: Finish\nInput: second"
    action = parse_action(text)
    assert action == ParsedAction("Search", "first", "")


def test_missing_function_is_parse_error() -> None:
    with pytest.raises(ActionParseError) as info:
        parse_action("Input: something\nReasoning: no function given")
    assert info.value.action == ParsedAction("", "", "")
    assert "no function given" in info.value.text


def test_input_is_optional() -> None:
    assert parse_action("Function: CurrentTime") == ParsedAction("CurrentTime", "", "")
