from __future__ import annotations

from dataclasses import dataclass


FUNCTION_PREFIX = "Function:"
INPUT_PREFIX = "Input:"
REASONING_PREFIX = "Reasoning:"


@dataclass(frozen=True)
class ParsedAction:
    name: str
    input: str
    reasoning: str


class ActionParseError(ValueError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Missing required fields in output. Output <<<<<<{text}>>>>>")
        self.text = text
        self.action = ParsedAction(name="", input="", reasoning="")


def parse_action(text: str) -> ParsedAction:
    """Extract one action from a model response.

    Only the first line carrying each prefix counts; other lines are ignored.
    Input values lose their surrounding double quotes.
    """
    name: str | None = None
    value: str | None = None
    reasoning: str | None = None

    for raw in (text or "").split("\n"):
        line = raw.strip()
        if line.startswith(FUNCTION_PREFIX):
            if name is None:
                name = line[len(FUNCTION_PREFIX):].strip()
        elif line.startswith(INPUT_PREFIX):
            if value is None:
                value = line[len(INPUT_PREFIX):].strip().strip('"')
        elif line.startswith(REASONING_PREFIX):
            if reasoning is None:
                reasoning = line[len(REASONING_PREFIX):].strip()

    if not name:
        raise ActionParseError(text)
    return ParsedAction(name=name, input=value or "", reasoning=reasoning or "")
