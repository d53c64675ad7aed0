from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EntryKind(str, Enum):
    HUMAN_INPUT = "human_input"
    AI_OUTPUT = "ai_output"
    ACTION_RESULT = "action_result"


@dataclass(frozen=True)
class ConversationEntry:
    kind: EntryKind
    sender: str
    content: str
    action_name: str = ""

    def render(self) -> str:
        prefix = f"{self.sender}: "
        if self.action_name:
            prefix += f"[{self.action_name}] "
        return f"{prefix}{self.content}\n"


class ConversationLog:
    """Append-only history of one agent instance."""

    def __init__(self) -> None:
        self._entries: list[ConversationEntry] = []

    def add(self, kind: EntryKind, sender: str, content: str, action_name: str = "") -> ConversationEntry:
        entry = ConversationEntry(kind=kind, sender=sender, content=content, action_name=action_name)
        self._entries.append(entry)
        return entry

    def add_human(self, content: str, sender: str = "Human") -> ConversationEntry:
        return self.add(EntryKind.HUMAN_INPUT, sender, content)

    def add_ai(self, content: str, sender: str = "AI") -> ConversationEntry:
        return self.add(EntryKind.AI_OUTPUT, sender, content)

    def add_action_result(self, content: str, action_name: str = "", sender: str = "System") -> ConversationEntry:
        return self.add(EntryKind.ACTION_RESULT, sender, content, action_name=action_name)

    @property
    def entries(self) -> tuple[ConversationEntry, ...]:
        return tuple(self._entries)

    def render(self) -> str:
        return "".join(entry.render() for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)
