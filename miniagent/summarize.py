from __future__ import annotations

import logging
from typing import Protocol

from .llm import BackendError


logger = logging.getLogger(__name__)

INTENT_SYSTEM_TEXT = (
    "Analyze the user's original intent and reformulate it into a well-structured, single-paragraph input. "
    "This input should clearly outline the task requirements and specify the criteria for successful "
    "completion by an AI system, based on the following provided text:"
)

SUMMARY_CHUNK_CHARS = 1000
SUMMARY_MAX_CHUNKS = 7


class TextGenerator(Protocol):
    def generate(self, prompt: str) -> str:
        ...


def chat_prompt(system: str, user: str) -> str:
    return f"<|system|>{system}</s><|user|>{user}</s><|assistant|>"


def infer_intent(llm: TextGenerator, user_text: str) -> str:
    """Rewrite the raw request into a task statement; the raw text is kept on failure."""
    try:
        rewritten = llm.generate(chat_prompt(INTENT_SYSTEM_TEXT, user_text))
    except BackendError as exc:
        logger.warning("Intent clarification failed, using raw input: %s", exc)
        return user_text
    return rewritten.strip() or user_text


def split_into_chunks(text: str, chunk_size: int) -> list[str]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


def is_related(text: str) -> bool:
    for line in text.split("\n"):
        if "IsRelated: Yes" in line:
            return True
        if "IsRelated: No" in line:
            return False
    return True


def summarize_web_page(llm: TextGenerator, topic: str, page_text: str) -> str:
    previous = ""
    for index, chunk in enumerate(split_into_chunks(page_text, SUMMARY_CHUNK_CHARS)):
        if index >= SUMMARY_MAX_CHUNKS:
            break
        try:
            previous = llm.generate(_summary_prompt(topic, previous, chunk))
        except BackendError as exc:
            logger.warning("Page summary stopped at chunk %d: %s", index, exc)
            return previous or str(exc)
        if not is_related(previous):
            break
    return previous


def _summary_prompt(topic: str, previous: str, page: str) -> str:
    return (
        f"For the topic '{topic}', please progressively extract essential information from the given web page "
        "and previous extract, concentrating on the main body text, headings, and significant hyperlinks.\n"
        "Summarize the central themes or key information related to the specified topic, "
        "ensuring the summary is succinct and directly relevant.\n"
        "Exclude any details about website technologies or unrelated content.\n"
        "Additionally, identify if the content is relevant to the given topic.\n"
        "Provide a list of the most pertinent links for additional reading or context, "
        "disregarding cookie and consent notices.\n"
        "The output should be formatted as follows:\n\n"
        "Content: [Concise summary focusing on the topic]\n"
        "IsRelated: [Yes/No, based on relevance to the topic]\n"
        "Links: [Relevant links for further information]\n"
        "- Link 1\n"
        "- Link 2\n\n"
        f"Previous Extract:\n{previous}\n\n"
        f"WebPage:\n{page}"
    )
