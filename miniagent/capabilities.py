from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import requests

from .summarize import TextGenerator, summarize_web_page
from .tools.clock import current_time_string
from .tools.web import FetchError, fetch_url_text, render_search_results, search_web


logger = logging.getLogger(__name__)

CATALOG_HEADER = "Functions:\n"
CATALOG_FOOTER = "End of Functions.\n"


@dataclass(frozen=True)
class Capability:
    name: str
    description: str
    input_shape: str
    invoke: Callable[[str], str]


def _normalize(name: str) -> str:
    return (name or "").strip().lower()


class CapabilityRegistry:
    def __init__(self, capabilities: list[Capability] | None = None, default: str | None = None) -> None:
        self._capabilities: dict[str, Capability] = {}
        self._default = ""
        for capability in capabilities or []:
            self.register(capability)
        if default:
            self.set_default(default)

    def register(self, capability: Capability) -> None:
        self._capabilities[_normalize(capability.name)] = capability

    def set_default(self, name: str) -> None:
        key = _normalize(name)
        if key not in self._capabilities:
            raise KeyError(f"Unknown capability: {name}")
        self._default = key

    @property
    def default(self) -> Capability | None:
        return self._capabilities.get(self._default)

    def lookup(self, name: str) -> Capability | None:
        return self._capabilities.get(_normalize(name))

    def resolve(self, name: str) -> Capability:
        capability = self.lookup(name)
        if capability is not None:
            return capability
        fallback = self.default
        if fallback is None:
            raise KeyError(f"Unknown capability and no default registered: {name}")
        logger.info("No capability named %r; falling back to %s", name, fallback.name)
        return fallback

    def names(self) -> list[str]:
        return [capability.name for capability in self._capabilities.values()]

    def describe_all(self) -> str:
        rows = [CATALOG_HEADER]
        for capability in self._capabilities.values():
            rows.append(
                f"- Function: {capability.name}\n"
                f"  Input: {capability.input_shape}\n"
                f"  Description: {capability.description}\n"
            )
        rows.append(CATALOG_FOOTER)
        return "".join(rows)

    def __len__(self) -> int:
        return len(self._capabilities)


def default_registry(llm: TextGenerator, topic: Callable[[], str]) -> CapabilityRegistry:
    """Search, Browse, CurrentTime and Finish, with Search taking unknown actions.

    `topic` supplies the run's raw request, which steers page summaries.
    """

    def search(query: str) -> str:
        try:
            rows = search_web(query)
        except requests.RequestException as exc:
            return f"Search failed: {exc}"
        if not rows:
            return f"No search results for '{query}'.\n"
        return render_search_results(rows)

    def browse(url: str) -> str:
        try:
            text, _kind = fetch_url_text(url.strip())
        except (requests.RequestException, FetchError) as exc:
            return f"URL: {url} \nBrowse failed: {exc} \n\n"
        summary = summarize_web_page(llm, topic(), text)
        return f"URL: {url} \nSummary: {summary} \n\n"

    def current_time(_: str) -> str:
        return current_time_string()

    def finish(_: str) -> str:
        return ""

    return CapabilityRegistry(
        [
            Capability("Search", "This search is useful to get reliable quick data.", "Search Input", search),
            Capability(
                "Browse",
                "This browse is useful when users want to get content of a page.",
                "website url",
                browse,
            ),
            Capability("CurrentTime", "Get Current Time", "N/A", current_time),
            Capability("Finish", "This is useful when the agent decides to finish this task.", "Result of the task.", finish),
        ],
        default="Search",
    )
