import pytest
import requests

from miniagent import capabilities
from miniagent.agent import Agent, AgentRunConfig
from miniagent.capabilities import CATALOG_FOOTER, CATALOG_HEADER, Capability, CapabilityRegistry, default_registry
from miniagent.tools import web


def _echo(name: str) -> Capability:
    return Capability(name, f"{name} things", f"{name} input", lambda text: f"{name}:{text}")


def test_lookup_is_case_insensitive() -> None:
    registry = CapabilityRegistry([_echo("Search")])
    assert registry.lookup("search") is registry.lookup(" SEARCH ")
    assert registry.lookup("Browse") is None


def test_resolve_falls_back_to_default() -> None:
    registry = CapabilityRegistry([_echo("Search"), _echo("Finish")], default="Search")
    assert registry.resolve("Foo").name == "Search"
    assert registry.resolve("finish").name == "Finish"


def test_resolve_without_default_raises() -> None:
    registry = CapabilityRegistry([_echo("Finish")])
    with pytest.raises(KeyError):
        registry.resolve("Foo")


def test_set_default_requires_registered_name() -> None:
    registry = CapabilityRegistry([_echo("Search")])
    with pytest.raises(KeyError):
        registry.set_default("Browse")


def test_describe_all_keeps_registration_order() -> None:
    registry = CapabilityRegistry([_echo("Search"), _echo("Browse")])
    registry.register(Capability("search", "replaced", "query", lambda text: text))

    text = registry.describe_all()
    assert text.startswith(CATALOG_HEADER)
    assert text.endswith(CATALOG_FOOTER)
    assert text.index("Function: search") < text.index("Function: Browse")
    assert "  Input: query\n  Description: replaced\n" in text
    assert registry.names() == ["search", "Browse"]


class _NoLLM:
    def generate(self, prompt: str) -> str:
        return "Content: nothing\nIsRelated: No"


def test_default_registry_catalog() -> None:
    registry = default_registry(_NoLLM(), topic=lambda: "topic")
    assert registry.names() == ["Search", "Browse", "CurrentTime", "Finish"]
    assert registry.default is not None and registry.default.name == "Search"
    assert registry.resolve("Finish").invoke("done") == ""
    assert registry.resolve("CurrentTime").invoke("").startswith("Current time is ")


def test_search_failure_is_reported_as_text(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    def offline(query: str, max_results: int = 6):  # type: ignore[no-untyped-def]
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(capabilities, "search_web", offline)
    registry = default_registry(_NoLLM(), topic=lambda: "topic")
    assert registry.resolve("Search").invoke("weather") == "Search failed: offline"


def test_browse_summarizes_against_topic(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    prompts: list[str] = []

    class _LLM:
        def generate(self, prompt: str) -> str:
            prompts.append(prompt)
            return "Content: sunny\nIsRelated: Yes"

    monkeypatch.setattr(capabilities, "fetch_url_text", lambda url: ("Sunny all week.", "html"))
    registry = default_registry(_LLM(), topic=lambda: "weather in Oslo")

    out = registry.resolve("browse").invoke("https://example.com/weather")
    assert out == "URL: https://example.com/weather \nSummary: Content: sunny\nIsRelated: Yes \n\n"
    assert "weather in Oslo" in prompts[0]


def test_browse_rejects_private_target() -> None:
    registry = default_registry(_NoLLM(), topic=lambda: "topic")
    out = registry.resolve("Browse").invoke("http://127.0.0.1:8000/private")
    assert "Browse failed" in out


class _PdfResponse:
    headers = {"Content-Type": "application/pdf"}
    content = b"not really a pdf"
    text = "not really a pdf"

    def raise_for_status(self) -> None:
        return None


def _serve_broken_pdf(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setattr(web.socket, "getaddrinfo", lambda *a, **k: [(2, 1, 6, "", ("93.184.216.34", 443))])
    monkeypatch.setattr(web.requests, "get", lambda url, timeout=None, headers=None: _PdfResponse())


def test_browse_reports_unreadable_pdf_as_text(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    _serve_broken_pdf(monkeypatch)
    registry = default_registry(_NoLLM(), topic=lambda: "topic")

    out = registry.resolve("Browse").invoke("https://example.com/report.pdf")
    assert out.startswith("URL: https://example.com/report.pdf \nBrowse failed: Unreadable PDF")


def test_agent_survives_unreadable_pdf(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    _serve_broken_pdf(monkeypatch)

    class _LLM:
        def __init__(self) -> None:
            self.responses = ["Function: Browse\nInput: https://example.com/report.pdf", "Function: Finish\nInput: done"]

        def generate(self, prompt: str) -> str:
            return self.responses.pop(0)

    class _WordOracle:
        def length(self, text: str) -> int:
            return len(text.split())

    agent = Agent(llm=_LLM(), oracle=_WordOracle(), config=AgentRunConfig(clarify_intent=False))
    assert agent.run("summarize the report") == "done"
    assert "Browse failed" in agent.history.entries[1].content
