import pytest

from miniagent.tools.web import FetchError, _parse_search_results, fetch_url_text, render_search_results


def test_fetch_rejects_loopback_target() -> None:
    with pytest.raises(FetchError):
        fetch_url_text("http://127.0.0.1:8000/private")


def test_fetch_rejects_localhost_target() -> None:
    with pytest.raises(FetchError):
        fetch_url_text("http://localhost:8000/file.txt")


def test_fetch_rejects_non_http_scheme() -> None:
    with pytest.raises(FetchError):
        fetch_url_text("ftp://example.com/file.txt")


def test_search_results_render_as_blocks() -> None:
    html = """
    <div class="result">
      <a class="result__a" href="https://example.com/a">Example A</a>
      <div class="result__snippet">First snippet</div>
    </div>
    <div class="result"><span>no link</span></div>
    <div class="result">
      <a class="result__a" href="https://example.com/b">Example B</a>
    </div>
    """
    rows = _parse_search_results(html, max_results=5)
    assert [r["url"] for r in rows] == ["https://example.com/a", "https://example.com/b"]
    assert render_search_results(rows) == (
        "Title: Example A\nLink: https://example.com/a\nSnippet: First snippet\n\n"
        "Title: Example B\nLink: https://example.com/b\nSnippet: \n\n"
    )
