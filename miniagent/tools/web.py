from __future__ import annotations

import io
import ipaddress
import re
import socket
import urllib.parse

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PyPdfError


USER_AGENT = "MiniAgent/1.0"
HEADERS = {"User-Agent": USER_AGENT}
BLOCKED_HOSTS = {"localhost", "localhost.localdomain", "ip6-localhost", "metadata.google.internal"}
BLOCKED_HOST_SUFFIXES = (".local", ".internal", ".home", ".lan")
PAGE_MAX_CHARS = 22000


class FetchError(ValueError):
    """A page that cannot be browsed: unsafe target or undecodable content."""


def search_web(query: str, max_results: int = 6) -> list[dict[str, str]]:
    q = urllib.parse.quote_plus(query)
    url = f"https://duckduckgo.com/html/?q={q}"
    response = requests.get(url, timeout=25, headers=HEADERS)
    response.raise_for_status()
    return _parse_search_results(response.text, max_results=max_results)


def render_search_results(rows: list[dict[str, str]]) -> str:
    return "".join(
        f"Title: {row.get('title', '')}\nLink: {row.get('url', '')}\nSnippet: {row.get('snippet', '')}\n\n"
        for row in rows
    )


def fetch_url_text(url: str, max_chars: int = PAGE_MAX_CHARS) -> tuple[str, str]:
    """Download a page for the Browse action and reduce it to readable text.

    Returns `(text, kind)` where kind is `pdf`, `html` or `text`. Raises
    `FetchError` for blocked targets and content that cannot be decoded.
    """
    ensure_public_url(url)
    response = requests.get(url, timeout=35, headers=HEADERS)
    response.raise_for_status()

    content_type = response.headers.get("Content-Type", "").lower()
    if "application/pdf" in content_type or url.lower().endswith(".pdf"):
        return _pdf_text(response.content)[:max_chars], "pdf"

    body = response.text
    if "text/html" in content_type or _looks_like_html(body):
        return _extract_html_text(body)[:max_chars], "html"
    return body[:max_chars], "text"


def ensure_public_url(url: str) -> None:
    parsed = urllib.parse.urlparse(url.strip())
    scheme = (parsed.scheme or "").lower()
    if scheme not in {"http", "https"}:
        raise FetchError("Only http/https URLs are allowed")

    host = (parsed.hostname or "").strip().lower().strip(".")
    if not host:
        raise FetchError("URL host is missing")
    if host in BLOCKED_HOSTS or host.endswith(BLOCKED_HOST_SUFFIXES):
        raise FetchError(f"Blocked private host target: {host}")
    if _is_private_address(host):
        raise FetchError(f"Blocked non-public IP target: {host}")

    try:
        resolved = socket.getaddrinfo(host, parsed.port or (443 if scheme == "https" else 80), type=socket.SOCK_STREAM)
    except OSError:
        # unresolvable hosts fail later in requests with a transport error
        return

    for *_, sockaddr in resolved:
        if sockaddr and _is_private_address(str(sockaddr[0])):
            raise FetchError(f"Blocked non-public resolved address for {host}: {sockaddr[0]}")


def _parse_search_results(html: str, max_results: int) -> list[dict[str, str]]:
    soup = BeautifulSoup(html, "html.parser")
    rows: list[dict[str, str]] = []

    for result in soup.select(".result"):
        link = result.select_one("a.result__a")
        snippet = result.select_one(".result__snippet")
        if not link:
            continue
        href = link.get("href", "").strip()
        title = link.get_text(" ", strip=True)
        text = snippet.get_text(" ", strip=True) if snippet else ""

        if not href:
            continue

        rows.append({"title": title, "url": href, "snippet": text})
        if len(rows) >= max_results:
            break

    return rows


def _extract_html_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")

    for bad in soup(["script", "style", "noscript", "svg", "canvas", "footer", "iframe"]):
        bad.decompose()

    main = soup.find("main") or soup.find("article") or soup.body or soup
    text = main.get_text("\n", strip=True)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def _pdf_text(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PyPdfError as exc:
        raise FetchError(f"Unreadable PDF: {exc}") from exc
    return "\n\n".join(pages).strip()


def _looks_like_html(text: str) -> bool:
    prefix = text[:500].lower()
    return "<html" in prefix or "<!doctype html" in prefix


def _is_private_address(host: str) -> bool:
    try:
        ip = ipaddress.ip_address(host.split("%", 1)[0])
    except ValueError:
        return False
    return not ip.is_global
