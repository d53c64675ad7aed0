from __future__ import annotations

import threading
from typing import Protocol

import tiktoken


DEFAULT_ENCODING = "cl100k_base"


class LengthOracle(Protocol):
    def length(self, text: str) -> int:
        ...


class TokenizerOracle:
    """Token counter backed by a tiktoken encoding.

    Read-only once constructed, so one instance can be shared by every thread.
    """

    def __init__(self, encoding: str = DEFAULT_ENCODING) -> None:
        self.encoding_name = encoding
        self._encoder = tiktoken.get_encoding(encoding)

    def length(self, text: str) -> int:
        if not text:
            return 0
        return len(self._encoder.encode(text, disallowed_special=()))


_shared: LengthOracle | None = None
_shared_lock = threading.Lock()


def shared_oracle() -> LengthOracle:
    """Process-wide oracle over the default encoding, built on first use."""
    global _shared
    if _shared is not None:
        return _shared
    with _shared_lock:
        if _shared is None:
            _shared = TokenizerOracle(DEFAULT_ENCODING)
    return _shared


def reset_shared_oracle() -> None:
    global _shared
    with _shared_lock:
        _shared = None
