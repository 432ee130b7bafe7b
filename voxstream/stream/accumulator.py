"""The single growing answer string for one question."""

from __future__ import annotations


class Accumulator:
    """Append-only answer text, reset at the start of every question.

    ``value`` is only ever replaced by a complete new string, so a reader
    never observes half of a token.
    """

    def __init__(self) -> None:
        self._value = ""
        self._token_count = 0

    @property
    def value(self) -> str:
        return self._value

    @property
    def token_count(self) -> int:
        """Number of tokens appended since the last reset."""
        return self._token_count

    def append(self, token: str) -> str:
        """Append a token and return the new full string."""
        self._value = self._value + token
        self._token_count += 1
        return self._value

    def reset(self) -> None:
        self._value = ""
        self._token_count = 0
