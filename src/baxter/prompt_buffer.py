"""Prompt input value fed by typed text and recognized words."""

from __future__ import annotations


class PromptBuffer:
    """Accumulates words for the next prompt submission."""

    def __init__(self) -> None:
        self._value = ""

    @property
    def value(self) -> str:
        return self._value

    def append(self, word: str) -> None:
        word = word.strip()
        if not word:
            return
        self._value = f"{self._value} {word}" if self._value else word

    def take(self) -> str:
        """Return the trimmed prompt and clear the buffer."""
        prompt = self._value.strip()
        self._value = ""
        return prompt

    def clear(self) -> None:
        self._value = ""
