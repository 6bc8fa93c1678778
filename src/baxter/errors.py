"""Exception types surfaced to callers of a chat turn."""

from __future__ import annotations


class BaxterError(Exception):
    """Base error for the voice chat front-end."""


class GenerationError(BaxterError):
    """Raised when the text-generation stream fails mid-sequence."""


class TurnFailedError(BaxterError):
    """A generation turn ended in failure after forwarding ``partial_text``."""

    def __init__(self, message: str, *, partial_text: str = "") -> None:
        super().__init__(message)
        self.partial_text = partial_text
