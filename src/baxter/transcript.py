"""The visible conversation and its terminal rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from rich.console import Console
from rich.live import Live
from rich.text import Text


class MessageRole(str, Enum):
    USER = "user"
    BOT = "bot"


@dataclass(slots=True)
class TranscriptMessage:
    """One chat bubble. ``display`` replaces its text."""

    role: MessageRole
    text: str = ""
    _listeners: list[Callable[["TranscriptMessage"], None]] = field(default_factory=list, repr=False)

    def display(self, text: str) -> None:
        self.text = text
        for listener in list(self._listeners):
            listener(self)


class TranscriptRenderer(Protocol):
    def message_added(self, message: TranscriptMessage) -> None:
        """A new message was appended to the conversation."""

    def message_updated(self, message: TranscriptMessage) -> None:
        """An existing message changed its text."""


class Transcript:
    """Ordered, in-memory conversation for the lifetime of a session."""

    def __init__(self, renderer: TranscriptRenderer | None = None) -> None:
        self._messages: list[TranscriptMessage] = []
        self._renderer = renderer

    @property
    def messages(self) -> list[TranscriptMessage]:
        return list(self._messages)

    def add(self, role: MessageRole, text: str = "") -> TranscriptMessage:
        message = TranscriptMessage(role=role, text=text)
        if self._renderer is not None:
            message._listeners.append(self._renderer.message_updated)
        self._messages.append(message)
        if self._renderer is not None:
            self._renderer.message_added(message)
        return message


_STYLES = {MessageRole.USER: "bold cyan", MessageRole.BOT: "green"}
_LABELS = {MessageRole.USER: "you", MessageRole.BOT: "baxter"}


def _render(message: TranscriptMessage) -> Text:
    line = Text(f"{_LABELS[message.role]}> ", style=_STYLES[message.role])
    line.append(message.text)
    return line


class RichTranscriptRenderer:
    """Prints user messages and redraws the newest bot message in place."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._live: Live | None = None
        self._live_message: TranscriptMessage | None = None

    def message_added(self, message: TranscriptMessage) -> None:
        self.finish()
        if message.role == MessageRole.USER:
            self._console.print(_render(message))
            return
        self._live_message = message
        self._live = Live(_render(message), console=self._console, auto_refresh=False, transient=False)
        self._live.start()

    def message_updated(self, message: TranscriptMessage) -> None:
        if self._live is not None and message is self._live_message:
            self._live.update(_render(message), refresh=True)
        else:
            self._console.print(_render(message))

    def finish(self) -> None:
        """Freeze the bot message currently being redrawn."""
        if self._live is not None:
            self._live.stop()
        self._live = None
        self._live_message = None
