"""Minimal server-sent events line parser.

Only the fields the Firebase REST streaming endpoint uses are handled:
``event``, ``data`` and ``:`` comments.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSentEvent:
    event: str
    data: str


@dataclass
class SseParser:
    """Accumulates lines until a blank line completes an event."""

    _event: str = ""
    _data: list[str] = field(default_factory=list)

    def feed_line(self, line: str) -> ServerSentEvent | None:
        """Feed one line (without its terminator); return a completed event, if any."""
        if not line:
            return self._flush()
        if line.startswith(":"):
            return None

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "event":
            self._event = value
        elif name == "data":
            self._data.append(value)
        return None

    def _flush(self) -> ServerSentEvent | None:
        if not self._event and not self._data:
            return None
        event = ServerSentEvent(event=self._event or "message", data="\n".join(self._data))
        self._event = ""
        self._data = []
        return event
