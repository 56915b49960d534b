# src/events/sinks.py — v1
"""Event bus subscribers: logger forwarding, JSONL file feed, in-memory capture."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from shipwright.core.models import Event


class LoggingSink:
    """Forward every event to a logger at INFO."""

    def __init__(self, name: str = "shipwright.events") -> None:
        self._logger = logging.getLogger(name)

    def __call__(self, event: Event) -> None:
        self._logger.info("%s", event.text)


class JsonlFileSink:
    """Append events as JSON lines; the dashboard feed tails this file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def __call__(self, event: Event) -> None:
        line = json.dumps(
            {"timestamp": event.timestamp.isoformat(), "text": event.text},
            ensure_ascii=False,
        )
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")


class MemorySink:
    """Keep event texts in memory."""

    def __init__(self) -> None:
        self.texts: list[str] = []

    def __call__(self, event: Event) -> None:
        self.texts.append(event.text)
