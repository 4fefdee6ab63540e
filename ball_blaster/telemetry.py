from __future__ import annotations
import json
import time
from pathlib import Path
from typing import Iterable

from .models import SimEvent


class EventLog:
    """Append simulation events to a JSON-lines file, one object per line."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._write_failed = False
        self._session_started = False

    @property
    def enabled(self) -> bool:
        return not self._write_failed

    def start(self) -> None:
        if self._session_started:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        self.write({"event": "log_start", "timestamp_wall": time.time()})
        self._session_started = True

    def stop(self) -> None:
        if self._session_started:
            self.write({"event": "log_stop", "timestamp_wall": time.time()})
            self._session_started = False

    def write(self, payload: dict) -> None:
        if self._write_failed:
            return
        try:
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload, ensure_ascii=False))
                handle.write("\n")
        except OSError as exc:
            print(f"[event-log] Failed to write event entry: {exc}")
            self._write_failed = True

    def write_events(self, events: Iterable[SimEvent]) -> None:
        for ev in events:
            self.write(ev.as_dict())
