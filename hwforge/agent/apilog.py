"""JSONL log of every model call and tool exchange, for debugging runs."""

from __future__ import annotations

import json
import time
from pathlib import Path


class ApiLog:
    """Appends one JSON line per interaction to ``path``."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._turn = 0
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch()

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, entry: dict) -> None:
        entry["ts"] = time.time()
        entry["turn"] = self._turn
        with self._path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry, default=str) + "\n")

    def log(self, role: str, **kwargs) -> None:
        self._write({"role": role, **kwargs})

    def set_turn(self, turn: int) -> None:
        self._turn = turn
