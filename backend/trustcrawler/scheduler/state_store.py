"""
Cross-restart cursor state for bots.

State is a flat map {bot_name: cursor_object}. The JSON file implementation
rewrites the whole map on every save through a temp file and os.replace, so
a crash mid-write leaves the previous file intact.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import structlog

from trustcrawler.core.exceptions import StateStoreError

logger = structlog.get_logger()


class StateStore(ABC):
    @abstractmethod
    def load(self, bot_name: str) -> dict[str, Any]:
        """Cursor for bot_name; {} when the bot has never saved."""
        pass

    @abstractmethod
    def save(self, bot_name: str, state: dict[str, Any]) -> None:
        pass


class InMemoryStateStore(StateStore):
    """Process-local store for one-off runs and tests."""

    def __init__(self, initial: dict[str, dict[str, Any]] | None = None):
        self._states = {k: dict(v) for k, v in (initial or {}).items()}

    def load(self, bot_name: str) -> dict[str, Any]:
        return dict(self._states.get(bot_name, {}))

    def save(self, bot_name: str, state: dict[str, Any]) -> None:
        self._states[bot_name] = dict(state)


class JsonFileStateStore(StateStore):
    """All bot cursors in a single JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.log = logger.bind(component="JsonFileStateStore", path=str(self.path))

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(
                "Could not read bot state file",
                details={"path": str(self.path), "error": str(e)},
            ) from e
        if not isinstance(data, dict):
            raise StateStoreError("Bot state file is not a JSON object", details={"path": str(self.path)})
        return data

    def load(self, bot_name: str) -> dict[str, Any]:
        state = self._read_all().get(bot_name)
        return dict(state) if isinstance(state, dict) else {}

    def save(self, bot_name: str, state: dict[str, Any]) -> None:
        states = self._read_all()
        states[bot_name] = state

        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(states, f, indent=2, sort_keys=True, default=str)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StateStoreError(
                "Could not write bot state file",
                details={"path": str(self.path), "error": str(e)},
            ) from e

        self.log.debug("Bot state saved", bot=bot_name)
