"""Checkpoint store for resumable simulation runs.

Checkpoints are grouped by run key (see ``tripbench.engine.runner.run_key``)
and ordered by simulated time. Only the latest one is ever resumed from.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from tripbench.engine.simulator import SimulatorState
from tripbench.stores.objects import check_name

logger = logging.getLogger(__name__)


class CheckpointStore(ABC):
    """ABC for simulator state snapshots keyed by run key."""

    @abstractmethod
    def save(self, run_key: str, state: SimulatorState) -> None: ...

    @abstractmethod
    def latest(self, run_key: str) -> SimulatorState | None:
        """The checkpoint with the greatest simulated time, if any."""

    @abstractmethod
    def clear(self, run_key: str) -> None: ...


class FileCheckpointStore(CheckpointStore):
    """One JSON file per checkpoint: ``<root>/<run_key>/<ticks>.json``."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def _dir(self, run_key: str) -> Path:
        return self._root / check_name(run_key)

    def _entries(self, run_key: str) -> list[tuple[int, Path]]:
        directory = self._dir(run_key)
        if not directory.is_dir():
            return []
        entries = []
        for path in directory.glob("*.json"):
            if path.stem.isdigit():
                entries.append((int(path.stem), path))
        return sorted(entries)

    def save(self, run_key: str, state: SimulatorState) -> None:
        directory = self._dir(run_key)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{state.now.to_ticks()}.json"
        tmp = path.with_suffix(".tmp")
        tmp.write_text(state.model_dump_json(), encoding="utf-8")
        tmp.replace(path)
        logger.debug("Checkpoint %s at %s", run_key[:12], state.now)

    def latest(self, run_key: str) -> SimulatorState | None:
        entries = self._entries(run_key)
        if not entries:
            return None
        _, path = entries[-1]
        return SimulatorState.model_validate_json(path.read_text(encoding="utf-8"))

    def clear(self, run_key: str) -> None:
        for _, path in self._entries(run_key):
            path.unlink()
        directory = self._dir(run_key)
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()


class InMemoryCheckpointStore(CheckpointStore):
    """In-memory implementation for tests. Keeps serialized JSON."""

    def __init__(self) -> None:
        self._checkpoints: dict[str, dict[int, str]] = {}

    def save(self, run_key: str, state: SimulatorState) -> None:
        self._checkpoints.setdefault(run_key, {})[state.now.to_ticks()] = state.model_dump_json()

    def latest(self, run_key: str) -> SimulatorState | None:
        saved = self._checkpoints.get(run_key)
        if not saved:
            return None
        return SimulatorState.model_validate_json(saved[max(saved)])

    def clear(self, run_key: str) -> None:
        self._checkpoints.pop(run_key, None)

    def count(self, run_key: str) -> int:
        return len(self._checkpoints.get(run_key, {}))
