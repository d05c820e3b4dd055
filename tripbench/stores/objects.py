"""Object store for maps, scenarios and edit sets.

Provides the ``ObjectStore`` ABC with two implementations:
- ``FileObjectStore`` keeps JSON documents under a data directory:
  ``<data_dir>/<map>/map.json``, ``<data_dir>/<map>/scenarios/<name>.json``
  and ``<data_dir>/<map>/edits/<name>.json``.
- ``InMemoryObjectStore`` for tests.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from tripbench.errors import EditsNotFoundError, MapNotFoundError, ScenarioNotFoundError
from tripbench.models.edits import MapEdits
from tripbench.models.road_map import RoadMap
from tripbench.models.scenario import Scenario

logger = logging.getLogger(__name__)

EditsPredicate = Callable[[MapEdits], bool]


def check_name(name: str) -> str:
    """Reject names that would escape their directory on disk."""
    if not name or name in {".", ".."} or "/" in name or "\\" in name:
        msg = f"Invalid object name: {name!r}"
        raise ValueError(msg)
    return name


class ObjectStore(ABC):
    """ABC for persisted maps, scenarios and edit sets."""

    # --- Maps ---

    @abstractmethod
    def save_map(self, road_map: RoadMap) -> None: ...

    @abstractmethod
    def load_map(self, map_name: str) -> RoadMap:
        """Raises MapNotFoundError when absent."""

    @abstractmethod
    def list_maps(self) -> list[str]: ...

    # --- Scenarios ---

    @abstractmethod
    def save_scenario(self, scenario: Scenario) -> None: ...

    @abstractmethod
    def load_scenario(self, map_name: str, scenario_name: str) -> Scenario:
        """Raises ScenarioNotFoundError when absent."""

    @abstractmethod
    def list_scenarios(self, map_name: str) -> list[str]:
        """Scenario names stored for a map, sorted."""

    def has_scenario(self, map_name: str, scenario_name: str) -> bool:
        return scenario_name in self.list_scenarios(map_name)

    # --- Edits ---

    @abstractmethod
    def save_edits(self, edits: MapEdits) -> None: ...

    @abstractmethod
    def load_edits(self, map_name: str, edits_name: str) -> MapEdits:
        """Raises EditsNotFoundError when absent."""

    @abstractmethod
    def _all_edits(self, map_name: str) -> list[MapEdits]: ...

    def list_edits(
        self, map_name: str, predicate: EditsPredicate | None = None
    ) -> list[MapEdits]:
        """Edit sets for a map ordered by name, optionally filtered."""
        found = sorted(self._all_edits(map_name), key=lambda e: e.edits_name)
        if predicate is None:
            return found
        return [e for e in found if predicate(e)]


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


class FileObjectStore(ObjectStore):
    """JSON documents on the local filesystem."""

    def __init__(self, data_dir: str | Path) -> None:
        self._root = Path(data_dir)

    @property
    def root(self) -> Path:
        return self._root

    def _map_path(self, map_name: str) -> Path:
        return self._root / check_name(map_name) / "map.json"

    def _scenario_path(self, map_name: str, scenario_name: str) -> Path:
        return self._root / check_name(map_name) / "scenarios" / f"{check_name(scenario_name)}.json"

    def _edits_path(self, map_name: str, edits_name: str) -> Path:
        return self._root / check_name(map_name) / "edits" / f"{check_name(edits_name)}.json"

    @staticmethod
    def _write(path: Path, payload: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(payload, encoding="utf-8")

    # --- Maps ---

    def save_map(self, road_map: RoadMap) -> None:
        path = self._map_path(road_map.name)
        self._write(path, road_map.model_dump_json(indent=2))
        logger.info("Saved map %s to %s", road_map.name, path)

    def load_map(self, map_name: str) -> RoadMap:
        path = self._map_path(map_name)
        if not path.exists():
            raise MapNotFoundError(map_name)
        return RoadMap.model_validate_json(path.read_text(encoding="utf-8"))

    def list_maps(self) -> list[str]:
        if not self._root.exists():
            return []
        return sorted(p.parent.name for p in self._root.glob("*/map.json"))

    # --- Scenarios ---

    def save_scenario(self, scenario: Scenario) -> None:
        path = self._scenario_path(scenario.map_name, scenario.scenario_name)
        self._write(path, scenario.model_dump_json(indent=2))
        logger.info(
            "Saved scenario %s/%s (%d trips)",
            scenario.map_name, scenario.scenario_name, len(scenario.trips),
        )

    def load_scenario(self, map_name: str, scenario_name: str) -> Scenario:
        path = self._scenario_path(map_name, scenario_name)
        if not path.exists():
            raise ScenarioNotFoundError(map_name, scenario_name)
        return Scenario.model_validate_json(path.read_text(encoding="utf-8"))

    def list_scenarios(self, map_name: str) -> list[str]:
        directory = self._root / check_name(map_name) / "scenarios"
        if not directory.is_dir():
            return []
        return sorted(p.stem for p in directory.glob("*.json"))

    # --- Edits ---

    def save_edits(self, edits: MapEdits) -> None:
        path = self._edits_path(edits.map_name, edits.edits_name)
        self._write(path, edits.model_dump_json(indent=2))
        logger.info("Saved edits %s for %s", edits.edits_name, edits.map_name)

    def load_edits(self, map_name: str, edits_name: str) -> MapEdits:
        path = self._edits_path(map_name, edits_name)
        if not path.exists():
            raise EditsNotFoundError(map_name, edits_name)
        return MapEdits.model_validate_json(path.read_text(encoding="utf-8"))

    def _all_edits(self, map_name: str) -> list[MapEdits]:
        directory = self._root / check_name(map_name) / "edits"
        if not directory.is_dir():
            return []
        return [
            MapEdits.model_validate_json(p.read_text(encoding="utf-8"))
            for p in directory.glob("*.json")
        ]


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryObjectStore(ObjectStore):
    """In-memory implementation for tests."""

    def __init__(self) -> None:
        self._maps: dict[str, RoadMap] = {}
        self._scenarios: dict[tuple[str, str], Scenario] = {}
        self._edits: dict[tuple[str, str], MapEdits] = {}

    def save_map(self, road_map: RoadMap) -> None:
        self._maps[road_map.name] = road_map

    def load_map(self, map_name: str) -> RoadMap:
        if map_name not in self._maps:
            raise MapNotFoundError(map_name)
        return self._maps[map_name]

    def list_maps(self) -> list[str]:
        return sorted(self._maps)

    def save_scenario(self, scenario: Scenario) -> None:
        self._scenarios[scenario.key] = scenario

    def load_scenario(self, map_name: str, scenario_name: str) -> Scenario:
        key = (map_name, scenario_name)
        if key not in self._scenarios:
            raise ScenarioNotFoundError(map_name, scenario_name)
        return self._scenarios[key]

    def list_scenarios(self, map_name: str) -> list[str]:
        return sorted(name for m, name in self._scenarios if m == map_name)

    def save_edits(self, edits: MapEdits) -> None:
        self._edits[(edits.map_name, edits.edits_name)] = edits

    def load_edits(self, map_name: str, edits_name: str) -> MapEdits:
        key = (map_name, edits_name)
        if key not in self._edits:
            raise EditsNotFoundError(map_name, edits_name)
        return self._edits[key]

    def _all_edits(self, map_name: str) -> list[MapEdits]:
        return [e for (m, _), e in self._edits.items() if m == map_name]
