"""Persisted prebaked analytics, keyed by (map name, scenario name).

The file format is gzip-compressed canonical JSON of the Analytics model at
``<data_dir>/<map>/prebaked_results/<scenario>.bin``. Writes go to a temp
file in the same directory and are moved into place with ``os.replace`` so a
reader never sees a partial record. Concurrent writers to one key must be
serialized by the caller.
"""

from __future__ import annotations

import gzip
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from tripbench.models.analytics import Analytics
from tripbench.stores.objects import check_name

logger = logging.getLogger(__name__)

RESULTS_DIR = "prebaked_results"
RESULTS_SUFFIX = ".bin"


def encode_analytics(analytics: Analytics) -> bytes:
    """Canonical bytes: compact JSON, gzip with a fixed header timestamp."""
    return gzip.compress(analytics.model_dump_json().encode("utf-8"), mtime=0)


def decode_analytics(raw: bytes) -> Analytics:
    return Analytics.model_validate_json(gzip.decompress(raw))


class AnalyticsStore(ABC):
    """ABC for baseline analytics keyed by scenario identity."""

    @abstractmethod
    def save(self, map_name: str, scenario_name: str, analytics: Analytics) -> None:
        """Persist ``analytics``; a later save for the same key overwrites."""

    @abstractmethod
    def load(self, map_name: str, scenario_name: str) -> Analytics | None:
        """The stored record, or None if it was never computed."""

    @abstractmethod
    def exists(self, map_name: str, scenario_name: str) -> bool: ...


class FileAnalyticsStore(AnalyticsStore):
    """Analytics on the local filesystem, one gzip file per scenario."""

    def __init__(self, data_dir: str | Path) -> None:
        self._root = Path(data_dir)

    def path_for(self, map_name: str, scenario_name: str) -> Path:
        return (
            self._root
            / check_name(map_name)
            / RESULTS_DIR
            / f"{check_name(scenario_name)}{RESULTS_SUFFIX}"
        )

    def save(self, map_name: str, scenario_name: str, analytics: Analytics) -> None:
        path = self.path_for(map_name, scenario_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = encode_analytics(analytics)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(
            "Saved analytics for %s/%s (%d bytes) to %s",
            map_name, scenario_name, len(payload), path,
        )

    def load(self, map_name: str, scenario_name: str) -> Analytics | None:
        path = self.path_for(map_name, scenario_name)
        if not path.exists():
            return None
        return decode_analytics(path.read_bytes())

    def exists(self, map_name: str, scenario_name: str) -> bool:
        return self.path_for(map_name, scenario_name).exists()


class InMemoryAnalyticsStore(AnalyticsStore):
    """In-memory implementation for tests. Stores the encoded bytes."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], bytes] = {}

    def save(self, map_name: str, scenario_name: str, analytics: Analytics) -> None:
        self._records[(map_name, scenario_name)] = encode_analytics(analytics)

    def load(self, map_name: str, scenario_name: str) -> Analytics | None:
        raw = self._records.get((map_name, scenario_name))
        return None if raw is None else decode_analytics(raw)

    def exists(self, map_name: str, scenario_name: str) -> bool:
        return (map_name, scenario_name) in self._records

    def keys(self) -> list[tuple[str, str]]:
        return sorted(self._records)
