"""Tests for the demo seed script."""

from scripts.seed import DEMO_MAPS, main, seed_maps
from tripbench.stores.objects import FileObjectStore, InMemoryObjectStore


class TestSeedMaps:
    def test_creates_map_and_weekday(self) -> None:
        store = InMemoryObjectStore()
        created = seed_maps(store, ["signal_single"], rng_seed=42)
        assert created == ["signal_single/map", "signal_single/weekday"]
        rows, cols, people = DEMO_MAPS["signal_single"]
        assert len(store.load_map("signal_single").intersections) == rows * cols
        assert len(store.load_scenario("signal_single", "weekday").trips) == 2 * people

    def test_idempotent(self) -> None:
        store = InMemoryObjectStore()
        seed_maps(store, ["signal_single"], rng_seed=42)
        before = store.load_scenario("signal_single", "weekday")
        assert seed_maps(store, ["signal_single"], rng_seed=7) == []
        assert store.load_scenario("signal_single", "weekday") == before

    def test_unknown_map_gets_default_grid(self) -> None:
        store = InMemoryObjectStore()
        seed_maps(store, ["elsewhere"], rng_seed=1)
        assert store.list_maps() == ["elsewhere"]


class TestMain:
    def test_writes_catalog_maps(self, tmp_path) -> None:
        assert main(["--data-dir", str(tmp_path)]) == 0
        assert FileObjectStore(tmp_path).list_maps() == sorted(DEMO_MAPS)
