"""Tests for the static challenge catalog."""

import pytest

from tripbench.catalog.challenges import all_challenges, find_by_alias
from tripbench.models.gameplay import GameplayKind


class TestAllChallenges:
    def test_categories_sorted(self) -> None:
        categories = list(all_challenges(dev=True))
        assert categories == sorted(categories)

    def test_dev_categories_hidden(self) -> None:
        assert list(all_challenges(dev=False)) == ["Fix traffic signals"]
        assert len(all_challenges(dev=True)) == 4

    def test_aliases_unique(self) -> None:
        aliases = [c.alias for cs in all_challenges(dev=True).values() for c in cs]
        assert len(aliases) == len(set(aliases))

    def test_every_challenge_has_an_objective_kind(self) -> None:
        kinds = {c.gameplay.kind for cs in all_challenges(dev=True).values() for c in cs}
        assert GameplayKind.FREEFORM not in kinds
        assert GameplayKind.PLAY_SCENARIO not in kinds


class TestFindByAlias:
    def test_found(self) -> None:
        challenge = find_by_alias("trafficsig/main")
        assert challenge.map_name == "montlake"
        assert challenge.gameplay.kind == GameplayKind.FIX_TRAFFIC_SIGNALS

    def test_dev_only_alias_hidden(self) -> None:
        assert find_by_alias("gridlock").gameplay.kind == GameplayKind.CREATE_GRIDLOCK
        with pytest.raises(KeyError):
            find_by_alias("gridlock", dev=False)

    def test_unknown(self) -> None:
        with pytest.raises(KeyError):
            find_by_alias("nope")
