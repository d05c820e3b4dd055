"""Scenario modifier pipeline.

Modifiers are applied strictly in list order and are not commutative:
repeating days and then adding extra trips gives a different schedule than
the reverse. One PCG64 stream is derived from the seed per call and threaded
through every modifier, so equal inputs always give equal scenarios.

This is deterministic: no I/O besides scenario lookups for AddExtraTrips.
"""

import logging
from collections.abc import Sequence

import numpy as np

from tripbench.models.duration import DAY
from tripbench.models.scenario import (
    AddExtraTrips,
    ChangeMode,
    RepeatDays,
    Scenario,
    ScenarioModifier,
    Trip,
)
from tripbench.stores.objects import ObjectStore

logger = logging.getLogger(__name__)


def selection_size(n_matching: int, pct_ppl: int) -> int:
    """How many of ``n_matching`` trips a ChangeMode affects.

    Half-up rounding of ``n * pct / 100``, but at least one whenever any
    trip matches.
    """
    if n_matching == 0:
        return 0
    return max(1, (n_matching * pct_ppl * 2 + 100) // 200)


def change_mode(
    trips: Sequence[Trip], modifier: ChangeMode, rng: np.random.Generator
) -> list[Trip]:
    matching = [idx for idx, trip in enumerate(trips) if modifier.matches(trip)]
    count = selection_size(len(matching), modifier.pct_ppl)
    chosen = {matching[i] for i in rng.permutation(len(matching))[:count]}

    result: list[Trip] = []
    for idx, trip in enumerate(trips):
        if idx not in chosen:
            result.append(trip)
        elif modifier.to_mode is not None:
            result.append(trip.model_copy(update={"mode": modifier.to_mode}))
    return result


def repeat_days(trips: Sequence[Trip], modifier: RepeatDays) -> list[Trip]:
    """Day-major: all of day 0, then everything shifted by 24h, and so on."""
    result: list[Trip] = []
    for day in range(modifier.n):
        offset = DAY * day
        result.extend(
            trip if day == 0 else trip.model_copy(update={"departure": trip.departure + offset})
            for trip in trips
        )
    return result


def add_extra_trips(
    trips: Sequence[Trip],
    modifier: AddExtraTrips,
    map_name: str,
    scenario_store: ObjectStore,
) -> list[Trip]:
    """Append the sibling scenario's trips verbatim.

    Raises:
        ScenarioNotFoundError: If the source scenario is not stored for the map.
    """
    source = scenario_store.load_scenario(map_name, modifier.source_scenario_name)
    return [*trips, *source.trips]


def apply_modifiers(
    base: Scenario,
    modifiers: Sequence[ScenarioModifier],
    rng_seed: int,
    scenario_store: ObjectStore,
) -> Scenario:
    """Apply ``modifiers`` in order and return a new Scenario.

    The base scenario is never mutated and the result keeps its identity
    (map name and scenario name).

    Args:
        base: Scenario to transform.
        modifiers: Modifiers, applied first to last.
        rng_seed: Seed for the single random stream shared by all modifiers.
        scenario_store: Where AddExtraTrips looks up its source scenario.

    Raises:
        ScenarioNotFoundError: If an AddExtraTrips source is missing.
    """
    rng = np.random.default_rng(rng_seed)
    trips: list[Trip] = list(base.trips)

    for modifier in modifiers:
        before = len(trips)
        match modifier:
            case ChangeMode():
                trips = change_mode(trips, modifier, rng)
            case RepeatDays():
                trips = repeat_days(trips, modifier)
            case AddExtraTrips():
                trips = add_extra_trips(trips, modifier, base.map_name, scenario_store)
        logger.debug(
            "%s on %s/%s: %d -> %d trips",
            modifier.type, base.map_name, base.scenario_name, before, len(trips),
        )

    return base.with_trips(trips)
