"""Static challenge catalog.

Challenges are immutable catalog entries grouped by category. Categories
still being tuned are only listed in dev mode.
"""

from tripbench.models.common import TripMode
from tripbench.models.gameplay import Challenge, GameplayMode


def _stable_challenges() -> dict[str, list[Challenge]]:
    return {
        "Fix traffic signals": [
            Challenge(
                title="Tutorial 1",
                description=("Add or remove a dedicated left phase",),
                map_name="signal_single",
                alias="trafficsig/tut1",
                gameplay=GameplayMode.fix_traffic_signals_tutorial(0),
            ),
            Challenge(
                title="Tutorial 2",
                description=("Deal with heavy foot traffic",),
                map_name="signal_single",
                alias="trafficsig/tut2",
                gameplay=GameplayMode.fix_traffic_signals_tutorial(1),
            ),
            Challenge(
                title="The real challenge!",
                description=(
                    "A city-wide power surge knocked out all of the traffic signals!",
                    "Their timing has been reset to default settings, and drivers are stuck.",
                    "It's up to you to repair the signals, choosing appropriate turn phases "
                    "and timing.",
                    "",
                    "Objective: Reduce the average trip time by at least 30s",
                ),
                map_name="montlake",
                alias="trafficsig/main",
                gameplay=GameplayMode.fix_traffic_signals(),
            ),
        ],
    }


def _dev_challenges() -> dict[str, list[Challenge]]:
    return {
        "Speed up a bus route (WIP)": [
            Challenge(
                title="Route 43 in the small Montlake area",
                description=(
                    "Decrease the average waiting time between all of route 43's stops "
                    "by at least 30s",
                ),
                map_name="montlake",
                alias="bus/43_montlake",
                gameplay=GameplayMode.optimize_bus("43"),
            ),
            Challenge(
                title="Route 43 in a larger area",
                description=(
                    "Decrease the average waiting time between all of 43's stops by at least 30s",
                ),
                map_name="23rd",
                alias="bus/43_23rd",
                gameplay=GameplayMode.optimize_bus("43"),
            ),
        ],
        "Cause gridlock (WIP)": [
            Challenge(
                title="Gridlock all of the everything",
                description=("Make traffic as BAD as possible!",),
                map_name="montlake",
                alias="gridlock",
                gameplay=GameplayMode.create_gridlock(),
            ),
        ],
        "Playing favorites (WIP)": [
            Challenge(
                title="Speed up all bike trips",
                description=("Reduce the 50%ile trip times of bikes by at least 1 minute",),
                map_name="montlake",
                alias="fave/bike",
                gameplay=GameplayMode.faster_trips(TripMode.BIKE),
            ),
            Challenge(
                title="Speed up all car trips",
                description=("Reduce the 50%ile trip times of drivers by at least 5 minutes",),
                map_name="montlake",
                alias="fave/car",
                gameplay=GameplayMode.faster_trips(TripMode.DRIVE),
            ),
        ],
    }


def all_challenges(dev: bool) -> dict[str, list[Challenge]]:
    """Challenges by category, categories in sorted order."""
    tree = _stable_challenges()
    if dev:
        tree.update(_dev_challenges())
    return {category: tree[category] for category in sorted(tree)}


def find_by_alias(alias: str, dev: bool = True) -> Challenge:
    """Look up a challenge by its stable alias.

    Raises:
        KeyError: If no challenge has that alias.
    """
    for challenges in all_challenges(dev).values():
        for challenge in challenges:
            if challenge.alias == alias:
                return challenge
    msg = f"No challenge with alias {alias!r}"
    raise KeyError(msg)
