"""Filter candidate edit sets down to those a gameplay mode permits."""

from collections.abc import Iterable

from tripbench.engine.gameplay_rules import allows
from tripbench.models.edits import MapEdits
from tripbench.models.gameplay import Challenge, GameplayMode
from tripbench.stores.objects import ObjectStore


def allowed_edit_sets(candidates: Iterable[MapEdits], mode: GameplayMode) -> list[MapEdits]:
    """Keep the candidates ``mode`` allows, in their original order. Never raises."""
    return [edits for edits in candidates if allows(mode, edits)]


def challenge_proposals(challenge: Challenge, edits_store: ObjectStore) -> list[MapEdits]:
    """Stored edit sets for the challenge's map that its mode allows."""
    return edits_store.list_edits(
        challenge.map_name, predicate=lambda edits: allows(challenge.gameplay, edits)
    )
