"""Duration rules for persistent effects.

Persistent spells and statuses are stamped with the round and event they were
created in. After every navigation the timeline asks this module which of them
have run out and deletes those from the object store.

Rules:
- duration 0: instant effect, never expired here (its animation removes it)
- rounds mode: expired once current_round >= round_created + duration
- events mode: expired once more than `duration` events have elapsed since
  creation, or as soon as the round changes
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .data import DurationMode

if TYPE_CHECKING:
    from .interfaces import ObjectStore, PersistentEffect


def is_expired(effect: "PersistentEffect", current_round: int, current_event: int) -> bool:
    """Check whether a persistent effect should be removed.

    Args:
        effect: The effect to evaluate
        current_round: Round number the timeline is at
        current_event: Event number the timeline is at

    Returns:
        True if the effect has run out
    """
    if effect.duration == 0:
        return False

    if effect.duration_mode == DurationMode.EVENTS:
        if effect.event_created is None:
            return False
        elapsed = current_event - effect.event_created
        return elapsed > effect.duration or effect.round_created != current_round

    if effect.round_created is None:
        return False
    return current_round >= effect.round_created + effect.duration


def remaining(effect: "PersistentEffect", current_round: int, current_event: int) -> Optional[int]:
    """Rounds or events left before the effect expires.

    Returns None for instant effects and effects without a creation stamp.
    """
    if effect.duration == 0:
        return None
    if is_expired(effect, current_round, current_event):
        return 0
    if effect.duration_mode == DurationMode.EVENTS:
        if effect.event_created is None:
            return None
        return effect.duration - (current_event - effect.event_created) + 1
    if effect.round_created is None:
        return None
    return effect.round_created + effect.duration - current_round


def find_expired(object_store: "ObjectStore", current_round: int, current_event: int) -> list[str]:
    """Ids of the persistent effects that have expired."""
    return [
        effect.id
        for effect in object_store.list_persistent_effects()
        if is_expired(effect, current_round, current_event)
    ]


def purge_expired(object_store: "ObjectStore", current_round: int, current_event: int) -> list[str]:
    """Delete expired persistent effects from the object store.

    Returns:
        Ids of the deleted effects
    """
    expired = find_expired(object_store, current_round, current_event)
    for effect_id in expired:
        object_store.delete_object(effect_id)
    return expired
