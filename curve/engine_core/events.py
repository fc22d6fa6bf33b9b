"""
Event Feed - Typed publish/subscribe for game events.

Collaborators (renderers, logs, sound) subscribe to the feed instead of
polling state. Delivery is synchronous and in subscription order; a
subscriber that raises is logged and skipped.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable
import logging
import time

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Every event the engine can emit."""
    GAME_STARTED = "game_started"
    GAME_ENDED = "game_ended"
    PHASE_CHANGED = "phase_changed"
    TURN_ENDED = "turn_ended"

    # Setup
    SETUP_PHASE_ENTERED = "setup_phase_entered"
    STARTING_UNIT_PLACED = "starting_unit_placed"

    # Units
    UNIT_CREATED = "unit_created"
    UNIT_PLAYED = "unit_played"
    UNIT_ATTACKED = "unit_attacked"
    UNIT_DIED = "unit_died"
    UNIT_ADVANCED = "unit_advanced"
    UNIT_MOVED = "unit_moved"
    UNIT_PUSHED = "unit_pushed"
    UNIT_PULLED = "unit_pulled"
    UNIT_TELEPORTED = "unit_teleported"
    UNIT_ROOTED = "unit_rooted"
    ROOT_EXPIRED = "root_expired"
    UNIT_RESURRECTED = "unit_resurrected"
    SPAWN_TILE_ATTACKED = "spawn_tile_attacked"

    # Effects
    SPELL_PLAYED = "spell_played"
    DAMAGE_DEALT = "damage_dealt"
    HEALING_DONE = "healing_done"
    BUFF_APPLIED = "buff_applied"
    COST_REDUCTION_APPLIED = "cost_reduction_applied"
    PLAYER_DEFEATED = "player_defeated"

    # Cards
    CARD_DRAWN = "card_drawn"
    CARD_BURNED = "card_burned"
    CARD_DISCARDED = "card_discarded"
    CARD_RETURNED_TO_HAND = "card_returned_to_hand"
    FATIGUE_DAMAGE = "fatigue_damage"

    # Interactive targeting
    TARGETING_MODE_ENTERED = "targeting_mode_entered"
    TARGETING_MODE_EXITED = "targeting_mode_exited"


@dataclass(frozen=True)
class GameEvent:
    """One emitted event: type tag, acting player, payload, timestamp."""
    event_type: EventType
    player_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


EventHandler = Callable[[GameEvent], None]


@dataclass(eq=False)
class Subscription:
    """Handle returned by subscribe(); call unsubscribe() to stop delivery."""
    feed: EventFeed
    handler: EventHandler
    event_types: frozenset[EventType] | None = None
    active: bool = True

    def wants(self, event_type: EventType) -> bool:
        return self.event_types is None or event_type in self.event_types

    def unsubscribe(self) -> None:
        if self.active:
            self.feed._remove(self)
            self.active = False


class EventFeed:
    """Synchronous observer channel with any number of subscribers."""

    def __init__(self):
        self._subscriptions: list[Subscription] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_types: EventType | Iterable[EventType] | None = None,
    ) -> Subscription:
        """
        Register a handler.

        event_types limits delivery to the given type(s); None means all.
        """
        if isinstance(event_types, EventType):
            types = frozenset({event_types})
        elif event_types is None:
            types = None
        else:
            types = frozenset(event_types)
        subscription = Subscription(feed=self, handler=handler, event_types=types)
        self._subscriptions.append(subscription)
        return subscription

    def emit(self, event: GameEvent) -> None:
        logger.debug("event %s player=%s %s", event.event_type.value, event.player_id, event.payload)
        # Copy so handlers may unsubscribe during delivery
        for subscription in list(self._subscriptions):
            if not subscription.active or not subscription.wants(event.event_type):
                continue
            try:
                subscription.handler(event)
            except Exception:
                logger.exception(
                    "Subscriber %r failed on %s", subscription.handler, event.event_type.value
                )

    def clear(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
