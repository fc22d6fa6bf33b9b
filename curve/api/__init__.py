"""
API Module - Request/response surface for UI collaborators.

Renderers, menus and network adapters talk to the engine through here:
1. Describe a match with GameSetupRequest (decks, custom cards, seed)
2. Issue commands with primitive arguments (hand index, row/col, ids)
3. Read GameStateView snapshots and CommandResponse results
4. Subscribe to EventView notifications

Card and deck models double as the JSON format for authored files.
"""

from .schemas import (
    # Requests
    GameSetupRequest,
    DeckSourceModel,
    DeckEntryModel,
    # Responses
    CommandResponse,
    DeckReport,
    GameStateView,
    EventView,
    # Shared
    CardDefinitionModel,
    EffectModel,
    TargetFilterModel,
    CardView,
    PlayerView,
    PositionModel,
    TargetingView,
    UnitView,
    # Enums
    DeckType,
)
from .service import GameService, Listener, state_view, event_view

__all__ = [
    # Requests
    "GameSetupRequest",
    "DeckSourceModel",
    "DeckEntryModel",
    # Responses
    "CommandResponse",
    "DeckReport",
    "GameStateView",
    "EventView",
    # Shared
    "CardDefinitionModel",
    "EffectModel",
    "TargetFilterModel",
    "CardView",
    "PlayerView",
    "PositionModel",
    "TargetingView",
    "UnitView",
    "DeckType",
    # Service
    "GameService",
    "Listener",
    "state_view",
    "event_view",
]
