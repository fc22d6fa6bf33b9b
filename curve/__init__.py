"""
Curve - Rules engine for a two-player lane battler.

Players deploy units onto a small grid; units march toward the enemy
spawn row on their own and fight whatever stands in front of them.
The engine provides:
- A declarative card effect DSL and the base card set
- The phase state machine and command validation
- Effect resolution with interactive targeting
- An event feed, snapshot history and a pydantic service layer
"""

__version__ = "0.1.0"
