"""Manager systems for timeline coordination.

This package contains the manager classes that coordinate the combat timeline
and its logs through the event-driven architecture.
"""

from .battle_log_manager import BattleLogManager, BattleLogEntry
from .log_manager import LogManager, LogLevel, LogCategory, LogEntry
from .timeline_manager import TimelineManager

__all__ = [
    "BattleLogManager",
    "BattleLogEntry",
    "LogManager",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "TimelineManager",
]
