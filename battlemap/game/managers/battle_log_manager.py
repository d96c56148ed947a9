"""
Battle log for the combat timeline.

Records what happened in each round from the player's point of view:
movements, spells, attacks and round boundaries. Entries are built from
execution events on the event bus, so the log never reaches into the pipeline.
"""
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional, TYPE_CHECKING

from ...core.data import ActionKind, LogSeverity

if TYPE_CHECKING:
    from ...core.events import EventManager, GameEvent


ENTRY_MOVEMENT = "movement"
ENTRY_SPELL = "spell"
ENTRY_ACTION = "action"
ENTRY_ROUND = "round"

TokenNameResolver = Callable[[str], Optional[str]]


@dataclass
class BattleLogEntry:
    """One line of the battle log."""
    round_number: int
    event_number: int
    entry_type: str
    message: str
    token_id: Optional[str] = None
    token_name: Optional[str] = None
    severity: LogSeverity = LogSeverity.NORMAL
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self) -> str:
        actor = f"{self.token_name}: " if self.token_name else ""
        return f"[R{self.round_number}E{self.event_number}] {actor}{self.message}"


class BattleLogManager:
    """Keeps a bounded battle log fed by timeline events."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_entries: int = 500,
        token_name_resolver: Optional[TokenNameResolver] = None
    ):
        """Initialize the battle log.

        Args:
            event_manager: Event manager to subscribe to (required)
            max_entries: Maximum number of entries kept
            token_name_resolver: Maps token ids to display names
        """
        self.event_manager = event_manager
        self.entries: deque[BattleLogEntry] = deque(maxlen=max_entries)
        self.token_name_resolver = token_name_resolver

        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        """Set up event subscriptions for battle logging."""
        from ...core.events import EventType

        self.event_manager.subscribe(
            EventType.ACTION_EXECUTED,
            self._handle_action_executed,
            subscriber_name="BattleLogManager.action_executed"
        )
        self.event_manager.subscribe(
            EventType.ACTION_FAILED,
            self._handle_action_failed,
            subscriber_name="BattleLogManager.action_failed"
        )
        self.event_manager.subscribe(
            EventType.ROUND_STARTED,
            self._handle_round_started,
            subscriber_name="BattleLogManager.round_started"
        )
        self.event_manager.subscribe(
            EventType.TIMELINE_CLEARED,
            self._handle_timeline_cleared,
            subscriber_name="BattleLogManager.timeline_cleared"
        )

    def _token_name(self, token_id: Optional[str]) -> Optional[str]:
        if token_id is None:
            return None
        if self.token_name_resolver:
            name = self.token_name_resolver(token_id)
            if name:
                return name
        return token_id

    def _handle_action_executed(self, event: "GameEvent") -> None:
        from ...core.events import ActionExecuted
        if not isinstance(event, ActionExecuted):
            return

        details = dict(event.details)
        if event.kind == ActionKind.MOVE.value:
            entry_type = ENTRY_MOVEMENT
            severity = LogSeverity.LOW
            message = "Moved to new position"
        elif event.kind == ActionKind.SPELL.value:
            entry_type = ENTRY_SPELL
            severity = LogSeverity.NORMAL
            message = event.description
            affected = details.get("affected_tokens") or []
            if affected:
                names = ", ".join(self._token_name(t) or t for t in affected)
                message = f"{message} affecting {names}"
        elif event.kind == ActionKind.ATTACK.value:
            entry_type = ENTRY_ACTION
            severity = LogSeverity.HIGH if details.get("critical") else LogSeverity.NORMAL
            target = details.get("target_token_id")
            target_text = f"on {self._token_name(target)}" if target else "at position"
            message = f"{event.description} {target_text}"
        else:
            entry_type = ENTRY_ACTION
            severity = LogSeverity.LOW
            message = event.description

        self.add_entry(BattleLogEntry(
            round_number=event.round_number,
            event_number=event.event_number,
            entry_type=entry_type,
            message=message,
            token_id=event.token_id,
            token_name=self._token_name(event.token_id),
            severity=severity,
            details=details,
        ))

    def _handle_action_failed(self, event: "GameEvent") -> None:
        from ...core.events import ActionFailed
        if isinstance(event, ActionFailed):
            self.add_entry(BattleLogEntry(
                round_number=event.round_number,
                event_number=event.event_number,
                entry_type=ENTRY_ACTION,
                message=f"{event.kind} failed: {event.error}",
                token_id=event.token_id,
                token_name=self._token_name(event.token_id),
                severity=LogSeverity.HIGH,
            ))

    def _handle_round_started(self, event: "GameEvent") -> None:
        from ...core.events import RoundStarted
        if isinstance(event, RoundStarted):
            self.add_entry(BattleLogEntry(
                round_number=event.previous_round,
                event_number=event.event_number,
                entry_type=ENTRY_ROUND,
                message=f"Round {event.previous_round} ended",
                severity=LogSeverity.HIGH,
            ))

    def _handle_timeline_cleared(self, event: "GameEvent") -> None:
        self.clear()

    def add_entry(self, entry: BattleLogEntry) -> None:
        """Append an entry, dropping the oldest when full."""
        self.entries.append(entry)

    def get_entries(self, round_number: Optional[int] = None,
                    entry_type: Optional[str] = None) -> list[BattleLogEntry]:
        """Entries in log order, optionally limited to one round or type."""
        return [
            entry for entry in self.entries
            if (round_number is None or entry.round_number == round_number)
            and (entry_type is None or entry.entry_type == entry_type)
        ]

    def get_rounds(self) -> list[int]:
        """Round numbers that have at least one entry."""
        return sorted({entry.round_number for entry in self.entries})

    def format_log(self, round_number: Optional[int] = None) -> list[str]:
        return [entry.format() for entry in self.get_entries(round_number)]

    def clear(self) -> None:
        self.entries.clear()
