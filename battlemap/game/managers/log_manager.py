"""
Log management system for timeline messages and debugging.

This module provides centralized logging with categorization, filtering,
and bounded storage for display in the editor's log panel.
"""
import os
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from ...core.events import EventManager, GameEvent


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()     # System messages (initialization, loading, etc.)
    TIMELINE = auto()   # Cursor and round changes
    ACTION = auto()     # Action scheduling and execution
    MOVEMENT = auto()   # Token movement messages
    EFFECT = auto()     # Persistent effect lifecycle
    CONFIG = auto()     # Configuration loading
    DEBUG = auto()      # Debug messages
    WARNING = auto()    # Warning messages
    ERROR = auto()      # Error messages


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.TIMELINE: "TML",
    LogCategory.ACTION: "ACT",
    LogCategory.MOVEMENT: "MOV",
    LogCategory.EFFECT: "EFX",
    LogCategory.CONFIG: "CFG",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @classmethod
    def parse(cls, value: Any, default: Optional["LogLevel"] = None) -> "LogLevel":
        """Map a level name (any case) or LogLevel to a LogLevel."""
        if isinstance(value, LogLevel):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            return default if default is not None else cls.INFO


@dataclass
class LogEntry:
    """A single log message with metadata."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    round_number: Optional[int] = None
    event_number: Optional[int] = None
    source: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_timestamp: bool = False, include_category: bool = True) -> str:
        """Format the message for display."""
        parts = []

        if include_timestamp:
            time_str = self.timestamp.strftime("%H:%M:%S")
            parts.append(f"[{time_str}]")

        if include_category:
            tag = CATEGORY_TAGS.get(self.category, "???")
            parts.append(f"[{tag}]")

        if self.round_number is not None and self.event_number is not None:
            parts.append(f"R{self.round_number}E{self.event_number}")

        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Manages timeline logging with categorization and filtering."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        log_dir: str = "logs"
    ):
        """Initialize the log manager.

        Args:
            event_manager: Event manager for event-driven logging (required)
            max_messages: Maximum number of messages to store in the buffer
            default_level: Default log level for filtering
            log_dir: Directory that save_log_to_file writes into
        """
        self.messages: deque[LogEntry] = deque(maxlen=max_messages)
        self.log_level = default_level
        self.enabled_categories = set(LogCategory)  # All categories enabled by default
        self.event_manager = event_manager
        self.log_dir = log_dir

        # Category-specific minimum levels
        self.category_levels = {
            LogCategory.DEBUG: LogLevel.DEBUG,
            LogCategory.WARNING: LogLevel.WARNING,
            LogCategory.ERROR: LogLevel.ERROR,
        }

        # Set up event subscriptions (event manager is required)
        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        """Set up event subscriptions for centralized logging."""
        from ...core.events import EventType

        self.event_manager.subscribe(
            EventType.LOG_MESSAGE,
            self._handle_log_message_event,
            subscriber_name="LogManager.log_message"
        )

    def _handle_log_message_event(self, event: "GameEvent") -> None:
        """Handle log message events from the event system."""
        from ...core.events import LogMessage as LogEvent
        if isinstance(event, LogEvent):
            # Map event category string to LogCategory enum
            try:
                category = LogCategory[event.category.upper()]
            except (KeyError, AttributeError):
                category = LogCategory.SYSTEM

            level = LogLevel.parse(event.level)
            # Warnings and errors always land in their own categories
            if level == LogLevel.ERROR and category != LogCategory.ERROR:
                category = LogCategory.ERROR
            elif level == LogLevel.WARNING and category not in (LogCategory.WARNING, LogCategory.ERROR):
                category = LogCategory.WARNING

            self.messages.append(LogEntry(
                text=event.message,
                category=category,
                level=level,
                round_number=event.round_number,
                event_number=event.event_number,
                source=event.source,
            ))

    def handle_bus_debug(self, text: str) -> None:
        """Debug callback target for the event manager."""
        self.log(text, LogCategory.DEBUG, LogLevel.DEBUG)

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: LogLevel = LogLevel.INFO) -> None:
        """Add a message to the log.

        Args:
            text: The message text
            category: The category of the message
            level: Severity of the message
        """
        # Always store messages in the buffer for potential display/save later
        self.messages.append(LogEntry(text=text, category=category, level=level))

    # Convenience methods for common categories
    def system(self, text: str) -> None:
        """Log a system message."""
        self.log(text, LogCategory.SYSTEM)

    def timeline(self, text: str) -> None:
        """Log a timeline message."""
        self.log(text, LogCategory.TIMELINE)

    def debug(self, text: str) -> None:
        """Log a debug message."""
        self.log(text, LogCategory.DEBUG, LogLevel.DEBUG)

    def warning(self, text: str) -> None:
        """Log a warning message."""
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        """Log an error message."""
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    def _effective_level(self, entry: LogEntry) -> LogLevel:
        category_level = self.category_levels.get(entry.category, LogLevel.INFO)
        return entry.level if entry.level.value > category_level.value else category_level

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[set[LogCategory]] = None,
                     min_level: Optional[LogLevel] = None) -> list[LogEntry]:
        """Get recent messages, optionally filtered by category.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Set of categories to include (None for all enabled)
            min_level: Minimum level to include (None for the current log level)

        Returns:
            List of recent messages
        """
        threshold = min_level or self.log_level
        filtered = []
        for msg in self.messages:
            if msg.category not in self.enabled_categories:
                continue
            if categories and msg.category not in categories:
                continue
            if self._effective_level(msg).value < threshold.value:
                continue
            filtered.append(msg)

        # Return the most recent messages
        if count is not None and count < len(filtered):
            return filtered[-count:]
        return filtered

    def get_log_data(self) -> dict[str, Any]:
        """Formatted messages and status for a log panel."""
        return {
            'messages': [msg.format(include_timestamp=False, include_category=True)
                         for msg in self.get_messages()],
            'debug_enabled': self.is_debug_enabled(),
            'total_messages': len(self.messages)
        }

    def clear(self) -> None:
        """Clear all messages from the log."""
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        """Enable a log category."""
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        """Disable a log category."""
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        """Set the minimum log level."""
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        """Check if debug messages are currently enabled."""
        return (LogCategory.DEBUG in self.enabled_categories and
                self.log_level == LogLevel.DEBUG)

    def toggle_debug(self) -> None:
        """Toggle debug message visibility."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)

    def save_log_to_file(self) -> Optional[str]:
        """Save all messages to a timestamped log file.

        Returns:
            Path of the written file, or None if saving failed
        """
        try:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"timeline_{timestamp}.log"

            # Ensure logs directory exists
            os.makedirs(self.log_dir, exist_ok=True)
            filepath = os.path.join(self.log_dir, filename)

            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Battle Map Timeline - Log\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("=" * 60 + "\n\n")

                if not self.messages:
                    f.write("No messages to save.\n")
                else:
                    # Save ALL messages from buffer, ignoring current filters
                    for msg in self.messages:
                        timestamp_str = msg.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
                        f.write(f"[{timestamp_str}] [{msg.category.name}] [{msg.level.name}] {msg.text}\n")

            self.system(f"Timeline log saved to {filepath}")
            return filepath

        except OSError as e:
            self.error(f"Failed to save log file: {e}")
            return None
