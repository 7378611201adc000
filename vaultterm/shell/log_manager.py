"""
Log management system for terminal messages and debugging.

This module collects the `LogMessage` events every component publishes,
keeps them in a bounded buffer with categorization and filtering, and can
dump the buffer to a timestamped file.
"""
import os
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Optional, TYPE_CHECKING

from ..core.events import EventType, LogMessage as LogEvent

if TYPE_CHECKING:
    from ..core.events import EventManager, TerminalEvent


class LogCategory(Enum):
    """Categories for log messages."""
    SYSTEM = auto()      # Startup, shutdown, configuration
    COMMAND = auto()     # Command registration and execution
    CONTEXT = auto()     # Context registration and switching
    FILESYSTEM = auto()  # Virtual filesystem changes
    STATE = auto()       # Progression state and saves
    NARRATIVE = auto()   # Narrative loading and progress
    INPUT = auto()       # Input handling
    DEBUG = auto()
    WARNING = auto()
    ERROR = auto()


class LogLevel(Enum):
    """Log levels for filtering."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @classmethod
    def parse(cls, name: str, default: "LogLevel") -> "LogLevel":
        try:
            return cls[str(name).upper()]
        except KeyError:
            return default


CATEGORY_TAGS = {
    LogCategory.SYSTEM: "SYS",
    LogCategory.COMMAND: "CMD",
    LogCategory.CONTEXT: "CTX",
    LogCategory.FILESYSTEM: "FS",
    LogCategory.STATE: "STA",
    LogCategory.NARRATIVE: "NAR",
    LogCategory.INPUT: "INP",
    LogCategory.DEBUG: "DBG",
    LogCategory.WARNING: "WRN",
    LogCategory.ERROR: "ERR",
}


@dataclass
class LogEntry:
    """A single log message with metadata."""
    text: str
    category: LogCategory
    level: LogLevel = LogLevel.INFO
    source: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def format(self, include_timestamp: bool = False, include_category: bool = True) -> str:
        """Format the message for display."""
        parts = []

        if include_timestamp:
            parts.append(f"[{self.timestamp.strftime('%H:%M:%S')}]")

        if include_category:
            parts.append(f"[{CATEGORY_TAGS.get(self.category, '???')}]")

        parts.append(self.text)
        return " ".join(parts)


class LogManager:
    """Manages terminal logging with categorization and filtering."""

    def __init__(
        self,
        event_manager: "EventManager",
        max_messages: int = 1000,
        default_level: LogLevel = LogLevel.INFO,
        log_dir: str = "logs",
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
        self.enabled_categories = set(LogCategory)
        self.enabled_categories.discard(LogCategory.DEBUG)
        self.event_manager = event_manager
        self.log_dir = log_dir

        if default_level == LogLevel.DEBUG:
            self.enabled_categories.add(LogCategory.DEBUG)

        self._setup_event_subscriptions()

    def _setup_event_subscriptions(self) -> None:
        self.event_manager.subscribe(
            EventType.LOG_MESSAGE,
            self._handle_log_message_event,
            subscriber_name="LogManager.log_message"
        )
        self.event_manager.subscribe(
            EventType.LOG_SAVE_REQUESTED,
            self._handle_log_save_request,
            subscriber_name="LogManager.log_save_request"
        )

    def _handle_log_message_event(self, event: "TerminalEvent") -> None:
        if not isinstance(event, LogEvent):
            return

        level = LogLevel.parse(event.level, LogLevel.INFO)
        try:
            category = LogCategory[event.category.upper()]
        except (KeyError, AttributeError):
            category = LogCategory.SYSTEM

        self.messages.append(LogEntry(text=event.message, category=category,
                                      level=level, source=event.source))

    def _handle_log_save_request(self, event: "TerminalEvent") -> None:
        self.save_log_to_file()

    def log(self, text: str, category: LogCategory = LogCategory.SYSTEM,
            level: LogLevel = LogLevel.INFO) -> None:
        self.messages.append(LogEntry(text=text, category=category, level=level, source="LogManager"))

    def system(self, text: str) -> None:
        self.log(text, LogCategory.SYSTEM)

    def debug(self, text: str) -> None:
        self.log(text, LogCategory.DEBUG, LogLevel.DEBUG)

    def warning(self, text: str) -> None:
        self.log(text, LogCategory.WARNING, LogLevel.WARNING)

    def error(self, text: str) -> None:
        self.log(text, LogCategory.ERROR, LogLevel.ERROR)

    def get_messages(self, count: Optional[int] = None,
                     categories: Optional[set[LogCategory]] = None) -> list[LogEntry]:
        """Get recent messages, optionally filtered by category.

        Args:
            count: Maximum number of messages to return (None for all)
            categories: Set of categories to include (None for all enabled,
                subject to the current log level)

        Returns:
            List of recent messages, oldest first
        """
        if categories:
            filtered = [msg for msg in self.messages
                        if msg.category in categories and msg.category in self.enabled_categories]
        else:
            filtered = [msg for msg in self.messages
                        if msg.category in self.enabled_categories
                        and msg.level.value >= self.log_level.value]

        if count is not None and count < len(filtered):
            return filtered[-count:]
        return filtered

    def clear(self) -> None:
        self.messages.clear()

    def enable_category(self, category: LogCategory) -> None:
        self.enabled_categories.add(category)

    def disable_category(self, category: LogCategory) -> None:
        self.enabled_categories.discard(category)

    def set_log_level(self, level: LogLevel) -> None:
        self.log_level = level

    def is_debug_enabled(self) -> bool:
        return (LogCategory.DEBUG in self.enabled_categories and
                self.log_level == LogLevel.DEBUG)

    def toggle_debug(self) -> bool:
        """Toggle debug message visibility; returns the new state."""
        if self.is_debug_enabled():
            self.disable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.INFO)
        else:
            self.enable_category(LogCategory.DEBUG)
            self.set_log_level(LogLevel.DEBUG)
        return self.is_debug_enabled()

    def save_log_to_file(self) -> Optional[str]:
        """Save all messages to a timestamped log file.

        Returns:
            The written file path, or None if the save failed
        """
        try:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            os.makedirs(self.log_dir, exist_ok=True)
            filepath = os.path.join(self.log_dir, f"log_{timestamp}.log")

            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Vault-Tec Terminal - Session Log\n")
                f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
                f.write("=" * 60 + "\n\n")

                if not self.messages:
                    f.write("No messages to save.\n")
                else:
                    # every buffered message, regardless of the active filters
                    for msg in self.messages:
                        timestamp_str = msg.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
                        f.write(f"[{timestamp_str}] [{msg.category.name}] [{msg.level.name}] {msg.text}\n")

            self.system(f"Session log saved to {filepath}")
            return filepath

        except OSError as e:
            self.error(f"Failed to save log file: {e}")
            return None
