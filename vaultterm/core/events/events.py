"""Terminal system events.

This module defines every event that terminal components can publish or
subscribe to. Events are immutable dataclasses tagged with an `EventType`;
subscribers register per type on the `EventManager`.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

if TYPE_CHECKING:
    from ..dispatch.base_context import BaseContext


class EventType(Enum):
    """Types of terminal events that components can subscribe to."""
    # Context Events
    CONTEXT_REGISTERED = auto()
    CONTEXT_CHANGED = auto()

    # Command Events
    COMMAND_REGISTERED = auto()
    COMMAND_UNREGISTERED = auto()
    COMMAND_REGISTRY_CLEARED = auto()
    COMMAND_EXECUTED = auto()

    # Terminal Output Events
    TERMINAL_OUTPUT = auto()
    TERMINAL_CLEAR = auto()
    TERMINAL_GLITCH = auto()

    # Filesystem Events
    DIRECTORY_CHANGED = auto()
    FILE_READ = auto()
    FILE_WRITTEN = auto()
    DIRECTORY_CREATED = auto()
    PATH_DELETED = auto()

    # Progression Events
    FLAG_SET = auto()
    FLAG_REMOVED = auto()
    INVENTORY_UPDATED = auto()
    CREDENTIALS_DISCOVERED = auto()
    SYSTEM_VISITED = auto()
    ACHIEVEMENT_UNLOCKED = auto()
    STATE_SAVED = auto()
    STATE_LOADED = auto()
    STATE_RESET = auto()

    # Narrative Events
    NARRATIVE_LOADED = auto()
    MINIGAME_STARTED = auto()

    # Logging Events
    LOG_MESSAGE = auto()
    LOG_SAVE_REQUESTED = auto()

    # System Events
    MANAGER_INITIALIZED = auto()


@dataclass(frozen=True)
class TerminalEvent(ABC):
    """Base class for all terminal events."""
    event_type: EventType = field(init=False)


def _tag(event: TerminalEvent, event_type: EventType) -> None:
    # frozen dataclasses need object.__setattr__ for the derived tag
    object.__setattr__(event, 'event_type', event_type)


# Context Events
@dataclass(frozen=True)
class ContextRegistered(TerminalEvent):
    """Event emitted when a context is added to the context manager."""
    context_id: str

    def __post_init__(self):
        _tag(self, EventType.CONTEXT_REGISTERED)


@dataclass(frozen=True)
class ContextChanged(TerminalEvent):
    """Event emitted when the active context or its prompt changes."""
    context_id: Optional[str]
    prompt: str
    context: Optional["BaseContext"] = None

    def __post_init__(self):
        _tag(self, EventType.CONTEXT_CHANGED)


# Command Events
@dataclass(frozen=True)
class CommandRegistered(TerminalEvent):
    """Event emitted when a command is added to the registry."""
    name: str

    def __post_init__(self):
        _tag(self, EventType.COMMAND_REGISTERED)


@dataclass(frozen=True)
class CommandUnregistered(TerminalEvent):
    """Event emitted when a command is removed from the registry."""
    name: str

    def __post_init__(self):
        _tag(self, EventType.COMMAND_UNREGISTERED)


@dataclass(frozen=True)
class CommandRegistryCleared(TerminalEvent):
    def __post_init__(self):
        _tag(self, EventType.COMMAND_REGISTRY_CLEARED)


@dataclass(frozen=True)
class CommandExecuted(TerminalEvent):
    """Event emitted after the input handler ran a command line."""
    command: str
    success: bool

    def __post_init__(self):
        _tag(self, EventType.COMMAND_EXECUTED)


# Terminal Output Events
@dataclass(frozen=True)
class TerminalOutput(TerminalEvent):
    """Event carrying text for the renderer.

    `style` is a presentation tag such as "error", "info" or "success".
    """
    text: str
    style: str = ""

    def __post_init__(self):
        _tag(self, EventType.TERMINAL_OUTPUT)


@dataclass(frozen=True)
class TerminalClear(TerminalEvent):
    def __post_init__(self):
        _tag(self, EventType.TERMINAL_CLEAR)


@dataclass(frozen=True)
class TerminalGlitch(TerminalEvent):
    duration_ms: int = 300

    def __post_init__(self):
        _tag(self, EventType.TERMINAL_GLITCH)


# Filesystem Events
@dataclass(frozen=True)
class DirectoryChanged(TerminalEvent):
    """Event emitted when the virtual working directory changes."""
    path: str

    def __post_init__(self):
        _tag(self, EventType.DIRECTORY_CHANGED)


@dataclass(frozen=True)
class FileRead(TerminalEvent):
    path: str

    def __post_init__(self):
        _tag(self, EventType.FILE_READ)


@dataclass(frozen=True)
class FileWritten(TerminalEvent):
    path: str
    content: str

    def __post_init__(self):
        _tag(self, EventType.FILE_WRITTEN)


@dataclass(frozen=True)
class DirectoryCreated(TerminalEvent):
    path: str

    def __post_init__(self):
        _tag(self, EventType.DIRECTORY_CREATED)


@dataclass(frozen=True)
class PathDeleted(TerminalEvent):
    path: str

    def __post_init__(self):
        _tag(self, EventType.PATH_DELETED)


# Progression Events
@dataclass(frozen=True)
class FlagSet(TerminalEvent):
    """Event emitted when a narrative flag is set for the first time."""
    flag: str

    def __post_init__(self):
        _tag(self, EventType.FLAG_SET)


@dataclass(frozen=True)
class FlagRemoved(TerminalEvent):
    flag: str

    def __post_init__(self):
        _tag(self, EventType.FLAG_REMOVED)


@dataclass(frozen=True)
class InventoryUpdated(TerminalEvent):
    """Event emitted when an item is added to or removed from inventory."""
    item: str
    action: str  # "add" or "remove"

    def __post_init__(self):
        _tag(self, EventType.INVENTORY_UPDATED)


@dataclass(frozen=True)
class CredentialsDiscovered(TerminalEvent):
    system: str
    credentials: dict[str, Any]

    def __post_init__(self):
        _tag(self, EventType.CREDENTIALS_DISCOVERED)


@dataclass(frozen=True)
class SystemVisited(TerminalEvent):
    system: str

    def __post_init__(self):
        _tag(self, EventType.SYSTEM_VISITED)


@dataclass(frozen=True)
class AchievementUnlocked(TerminalEvent):
    """Event emitted when an achievement is granted."""
    achievement: str

    def __post_init__(self):
        _tag(self, EventType.ACHIEVEMENT_UNLOCKED)


@dataclass(frozen=True)
class StateSaved(TerminalEvent):
    slot: int

    def __post_init__(self):
        _tag(self, EventType.STATE_SAVED)


@dataclass(frozen=True)
class StateLoaded(TerminalEvent):
    slot: int

    def __post_init__(self):
        _tag(self, EventType.STATE_LOADED)


@dataclass(frozen=True)
class StateReset(TerminalEvent):
    def __post_init__(self):
        _tag(self, EventType.STATE_RESET)


# Narrative Events
@dataclass(frozen=True)
class NarrativeLoaded(TerminalEvent):
    narrative: str

    def __post_init__(self):
        _tag(self, EventType.NARRATIVE_LOADED)


@dataclass(frozen=True)
class MinigameStarted(TerminalEvent):
    """Event emitted by the `hack` command to start the cracking minigame."""
    kind: str
    target: str

    def __post_init__(self):
        _tag(self, EventType.MINIGAME_STARTED)


# Logging Events
@dataclass(frozen=True)
class LogMessage(TerminalEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    level: str
    source: str

    def __post_init__(self):
        _tag(self, EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class LogSaveRequested(TerminalEvent):
    def __post_init__(self):
        _tag(self, EventType.LOG_SAVE_REQUESTED)


# System Events
@dataclass(frozen=True)
class ManagerInitialized(TerminalEvent):
    """Event emitted when a manager finishes initialization."""
    manager_name: str

    def __post_init__(self):
        _tag(self, EventType.MANAGER_INITIALIZED)
