"""Event system for publisher-subscriber communication.

This package contains the event-driven plumbing of the terminal:
- event_manager.py: Publisher-subscriber event routing and coordination
- events.py: Event definitions for inter-component communication
"""

from .event_manager import EventManager, QueuedEvent
from .events import (
    TerminalEvent,
    EventType,
    ContextRegistered,
    ContextChanged,
    CommandRegistered,
    CommandUnregistered,
    CommandRegistryCleared,
    CommandExecuted,
    TerminalOutput,
    TerminalClear,
    TerminalGlitch,
    DirectoryChanged,
    FileRead,
    FileWritten,
    DirectoryCreated,
    PathDeleted,
    FlagSet,
    FlagRemoved,
    InventoryUpdated,
    CredentialsDiscovered,
    SystemVisited,
    AchievementUnlocked,
    StateSaved,
    StateLoaded,
    StateReset,
    NarrativeLoaded,
    MinigameStarted,
    LogMessage,
    LogSaveRequested,
    ManagerInitialized,
)

__all__ = [
    "EventManager",
    "QueuedEvent",
    "TerminalEvent",
    "EventType",
    "ContextRegistered",
    "ContextChanged",
    "CommandRegistered",
    "CommandUnregistered",
    "CommandRegistryCleared",
    "CommandExecuted",
    "TerminalOutput",
    "TerminalClear",
    "TerminalGlitch",
    "DirectoryChanged",
    "FileRead",
    "FileWritten",
    "DirectoryCreated",
    "PathDeleted",
    "FlagSet",
    "FlagRemoved",
    "InventoryUpdated",
    "CredentialsDiscovered",
    "SystemVisited",
    "AchievementUnlocked",
    "StateSaved",
    "StateLoaded",
    "StateReset",
    "NarrativeLoaded",
    "MinigameStarted",
    "LogMessage",
    "LogSaveRequested",
    "ManagerInitialized",
]
