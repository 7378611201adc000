"""Progression state with JSON save slots.

This module keeps everything the story depends on: narrative flags,
inventory, discovered credentials, visited systems, command history and
achievements. State lives in a :class:`ProgressState` dataclass; the
:class:`StateManager` mutates it, publishes progression events and persists
it to numbered slot files.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, TYPE_CHECKING, Union

from .events import (
    AchievementUnlocked,
    CredentialsDiscovered,
    EventType,
    FlagRemoved,
    FlagSet,
    InventoryUpdated,
    LogMessage,
    StateLoaded,
    StateReset,
    StateSaved,
    SystemVisited,
)

if TYPE_CHECKING:
    from .events import EventManager, TerminalEvent


@dataclass
class ProgressState:
    """Serializable progression state."""

    flags: list[str] = field(default_factory=list)
    inventory: list[str] = field(default_factory=list)
    discovered_credentials: dict[str, dict[str, Any]] = field(default_factory=dict)
    visited_systems: list[str] = field(default_factory=list)
    command_history: list[dict[str, Any]] = field(default_factory=list)
    achievements: list[str] = field(default_factory=list)
    current_context: str = "localhost"
    play_time: float = 0.0
    custom_data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressState:
        known = cls.__dataclass_fields__.keys()
        return cls(**{key: value for key, value in data.items() if key in known})


class StateManager:
    """Owns the progression state and its save slots."""

    def __init__(
        self,
        event_manager: EventManager,
        save_dir: Union[str, Path] = "saves",
        max_history: int = 100,
        autosave_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.event_manager = event_manager
        self.save_dir = Path(save_dir)
        self.max_history = max_history
        self.autosave_seconds = autosave_seconds
        self._clock = clock

        self.state = ProgressState()
        self._session_start = self._clock()
        self._last_save = self._session_start

        self.event_manager.subscribe(
            EventType.COMMAND_EXECUTED,
            self._handle_command_executed,
            subscriber_name="StateManager.command_executed",
        )

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="STATE", level=level, source="StateManager"),
            source="StateManager",
        )

    def _publish(self, event: TerminalEvent) -> None:
        self.event_manager.publish(event, source="StateManager")

    def _handle_command_executed(self, event: TerminalEvent) -> None:
        command = getattr(event, "command", "")
        self.add_to_history(command)

    # Flags

    def set_flag(self, flag: str) -> None:
        if flag in self.state.flags:
            return
        self.state.flags.append(flag)
        self._publish(FlagSet(flag=flag))
        self._emit_log(f"Flag set: {flag}", level="DEBUG")
        self.check_achievements()

    def has_flag(self, flag: str) -> bool:
        return flag in self.state.flags

    def remove_flag(self, flag: str) -> None:
        if flag not in self.state.flags:
            return
        self.state.flags.remove(flag)
        self._publish(FlagRemoved(flag=flag))

    # Inventory

    def add_to_inventory(self, item: str) -> None:
        if item in self.state.inventory:
            return
        self.state.inventory.append(item)
        self._publish(InventoryUpdated(item=item, action="add"))
        self.check_achievements()

    def remove_from_inventory(self, item: str) -> None:
        if item not in self.state.inventory:
            return
        self.state.inventory.remove(item)
        self._publish(InventoryUpdated(item=item, action="remove"))

    def has_item(self, item: str) -> bool:
        return item in self.state.inventory

    # Credentials and systems

    def store_credentials(self, system: str, credentials: dict[str, Any]) -> None:
        self.state.discovered_credentials[system] = dict(credentials)
        self._publish(CredentialsDiscovered(system=system, credentials=dict(credentials)))

    def get_credentials(self, system: str) -> Optional[dict[str, Any]]:
        return self.state.discovered_credentials.get(system)

    def visit_system(self, system: str) -> None:
        if system in self.state.visited_systems:
            return
        self.state.visited_systems.append(system)
        self._publish(SystemVisited(system=system))
        self.check_achievements()

    # History and achievements

    def add_to_history(self, command: str) -> None:
        """Record a command line; blank lines are ignored and the oldest entries drop off."""
        if not command.strip():
            return

        self.state.command_history.append({"command": command, "timestamp": time.time()})
        overflow = len(self.state.command_history) - self.max_history
        if overflow > 0:
            del self.state.command_history[:overflow]

        self.check_achievements()

    def grant_achievement(self, achievement: str) -> bool:
        if achievement in self.state.achievements:
            return False
        self.state.achievements.append(achievement)
        self._publish(AchievementUnlocked(achievement=achievement))
        self._emit_log(f"Achievement unlocked: {achievement}")
        return True

    def check_achievements(self) -> None:
        if len(self.state.command_history) == 1:
            self.grant_achievement("first_command")

        if len(self.state.visited_systems) >= 3:
            self.grant_achievement("explorer")

        if len(self.state.flags) >= 5:
            self.grant_achievement("hacker")

        if len(self.state.inventory) >= 10:
            self.grant_achievement("collector")

    # Context and custom data

    def set_current_context(self, context_id: str) -> None:
        self.state.current_context = context_id

    def get_current_context(self) -> str:
        return self.state.current_context

    def set_custom_data(self, key: str, value: Any) -> None:
        self.state.custom_data[key] = value

    def get_custom_data(self, key: str, default: Any = None) -> Any:
        return self.state.custom_data.get(key, default)

    def update_play_time(self) -> float:
        now = self._clock()
        self.state.play_time += now - self._session_start
        self._session_start = now
        return self.state.play_time

    # Persistence

    def _slot_path(self, slot: int) -> Path:
        return self.save_dir / f"slot_{slot}.json"

    def save(self, slot: int = 0) -> bool:
        """
        Write the state to a slot file.

        Returns:
            bool: False if the file could not be written
        """
        try:
            self.update_play_time()
            self.save_dir.mkdir(parents=True, exist_ok=True)

            save_data = {**self.get_state(), "saved_at": time.time(), "slot": slot}
            with open(self._slot_path(slot), "w", encoding="utf-8") as f:
                json.dump(save_data, f, indent=2)

            self._last_save = self._clock()
            self._publish(StateSaved(slot=slot))
            self._emit_log(f"State saved to slot {slot}")
            return True

        except (OSError, TypeError, ValueError) as e:
            self._emit_log(f"Error saving state to slot {slot}: {e}", level="ERROR")
            return False

    def load(self, slot: int = 0) -> bool:
        """
        Replace the state with a slot file's contents.

        Returns:
            bool: False if the slot is missing or unreadable (state untouched)
        """
        path = self._slot_path(slot)
        if not path.exists():
            return False

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("save slot must hold a JSON object")
            self.state = ProgressState.from_dict(data)
        except (OSError, TypeError, ValueError) as e:
            self._emit_log(f"Error loading state from slot {slot}: {e}", level="ERROR")
            return False

        self._session_start = self._clock()
        self._publish(StateLoaded(slot=slot))
        self._emit_log(f"State loaded from slot {slot}")
        return True

    def has_save(self, slot: int = 0) -> bool:
        return self._slot_path(slot).exists()

    def delete_save(self, slot: int = 0) -> bool:
        path = self._slot_path(slot)
        if not path.exists():
            return False
        path.unlink()
        self._emit_log(f"Deleted save slot {slot}")
        return True

    def maybe_autosave(self) -> bool:
        """Save to slot 0 once the autosave interval has elapsed."""
        if self.autosave_seconds <= 0:
            return False
        if self._clock() - self._last_save < self.autosave_seconds:
            return False
        return self.save(0)

    def reset(self) -> None:
        self.state = ProgressState()
        self._session_start = self._clock()
        self._publish(StateReset())

    def get_state(self) -> dict[str, Any]:
        """Copy of the state as plain JSON-compatible data."""
        return asdict(self.state)

    def export_state(self) -> str:
        return json.dumps(self.get_state(), indent=2)

    def import_state(self, json_string: str) -> bool:
        try:
            data = json.loads(json_string)
            if not isinstance(data, dict):
                raise ValueError("state must be a JSON object")
            self.state = ProgressState.from_dict(data)
        except (TypeError, ValueError) as e:
            self._emit_log(f"Error importing state: {e}", level="ERROR")
            return False

        self._session_start = self._clock()
        return True
