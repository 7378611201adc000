"""
Narrative loading for the terminal story.

A narrative is a YAML file naming the story, the context it starts in, the
files it adds to the local filesystem, and the flags that complete it.
"""
from pathlib import Path
from typing import Any, Optional, TYPE_CHECKING, Union

import yaml

from ..core.events import (
    EventType,
    LogMessage,
    NarrativeLoaded,
    TerminalGlitch,
    TerminalOutput,
)

if TYPE_CHECKING:
    from ..core.events import EventManager, TerminalEvent
    from ..core.filesystem import VirtualFileSystem
    from ..core.state_manager import StateManager


REQUIRED_FIELDS = ("narrative", "version", "start_context")

FIELD_TYPES: dict[str, type] = {
    "narrative": str,
    "version": str,
    "start_context": str,
    "systems": list,
    "progression": dict,
    "dialogues": dict,
}

VICTORY_ACHIEVEMENT = "Narrative Complete"


def validate_narrative(config: Any) -> list[str]:
    """Return the problems with a narrative definition (empty when valid)."""
    if not isinstance(config, dict):
        return [f"Expected a mapping, got {type(config).__name__}"]

    errors = [f"Missing required field: {name}" for name in REQUIRED_FIELDS if name not in config]

    for key, expected in FIELD_TYPES.items():
        if key in config and not isinstance(config[key], expected):
            errors.append(f"Field '{key}': expected {expected.__name__}, got {type(config[key]).__name__}")

    progression = config.get("progression")
    if isinstance(progression, dict):
        flags = progression.get("flags", [])
        if not isinstance(flags, list) or not all(isinstance(flag, str) for flag in flags):
            errors.append("Field 'progression.flags': expected a list of flag names")

    return errors


class NarrativeLoader:
    """Loads a narrative, seeds its files and watches for its completion."""

    def __init__(
        self,
        event_manager: "EventManager",
        state_manager: "StateManager",
        filesystem: "VirtualFileSystem",
    ):
        self.event_manager = event_manager
        self.state_manager = state_manager
        self.filesystem = filesystem

        self.narrative_data: Optional[dict[str, Any]] = None
        self.required_flags: list[str] = []
        self.completed = False
        self._flag_listener = None

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="NARRATIVE", level=level, source="NarrativeLoader"),
            source="NarrativeLoader",
        )

    def _print(self, text: str, style: str = "") -> None:
        self.event_manager.publish_immediate(TerminalOutput(text=text, style=style), source="NarrativeLoader")

    def load_from_file(self, file_path: Union[str, Path]) -> bool:
        """Load a narrative from a YAML file; False if missing, unparsable or invalid."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            self._emit_log(f"Narrative file not found: {file_path}", level="ERROR")
            return False
        except yaml.YAMLError as e:
            self._emit_log(f"Failed to parse narrative YAML: {e}", level="ERROR")
            return False

        return self.load(config)

    def load(self, config: Any) -> bool:
        errors = validate_narrative(config)
        if errors:
            for error in errors:
                self._emit_log(f"Invalid narrative: {error}", level="ERROR")
            return False

        self.reset()
        self.narrative_data = config

        for system in config.get("systems", []):
            if isinstance(system, dict) and system.get("filesystem"):
                self.setup_filesystem(system["filesystem"])

        self.setup_progression(config.get("progression", {}))

        intro = config.get("dialogues", {}).get("intro")
        if intro:
            self._print(f"\n{intro.rstrip()}\n", "info")

        self.event_manager.publish(NarrativeLoaded(narrative=config["narrative"]), source="NarrativeLoader")
        self._emit_log(f"Loaded narrative '{config['narrative']}' v{config['version']}")
        return True

    def setup_filesystem(self, fs_config: dict[str, Any]) -> None:
        """
        Seed files into the virtual filesystem.

        Each key is a directory (created if missing). Its value is either a
        list of file names (created empty) or a mapping of file names to
        content; a nested mapping value describes a subdirectory.
        """
        for directory, contents in fs_config.items():
            directory = self.filesystem.normalize_path(str(directory))
            self._ensure_directory(directory)

            if isinstance(contents, list):
                for name in contents:
                    if not self.filesystem.exists(f"{directory}/{name}"):
                        self.filesystem.write_file(f"{directory}/{name}", "")
            elif isinstance(contents, dict):
                for name, value in contents.items():
                    path = f"{directory.rstrip('/')}/{name}"
                    if isinstance(value, dict):
                        self.setup_filesystem({path: value})
                    else:
                        self.filesystem.write_file(path, "" if value is None else str(value))

    def _ensure_directory(self, directory: str) -> None:
        current = ""
        for part in directory.strip("/").split("/"):
            if not part:
                continue
            current = f"{current}/{part}"
            if not self.filesystem.exists(current):
                self.filesystem.create_directory(current)

    def setup_progression(self, progression: dict[str, Any]) -> None:
        win_condition = progression.get("win_condition") or {}
        all_flags = win_condition.get("all_flags")

        if isinstance(all_flags, list):
            self.required_flags = list(all_flags)
        elif all_flags:
            self.required_flags = list(progression.get("flags", []))
        else:
            self.required_flags = []

        if self.required_flags:
            self._flag_listener = self.event_manager.subscribe(
                EventType.FLAG_SET,
                self._handle_flag_set,
                subscriber_name="NarrativeLoader.flag_set",
            )

    def _handle_flag_set(self, event: "TerminalEvent") -> None:
        self.check_win_condition()

    def check_win_condition(self) -> bool:
        if self.completed or not self.required_flags:
            return False
        if not all(self.state_manager.has_flag(flag) for flag in self.required_flags):
            return False

        self.trigger_victory()
        return True

    def trigger_victory(self) -> None:
        self.completed = True
        dialogues = (self.narrative_data or {}).get("dialogues", {})
        victory_text = dialogues.get("victory") or "MISSION COMPLETE!"

        self.event_manager.publish_immediate(TerminalGlitch(duration_ms=1000), source="NarrativeLoader")
        self._print("\n" + "=" * 60, "success")
        self._print(victory_text.rstrip(), "highlight")
        self._print("=" * 60 + "\n", "success")

        self.state_manager.grant_achievement(VICTORY_ACHIEVEMENT)
        self._emit_log("Narrative complete")

    def get_start_context(self) -> Optional[str]:
        if self.narrative_data is None:
            return None
        return self.narrative_data["start_context"]

    def get_narrative_info(self) -> Optional[dict[str, Any]]:
        if self.narrative_data is None:
            return None
        return {
            "name": self.narrative_data["narrative"],
            "version": self.narrative_data["version"],
            "systems": len(self.narrative_data.get("systems", [])),
            "required_flags": list(self.required_flags),
            "completed": self.completed,
        }

    def reset(self) -> None:
        if self._flag_listener is not None:
            self._flag_listener()
            self._flag_listener = None
        self.narrative_data = None
        self.required_flags = []
        self.completed = False
