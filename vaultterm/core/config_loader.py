"""
Configuration loader for terminal settings.

This module handles loading and validation of the YAML file that tunes the
terminal: typing speed, artificial latency, save and log locations, and the
identity shown in the local prompt.
"""
import os
import yaml
from dataclasses import dataclass, fields, replace
from typing import Optional, Any
from pathlib import Path


PROJECT_ROOT = Path(__file__).parent.parent.parent

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class TerminalConfig:
    """Resolved terminal settings."""
    typing_speed_ms: int = 0
    latency_scale: float = 1.0
    use_color: bool = True
    save_dir: str = "saves"
    log_dir: str = "logs"
    log_level: str = "INFO"
    max_history: int = 100
    autosave_seconds: int = 60
    start_context: str = "localhost"
    narrative_path: Optional[str] = "assets/narratives/raven.yaml"
    home_directory: str = "/home/vault-dweller"
    username: str = "root"
    hostname: str = "vault-tec"

    def resolve_path(self, path: str) -> Path:
        """Resolve a configured path against the project root."""
        candidate = Path(path)
        if candidate.is_absolute():
            return candidate
        return PROJECT_ROOT / candidate


class TerminalConfigLoader:
    """Loads and manages terminal configuration from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or "assets/config/terminal.yaml"
        self._config: dict[str, Any] = {}
        self._settings = TerminalConfig()
        self._unknown_keys: list[str] = []

    def load_config(self) -> bool:
        """
        Load configuration from the YAML file.

        Returns:
            bool: True if config was loaded successfully
        """
        try:
            if not os.path.isabs(self.config_path):
                config_file = PROJECT_ROOT / self.config_path
            else:
                config_file = Path(self.config_path)

            if not config_file.exists():
                print(f"Warning: Terminal config file not found: {config_file}")
                self._load_fallback_config()
                return False

            with open(config_file, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            self._parse_settings()
            return True

        except Exception as e:
            print(f"Error loading terminal config: {e}")
            self._load_fallback_config()
            return False

    def _parse_settings(self) -> None:
        """Overlay the `terminal` section onto the defaults."""
        section = self._config.get('terminal', {}) or {}
        known = {f.name: f for f in fields(TerminalConfig)}

        overrides: dict[str, Any] = {}
        self._unknown_keys = []
        for key, value in section.items():
            if key not in known:
                print(f"Warning: Unknown setting '{key}' in config")
                self._unknown_keys.append(key)
                continue
            overrides[key] = value

        self._settings = replace(TerminalConfig(), **overrides)

    def _load_fallback_config(self) -> None:
        """Use the built-in defaults if file loading fails."""
        self._config = {}
        self._unknown_keys = []
        self._settings = TerminalConfig()
        print("Loaded fallback terminal configuration")

    def get_settings(self) -> TerminalConfig:
        return self._settings

    def get(self, key: str, default: Any = None) -> Any:
        return getattr(self._settings, key, default)

    def reload_config(self) -> bool:
        """
        Reload the configuration from the file.

        Returns:
            bool: True if reload was successful
        """
        return self.load_config()

    def validate_config(self) -> dict[str, Any]:
        """
        Validate the loaded configuration.

        Returns:
            Dict: Validation results including errors and warnings
        """
        errors = []
        warnings = [f"Unknown setting in config: {key}" for key in self._unknown_keys]
        settings = self._settings

        if not isinstance(settings.typing_speed_ms, int) or settings.typing_speed_ms < 0:
            errors.append("typing_speed_ms must be a non-negative integer")

        if not isinstance(settings.latency_scale, (int, float)) or settings.latency_scale < 0:
            errors.append("latency_scale must be a non-negative number")

        if not isinstance(settings.max_history, int) or settings.max_history < 1:
            errors.append("max_history must be a positive integer")

        if not isinstance(settings.autosave_seconds, int) or settings.autosave_seconds < 0:
            errors.append("autosave_seconds must be a non-negative integer")

        if str(settings.log_level).upper() not in VALID_LOG_LEVELS:
            errors.append(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")

        if not settings.start_context:
            errors.append("start_context must not be empty")

        if not str(settings.home_directory).startswith('/'):
            warnings.append("home_directory should be an absolute path")

        if settings.narrative_path and not settings.resolve_path(settings.narrative_path).exists():
            warnings.append(f"Narrative file not found: {settings.narrative_path}")

        return {
            'valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings,
            'settings': len(fields(TerminalConfig)),
        }
