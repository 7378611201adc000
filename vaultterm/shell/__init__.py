"""Terminal session: input, logging, narrative loading and the app loop."""

from .app import TerminalApp
from .input_handler import InputHandler, parse_command_line
from .log_manager import LogCategory, LogLevel, LogManager
from .narrative_loader import NarrativeLoader, validate_narrative

__all__ = [
    'TerminalApp',
    'InputHandler',
    'parse_command_line',
    'LogCategory',
    'LogLevel',
    'LogManager',
    'NarrativeLoader',
    'validate_narrative',
]
