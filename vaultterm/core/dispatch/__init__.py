"""
Command dispatch and context switching.

This package holds the core of the terminal: the command registry that
routes typed input to handlers scoped by context type, and the context
manager that owns the active context and its lifecycle.
"""

from .commands import (
    WILDCARD,
    Command,
    CommandFailure,
    CommandResult,
    ContextAction,
    ContextSwitchRequest,
)
from .base_context import BaseContext
from .command_registry import CommandRegistry
from .context_manager import ContextManager

__all__ = [
    'WILDCARD',
    'Command',
    'CommandFailure',
    'CommandResult',
    'ContextAction',
    'ContextSwitchRequest',
    'BaseContext',
    'CommandRegistry',
    'ContextManager',
]
