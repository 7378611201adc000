"""Scripted terminal contexts and the commands they share."""

from .scripted_context import ScriptedContext
from .builtins import BuiltinCommands, create_builtin_commands
from .local_shell import LocalShell
from .bbs_system import BBSSystem
from .ssh_client import SSHClient, KNOWN_HOSTS

__all__ = [
    'ScriptedContext',
    'BuiltinCommands',
    'create_builtin_commands',
    'LocalShell',
    'BBSSystem',
    'SSHClient',
    'KNOWN_HOSTS',
]
