"""
Command registry for context-aware command dispatch.

This module maps typed command names (and aliases) to registered commands and
runs them against the active context, converting every failure mode into a
`CommandResult` so nothing escapes to the input loop.

Conflict policy: the last registration wins. Registering a command whose
primary name is already bound evicts the previous command entirely (its name
and every alias still pointing at it); an alias that collides with an existing
key only rebinds that key, unless the key is another command's primary name,
in which case that command is evicted as well.
"""
import inspect
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ..events import (
    CommandRegistered,
    CommandRegistryCleared,
    CommandUnregistered,
    LogMessage,
)
from .commands import Command, CommandFailure, CommandResult

if TYPE_CHECKING:
    from ..events import EventManager
    from .base_context import BaseContext


class CommandRegistry:
    """Registry for mapping command names to commands."""

    def __init__(self, event_manager: "EventManager"):
        self.event_manager = event_manager
        self._commands: dict[str, Command] = {}

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="COMMAND", level=level, source="CommandRegistry"),
            source="CommandRegistry",
        )

    def register(self, command: Command) -> bool:
        """
        Register a command under its name and aliases.

        Args:
            command: The command to register

        Returns:
            bool: False if the command has no name or no callable handler
        """
        if not command.name or not command.name.strip() or not callable(command.handler):
            self._emit_log(f"Invalid command configuration: {command!r}", level="ERROR")
            return False

        previous = self._commands.get(command.key)
        if previous is not None and previous is not command:
            self._emit_log(
                f"Command '{command.key}' replaces existing command '{previous.name}'",
                level="WARNING",
            )
            self._evict(previous)

        self._commands[command.key] = command

        for alias in command.aliases:
            key = alias.lower()
            existing = self._commands.get(key)
            if existing is not None and existing is not command:
                self._emit_log(
                    f"Alias '{key}' rebound from '{existing.name}' to '{command.name}'",
                    level="WARNING",
                )
                # taking over a primary name retires the whole command
                if existing.key == key:
                    self._evict(existing)
            self._commands[key] = command

        self.event_manager.publish(CommandRegistered(name=command.name), source="CommandRegistry")
        return True

    def register_bulk(self, commands: Iterable[Command]) -> int:
        """
        Register multiple commands at once.

        Returns:
            int: Number of commands accepted
        """
        return sum(1 for command in commands if self.register(command))

    def unregister(self, name: str) -> bool:
        """
        Remove a command and all of its aliases.

        Args:
            name: Primary name or alias of the command

        Returns:
            bool: False if no command is bound to the name
        """
        command = self._commands.get(name.lower())
        if command is None:
            self._emit_log(f"Cannot unregister unknown command '{name}'", level="DEBUG")
            return False

        self._evict(command)
        self.event_manager.publish(CommandUnregistered(name=command.name), source="CommandRegistry")
        return True

    def _evict(self, command: Command) -> None:
        """Drop every key that still points at the command."""
        for key in [k for k, bound in self._commands.items() if bound is command]:
            del self._commands[key]

    async def execute(
        self,
        name: str,
        args: list[str],
        context: Optional["BaseContext"],
    ) -> CommandResult:
        """
        Execute a command by name in the given context.

        Args:
            name: Command name or alias, case-insensitive
            args: Command arguments
            context: The active context, or None before the first switch

        Returns:
            CommandResult: The handler's result or a synthesized failure
        """
        command = self._commands.get(name.lower())

        if command is None:
            return CommandResult.fail(
                f"Command not found: {name}\nType 'help' for available commands.",
                failure=CommandFailure.NOT_FOUND,
            )

        if not self.is_available_in_context(command, context):
            return CommandResult.fail(
                f"Command '{name}' is not available in this context.",
                failure=CommandFailure.INELIGIBLE,
            )

        try:
            result = command.handler(args, context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._emit_log(f"Error executing command '{name}': {e}", level="ERROR")
            return CommandResult.fail(f"Error: {e}", failure=CommandFailure.FAULT)

        if result is None:
            return CommandResult.ok()

        if not isinstance(result, CommandResult):
            self._emit_log(
                f"Command '{name}' returned {type(result).__name__} instead of CommandResult",
                level="ERROR",
            )
            return CommandResult.fail(
                f"Error: command '{name}' returned an invalid result",
                failure=CommandFailure.INVALID_RESULT,
            )

        return result

    def is_available_in_context(self, command: Command, context: Optional["BaseContext"]) -> bool:
        """Check whether a command may run under the context's type."""
        return command.is_available_for(context.type if context is not None else None)

    def get_available_commands(self, context: Optional["BaseContext"]) -> list[str]:
        """
        Get primary names of visible commands eligible in a context.

        Returns:
            list[str]: Sorted command names, aliases and hidden commands excluded
        """
        available = {
            key for key, command in self._commands.items()
            if key == command.key
            and not command.hidden
            and self.is_available_in_context(command, context)
        }
        return sorted(available)

    def get_command(self, name: str) -> Optional[Command]:
        """Look up a command by primary name or alias."""
        return self._commands.get(name.lower())

    def get_all_commands(self) -> list[Command]:
        """All distinct registered commands, sorted by name."""
        unique: dict[int, Command] = {id(command): command for command in self._commands.values()}
        return sorted(unique.values(), key=lambda command: command.key)

    def has(self, name: str) -> bool:
        return name.lower() in self._commands

    def clear(self) -> None:
        """Clear all registered commands."""
        self._commands.clear()
        self.event_manager.publish(CommandRegistryCleared(), source="CommandRegistry")

    def get_debug_info(self) -> dict[str, Any]:
        """
        Get debug information about registered commands.

        Returns:
            Dict: Counts and per-command key listings
        """
        commands = self.get_all_commands()
        return {
            "total_commands": len(commands),
            "total_keys": len(self._commands),
            "hidden_commands": [c.name for c in commands if c.hidden],
            "commands": {
                c.key: {"aliases": list(c.aliases), "contexts": list(c.contexts)}
                for c in commands
            },
        }
