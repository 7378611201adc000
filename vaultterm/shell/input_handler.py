"""
Input handling for the terminal.

Turns a typed line into a command dispatch: parse, run against the active
context, print the outcome, and carry out any context switch the command
asked for. Also keeps the line history and answers tab-completion queries.
"""
import posixpath
import shlex
from typing import Optional, TYPE_CHECKING

from ..core.dispatch import CommandResult
from ..core.events import CommandExecuted, LogMessage, TerminalOutput

if TYPE_CHECKING:
    from ..core.dispatch import CommandRegistry, ContextManager
    from ..core.events import EventManager


def parse_command_line(line: str) -> Optional[tuple[str, list[str]]]:
    """
    Split a line into command name and arguments.

    Quotes group words (`echo "a b"`); an unbalanced quote falls back to a
    plain whitespace split.

    Returns:
        tuple: (name, args), or None for a blank line
    """
    try:
        parts = shlex.split(line)
    except ValueError:
        parts = line.split()

    if not parts:
        return None
    return parts[0], parts[1:]


class InputHandler:
    """Executes command lines and tracks input history."""

    def __init__(
        self,
        command_registry: "CommandRegistry",
        context_manager: "ContextManager",
        event_manager: "EventManager",
        max_history: int = 100,
        echo: bool = False,
    ):
        self.command_registry = command_registry
        self.context_manager = context_manager
        self.event_manager = event_manager
        self.max_history = max_history
        self.echo = echo

        self.history: list[str] = []
        self.history_index = -1
        self.current_input = ""

    def _emit_log(self, message: str, level: str = "DEBUG") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="INPUT", level=level, source="InputHandler"),
            source="InputHandler",
        )

    def _print(self, text: str, style: str = "") -> None:
        self.event_manager.publish_immediate(TerminalOutput(text=text, style=style), source="InputHandler")

    async def handle_line(self, line: str) -> Optional[CommandResult]:
        """
        Process one line of user input.

        Returns:
            CommandResult: The command's outcome, or None for a blank line
        """
        command_line = line.strip()
        if not command_line:
            return None

        if self.echo:
            self._print(f"{self.context_manager.get_prompt()} {command_line}", "highlight")

        self.add_to_history(command_line)
        self.reset_navigation()
        return await self.execute_command(command_line)

    async def execute_command(self, command_line: str) -> CommandResult:
        parsed = parse_command_line(command_line)
        if parsed is None:
            return CommandResult.ok()
        name, args = parsed

        try:
            result = await self.command_registry.execute(
                name, args, self.context_manager.get_current_context()
            )

            if result.success:
                if result.output:
                    self._print(result.output, result.style)
            else:
                self._print(result.error or f"Command failed: {name}", result.style or "error")

            self.event_manager.publish(
                CommandExecuted(command=command_line, success=result.success),
                source="InputHandler",
            )

            if result.switch_to is not None:
                await self.context_manager.apply(result.switch_to)

            return result

        except Exception as e:
            self._emit_log(f"Command execution error for '{command_line}': {e}", level="ERROR")
            self._print(f"Error: {e}", "error")
            return CommandResult.fail(f"Error: {e}")

    # History

    def add_to_history(self, command_line: str) -> None:
        """Append a line unless it repeats the previous one."""
        if not command_line.strip():
            return
        if self.history and self.history[-1] == command_line:
            return

        self.history.append(command_line)
        if len(self.history) > self.max_history:
            del self.history[0]

    def history_previous(self, current_text: str = "") -> str:
        """Step back to an older line (the up arrow)."""
        if not self.history:
            return current_text

        if self.history_index == -1:
            self.current_input = current_text
        if self.history_index < len(self.history) - 1:
            self.history_index += 1
        return self.history[-1 - self.history_index]

    def history_next(self) -> str:
        """Step forward to a newer line (the down arrow); past the newest restores the draft."""
        if self.history_index <= 0:
            self.history_index = -1
            return self.current_input

        self.history_index -= 1
        return self.history[-1 - self.history_index]

    def reset_navigation(self) -> None:
        self.history_index = -1
        self.current_input = ""

    def get_history(self) -> list[str]:
        return list(self.history)

    def clear_history(self) -> None:
        self.history = []
        self.reset_navigation()

    # Completion

    def complete(self, partial_line: str) -> list[str]:
        """
        Completion candidates for the text typed so far.

        The first word completes against the commands available in the
        active context; later words complete against paths when the
        active context has a filesystem.
        """
        context = self.context_manager.get_current_context()

        if " " not in partial_line.lstrip():
            prefix = partial_line.strip().lower()
            return [name for name in self.command_registry.get_available_commands(context)
                    if name.startswith(prefix)]

        filesystem = getattr(context, "filesystem", None)
        if filesystem is None or context.type != "local":
            return []

        fragment = partial_line.split(" ")[-1]
        directory, _, stem = fragment.rpartition("/")
        if fragment.startswith("/") and not directory:
            directory = "/"
        entries = filesystem.list_directory(directory or ".", show_hidden=stem.startswith("."))
        if entries is None:
            return []

        matches = []
        for entry in entries:
            if not entry.name.startswith(stem):
                continue
            name = entry.name + ("/" if entry.is_directory else "")
            matches.append(posixpath.join(directory, name) if directory else name)
        return sorted(matches)
