"""
Commands shared by every context.

Session verbs (help, history, save, ...) are wildcard commands. `ls` and
`cat` exist in several contexts with different meanings, so they are
registered once and delegate to the active context's `cmd_ls`/`cmd_cat`.
"""
from typing import Optional, TYPE_CHECKING

from ..core.dispatch import (
    Command,
    CommandResult,
    ContextAction,
    ContextSwitchRequest,
)
from ..core.events import LogSaveRequested, TerminalClear

if TYPE_CHECKING:
    from ..core.dispatch import BaseContext, CommandRegistry, ContextManager
    from ..core.events import EventManager
    from ..core.state_manager import StateManager
    from ..shell.log_manager import LogManager


FILE_CONTEXT_TYPES = ["local", "ssh"]


def parse_slot(args: list[str]) -> Optional[int]:
    """Slot number from the first argument, 0 when omitted, None when invalid."""
    if not args:
        return 0
    try:
        slot = int(args[0])
    except ValueError:
        return None
    return slot if slot >= 0 else None


class BuiltinCommands:
    """Handlers for the context-independent commands."""

    def __init__(
        self,
        command_registry: "CommandRegistry",
        state_manager: "StateManager",
        event_manager: "EventManager",
        log_manager: Optional["LogManager"] = None,
        context_manager: Optional["ContextManager"] = None,
    ):
        self.command_registry = command_registry
        self.state_manager = state_manager
        self.event_manager = event_manager
        self.log_manager = log_manager
        self.context_manager = context_manager

    def get_commands(self) -> list[Command]:
        return [
            Command("help", self.cmd_help, description="Show available commands",
                    usage="help [command]"),
            Command("clear", self.cmd_clear, aliases=["cls"], description="Clear terminal screen",
                    usage="clear"),
            Command("history", self.cmd_history, description="Show command history", usage="history"),
            Command("status", self.cmd_status, description="Show game status", usage="status"),
            Command("save", self.cmd_save, description="Save game progress", usage="save [slot]"),
            Command("load", self.cmd_load, description="Load saved game", usage="load [slot]"),
            Command("inventory", self.cmd_inventory, aliases=["inv"], description="Show inventory",
                    usage="inventory"),
            Command("quit", self.cmd_quit, description="Leave the terminal", usage="quit"),
            Command("debug", self.cmd_debug, hidden=True, description="Inspect the session log",
                    usage="debug [on|off|save|events|<count>]"),
            Command("ls", ContextAction("ls"), aliases=["dir"], contexts=list(FILE_CONTEXT_TYPES),
                    description="List directory contents", usage="ls [-a] [-l] [path]"),
            Command("cat", ContextAction("cat"), contexts=list(FILE_CONTEXT_TYPES),
                    description="Display file contents", usage="cat <file>"),
        ]

    def cmd_help(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        if args:
            command = self.command_registry.get_command(args[0])
            if command is None or command.hidden:
                return CommandResult.fail(f"help: no help for '{args[0]}'")
            text = f"{command.name} - {command.description}\nUsage: {command.usage or command.name}"
            if command.aliases:
                text += f"\nAliases: {', '.join(command.aliases)}"
            if not self.command_registry.is_available_in_context(command, context):
                text += "\n(not available in this context)"
            return CommandResult.ok(text, style="info")

        lines = ["Available commands:", ""]
        for name in self.command_registry.get_available_commands(context):
            command = self.command_registry.get_command(name)
            description = command.description if command is not None else ""
            lines.append(f"  {name:<12} - {description}")
        lines.append("")
        lines.append('Type "help <command>" for more information.')
        return CommandResult.ok("\n".join(lines), style="info")

    def cmd_clear(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        self.event_manager.publish_immediate(TerminalClear(), source="BuiltinCommands")
        return CommandResult.ok()

    def cmd_history(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        history = self.state_manager.state.command_history[-20:]
        if not history:
            return CommandResult.ok("No commands in history", style="system")
        lines = [f"  {index:>3}  {entry['command']}" for index, entry in enumerate(history, start=1)]
        return CommandResult.ok("\n".join(lines), style="system")

    def cmd_status(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        state = self.state_manager.state
        minutes = int(self.state_manager.update_play_time() // 60)
        location = context.name if context is not None else "(none)"
        lines = [
            "+--------------------------------+",
            "|      SYSTEM STATUS             |",
            "+--------------------------------+",
            f"| Location: {location}",
            f"| Play Time: {minutes} minutes",
            f"| Flags: {len(state.flags)}",
            f"| Items: {len(state.inventory)}",
            f"| Systems Visited: {len(state.visited_systems)}",
            f"| Achievements: {len(state.achievements)}",
            "+--------------------------------+",
        ]
        return CommandResult.ok("\n".join(lines), style="info")

    def cmd_save(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        slot = parse_slot(args)
        if slot is None:
            return CommandResult.fail(f"save: invalid slot '{args[0]}'")
        if self.state_manager.save(slot):
            return CommandResult.ok(f"Game saved to slot {slot}", style="success")
        return CommandResult.fail("Failed to save game")

    def cmd_load(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        slot = parse_slot(args)
        if slot is None:
            return CommandResult.fail(f"load: invalid slot '{args[0]}'")
        if not self.state_manager.load(slot):
            return CommandResult.fail(f"No save found in slot {slot}")

        self.event_manager.publish_immediate(TerminalClear(), source="BuiltinCommands")

        switch_to = None
        saved_context = self.state_manager.get_current_context()
        current_id = context.id if context is not None else None
        if (self.context_manager is not None and saved_context != current_id
                and self.context_manager.has_context(saved_context)):
            switch_to = ContextSwitchRequest.to(saved_context)

        return CommandResult.ok(f"Game loaded from slot {slot}", style="success", switch_to=switch_to)

    def cmd_inventory(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        inventory = self.state_manager.state.inventory
        if not inventory:
            return CommandResult.ok("Inventory is empty", style="system")
        lines = ["Inventory:"] + [f"  {index}. {item}" for index, item in enumerate(inventory, start=1)]
        return CommandResult.ok("\n".join(lines), style="info")

    def cmd_quit(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        return CommandResult.ok("Connection terminated. Goodbye.", style="system", terminate=True)

    def cmd_debug(self, args: list[str], context: Optional["BaseContext"]) -> CommandResult:
        if self.log_manager is None:
            return CommandResult.fail("debug: logging is not available")

        action = args[0].lower() if args else ""
        if action in ("on", "off"):
            if self.log_manager.is_debug_enabled() != (action == "on"):
                self.log_manager.toggle_debug()
            return CommandResult.ok(f"Debug logging {action}", style="system")

        if action == "events":
            stats = self.event_manager.get_statistics()
            lines = [f"  {name.replace('_', ' ')}: {value}" for name, value in stats.items()]
            return CommandResult.ok("Event bus:\n" + "\n".join(lines), style="system")

        if action == "save":
            self.event_manager.publish(LogSaveRequested(), source="BuiltinCommands")
            return CommandResult.ok("Log save requested", style="system")

        count = 10
        if action:
            try:
                count = max(1, int(action))
            except ValueError:
                return CommandResult.fail(f"debug: unknown option '{args[0]}'")

        entries = self.log_manager.get_messages(count=count)
        if not entries:
            return CommandResult.ok("Log is empty", style="system")
        return CommandResult.ok("\n".join(entry.format(include_timestamp=True) for entry in entries),
                                style="system")


def create_builtin_commands(
    command_registry: "CommandRegistry",
    state_manager: "StateManager",
    event_manager: "EventManager",
    log_manager: Optional["LogManager"] = None,
    context_manager: Optional["ContextManager"] = None,
) -> list[Command]:
    builtins = BuiltinCommands(command_registry, state_manager, event_manager,
                               log_manager, context_manager)
    return builtins.get_commands()
