"""
Unix-like local shell context.

Implements the basic shell verbs against the virtual filesystem and the
commands that open connections to the remote contexts.
"""
import re
from typing import Any, Optional, TYPE_CHECKING

from ..core.dispatch import Command, CommandResult, ContextSwitchRequest
from ..core.events import MinigameStarted
from .scripted_context import ScriptedContext

if TYPE_CHECKING:
    from ..core.dispatch import BaseContext
    from ..core.events import EventManager
    from ..core.filesystem import VirtualFileSystem
    from ..core.state_manager import StateManager


CREDENTIALS_PATTERN = re.compile(r"user=(\w+).*pass=(\S+)")


class LocalShell(ScriptedContext):
    """The player's own terminal."""

    def __init__(
        self,
        event_manager: "EventManager",
        state_manager: "StateManager",
        filesystem: "VirtualFileSystem",
        username: str = "root",
        hostname: str = "vault-tec",
        latency_scale: float = 1.0,
    ):
        super().__init__("localhost", "Local Shell", "local",
                         event_manager, state_manager, filesystem, latency_scale)
        self.username = username
        self.hostname = hostname

    def get_prompt(self) -> str:
        return f"{self.username}@{self.hostname}:{self.filesystem.display_path()}$"

    async def on_enter(self, params: dict[str, Any]) -> Optional[ContextSwitchRequest]:
        await super().on_enter(params)
        self.state_manager.visit_system(self.id)
        return None

    def get_commands(self) -> list[Command]:
        local = [self.type]
        return [
            Command("cd", self.cmd_cd, contexts=local,
                    description="Change directory", usage="cd [directory]"),
            Command("pwd", self.cmd_pwd, contexts=local,
                    description="Print working directory", usage="pwd"),
            Command("grep", self.cmd_grep, contexts=local,
                    description="Search for pattern in a file", usage="grep <pattern> <file>"),
            Command("find", self.cmd_find, contexts=local,
                    description="Search for files", usage="find <pattern>"),
            Command("mkdir", self.cmd_mkdir, contexts=local,
                    description="Create directory", usage="mkdir <directory>"),
            Command("rm", self.cmd_rm, contexts=local,
                    description="Remove file or directory", usage="rm <path>"),
            Command("echo", self.cmd_echo, contexts=local,
                    description="Display text", usage="echo <text>"),
            Command("ssh", self.cmd_ssh, contexts=local,
                    description="Connect to remote system via SSH", usage="ssh <address>"),
            Command("telnet", self.cmd_telnet, contexts=local,
                    description="Connect to BBS system", usage="telnet <address>"),
            Command("hack", self.cmd_hack, contexts=local,
                    description="Initiate hacking sequence", usage="hack [target]"),
        ]

    # Shared verbs, reached through the ls/cat builtins

    def cmd_ls(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        show_hidden = "-a" in args or "--all" in args
        long_format = "-l" in args or "-la" in args or "-al" in args
        if "-la" in args or "-al" in args:
            show_hidden = True
        path = next((arg for arg in args if not arg.startswith("-")), ".")

        entries = self.filesystem.list_directory(path, show_hidden=show_hidden)
        if entries is None:
            return CommandResult.fail(f"ls: cannot access '{path}': No such file or directory")

        if not entries:
            return CommandResult.ok()

        if long_format:
            lines = [
                f"{'d' if entry.is_directory else '-'}{entry.permissions}  {entry.size:>8}  {entry.name}"
                for entry in entries
            ]
            return CommandResult.ok("\n".join(lines), style="info")

        names = [entry.name + "/" if entry.is_directory else entry.name for entry in entries]
        return CommandResult.ok("  ".join(names), style="info")

    def cmd_cat(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("cat: missing file operand")

        if self.filesystem.is_directory(args[0]):
            return CommandResult.fail(f"cat: {args[0]}: Is a directory")

        content = self.filesystem.read_file(args[0])
        if content is None:
            return CommandResult.fail(f"cat: {args[0]}: No such file or directory")

        match = CREDENTIALS_PATTERN.search(content)
        if match:
            self.state_manager.set_flag("found_credentials")
            self.state_manager.store_credentials("bbs", {"username": match.group(1),
                                                         "password": match.group(2)})

        return CommandResult.ok(content)

    # Local commands

    def cmd_cd(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        path = args[0] if args else self.filesystem.home_directory
        if self.filesystem.change_directory(path):
            return CommandResult.ok()
        if self.filesystem.is_file(path):
            return CommandResult.fail(f"cd: {path}: Not a directory")
        return CommandResult.fail(f"cd: {path}: No such file or directory")

    def cmd_pwd(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        return CommandResult.ok(self.filesystem.get_current_directory())

    def cmd_grep(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if len(args) < 2:
            return CommandResult.fail("grep: usage: grep <pattern> <file>")

        pattern, filename = args[0], args[1]
        content = self.filesystem.read_file(filename)
        if content is None:
            return CommandResult.fail(f"grep: {filename}: No such file or directory")

        matches = [line for line in content.split("\n") if pattern.lower() in line.lower()]
        return CommandResult.ok("\n".join(matches), style="warning")

    def cmd_find(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("find: missing pattern")
        return CommandResult.ok("\n".join(self.filesystem.find(args[0])), style="info")

    def cmd_mkdir(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("mkdir: missing operand")
        if self.filesystem.create_directory(args[0]):
            return CommandResult.ok()
        return CommandResult.fail(f"mkdir: cannot create directory '{args[0]}'")

    def cmd_rm(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("rm: missing operand")
        if self.filesystem.delete(args[0]):
            return CommandResult.ok()
        return CommandResult.fail(f"rm: cannot remove '{args[0]}': No such file or directory")

    def cmd_echo(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        return CommandResult.ok(" ".join(args))

    def cmd_ssh(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail(
                "ssh: missing host address\nUsage: ssh <address>\nExample: ssh mainframe.local"
            )
        return CommandResult.ok(switch_to=ContextSwitchRequest.to("ssh", address=args[0]))

    def cmd_telnet(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("telnet: missing address")
        return CommandResult.ok(switch_to=ContextSwitchRequest.to("bbs", address=args[0]))

    def cmd_hack(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        target = args[0] if args else "mainframe"
        self.event_manager.publish(MinigameStarted(kind="password_crack", target=target),
                                   source=self.name)
        return CommandResult.ok(f"Initiating hacking sequence against {target}...", style="warning")
