"""
SSH client context.

Simulates a remote session with connection latency. Unknown or unreachable
hosts refuse the connection and send the user back to the local shell
straight from `on_enter`.
"""
import functools
from dataclasses import dataclass
from typing import Any, Callable, Optional, TYPE_CHECKING

from ..core.dispatch import Command, CommandResult, ContextSwitchRequest
from .scripted_context import ScriptedContext

if TYPE_CHECKING:
    from ..core.dispatch import BaseContext
    from ..core.events import EventManager
    from ..core.filesystem import VirtualFileSystem
    from ..core.state_manager import StateManager


@dataclass(frozen=True)
class KnownHost:
    requires_auth: bool = True
    required_flag: Optional[str] = None


KNOWN_HOSTS = {
    "mainframe.local": KnownHost(),
    "research-facility.secure": KnownHost(required_flag="found_facility_code"),
    "data-vault.secure": KnownHost(),
    "192.168.1.10": KnownHost(requires_auth=False),
}

VALID_PASSWORDS = ("RAVEN_NIGHT_SHADOW", "SECURITY-admin", "override-alpha")

REMOTE_FILES = {
    "system.log": (
        "[SYSTEM] 2077-10-23 09:15:42 - Project RAVEN initialization\n"
        "[SYSTEM] 2077-10-23 12:33:18 - Neural interface test successful\n"
        "[WARNING] 2077-10-23 15:47:29 - Unauthorized access attempt detected\n"
        "[ALERT] 2077-10-23 18:22:11 - Emergency lockdown initiated"
    ),
    "config.dat": (
        "SYSTEM_ID=VAULT_MAINFRAME_01\nSECURITY_LEVEL=MAXIMUM\n"
        "PROTOCOL_STATUS=ACTIVE\nEMERGENCY_CODE=OMEGA-7"
    ),
    "readme.txt": (
        "This mainframe contains classified research data.\n"
        "Access is restricted to authorized personnel only."
    ),
}

REMOTE_LISTING = "system.log\nconfig.dat\nreadme.txt\nproject_files/\nclassified/\nbackup.tar.gz"

WELCOME = """
================================================
    SECURITY MAINFRAME SYSTEM
  Authorized Access Only
================================================

Welcome to the secure terminal.
Type "help" for available commands."""

SCAN_REPORT = """
Scan Results:
-------------
System: SECURITY Mainframe v4.2
Status: OPERATIONAL
Security: ACTIVE
Open Ports: 22 (SSH), 80 (HTTP)
Running Processes: 47
Network Activity: MODERATE

[DETECTED] Encrypted data stream on port 9001
[DETECTED] Background protocol: PROJECT_RAVEN"""

SYSTEM_STATUS = """
+--------------------------------------------+
|      MAINFRAME SYSTEM STATUS               |
+--------------------------------------------+
| CPU Usage: 34%                             |
| Memory: 2847 MB / 8192 MB                  |
| Uptime: 2847 days                          |
| Active Connections: 3                      |
| Security Level: MAXIMUM                    |
+--------------------------------------------+"""


def requires_auth(method: Callable) -> Callable:
    """Refuse the command until the session is authenticated."""
    @functools.wraps(method)
    async def wrapper(self: "SSHClient", args: list[str], context: Optional["BaseContext"] = None):
        if not self.authenticated:
            return self.denied()
        return await method(self, args, context)
    return wrapper


class SSHClient(ScriptedContext):
    """A remote shell on one of the known hosts."""

    def __init__(
        self,
        event_manager: "EventManager",
        state_manager: "StateManager",
        filesystem: "VirtualFileSystem",
        latency_ms: int = 100,
        latency_scale: float = 1.0,
    ):
        super().__init__("ssh", "SSH Client", "ssh",
                         event_manager, state_manager, filesystem, latency_scale)
        self.remote_host = ""
        self.authenticated = False
        self.latency_ms = latency_ms

    def get_prompt(self) -> str:
        user = "admin" if self.authenticated else "guest"
        return f"{user}@{self.remote_host}:~$"

    async def on_enter(self, params: dict[str, Any]) -> Optional[ContextSwitchRequest]:
        await super().on_enter(params)
        self.remote_host = params.get("address") or "remote.server"
        self.authenticated = False

        self.output(f"\nInitiating SSH connection to {self.remote_host}...", "info")
        await self.pause(800)

        host = KNOWN_HOSTS.get(self.remote_host)
        reachable = host is not None and (
            host.required_flag is None or self.state_manager.has_flag(host.required_flag)
        )
        if not reachable:
            self.output(f"ssh: connect to host {self.remote_host} port 22: Connection refused", "error")
            self._emit_log(f"Connection to {self.remote_host} refused", level="DEBUG")
            await self.pause(500)
            return ContextSwitchRequest.to(self.home_context_id)

        self.output("Connection established.", "success")
        if host.requires_auth:
            await self.pause(300)
            self.output("\nAuthentication required.", "warning")
            self.output('Use: auth <password> or type "disconnect" to close connection\n', "system")
        else:
            self.authenticated = True
            self.output(WELCOME, "info")

        self.state_manager.visit_system(f"ssh_{self.remote_host}")
        return None

    async def on_exit(self) -> None:
        self.output("\nClosing SSH connection...", "warning")

    def get_commands(self) -> list[Command]:
        ssh = [self.type]
        return [
            Command("auth", self.cmd_auth, contexts=ssh,
                    description="Authenticate to system", usage="auth <password>"),
            Command("scan", self.cmd_scan, contexts=ssh,
                    description="Scan system", usage="scan"),
            Command("sysinfo", self.cmd_sysinfo, contexts=ssh,
                    description="Remote system status", usage="sysinfo"),
            Command("initiate", self.cmd_initiate, contexts=ssh,
                    description="Initiate system protocol", usage="initiate <protocol>"),
            Command("disconnect", self.cmd_disconnect, contexts=ssh,
                    description="Close SSH connection", usage="disconnect"),
        ]

    async def cmd_auth(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("Usage: auth <password>")

        password = args[0]
        self.output("\nVerifying credentials...", "info")
        await self.pause(self.latency_ms + 500)

        if password not in VALID_PASSWORDS:
            return CommandResult.fail("Authentication failed. Access denied.")

        self.authenticated = True
        self.state_manager.set_flag("ssh_authenticated")
        self.output("Authentication successful.", "success")

        if password == "RAVEN_NIGHT_SHADOW":
            self.state_manager.set_flag("used_raven_code")
            self.glitch(800)

        return CommandResult.ok(WELCOME, style="info")

    @requires_auth
    async def cmd_ls(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        await self.pause(self.latency_ms)
        return CommandResult.ok(REMOTE_LISTING, style="info")

    @requires_auth
    async def cmd_cat(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("Usage: cat <filename>")

        await self.pause(self.latency_ms)
        content = REMOTE_FILES.get(args[0])
        if content is None:
            return CommandResult.fail(f"cat: {args[0]}: No such file or directory")

        if args[0] == "system.log":
            self.state_manager.set_flag("read_system_log")
        return CommandResult.ok(content)

    @requires_auth
    async def cmd_scan(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        self.output("\nScanning system...", "info")
        await self.pause(3000)
        self.state_manager.set_flag("scanned_mainframe")
        return CommandResult.ok(SCAN_REPORT, style="warning")

    @requires_auth
    async def cmd_sysinfo(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        await self.pause(self.latency_ms)
        return CommandResult.ok(SYSTEM_STATUS, style="info")

    @requires_auth
    async def cmd_initiate(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not args:
            return CommandResult.fail("Usage: initiate <protocol_name>")

        protocol = args[0].upper()
        if protocol not in ("OMEGA-7", "OMEGA"):
            return CommandResult.fail(f"Unknown protocol: {protocol}")

        self.output("\nInitiating OMEGA-7 protocol...", "warning")
        await self.pause(1000)
        self.glitch(1500)
        await self.pause(1500)

        self.state_manager.set_flag("mission_complete")
        self.state_manager.grant_achievement("Mission Complete")
        return CommandResult.ok(
            "\n+-------------------------------------------+\n"
            "|   MISSION COMPLETE                        |\n"
            "|   ACCESS GRANTED TO PROJECT RAVEN         |\n"
            "+-------------------------------------------+",
            style="success",
        )

    def cmd_disconnect(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        return CommandResult.ok(switch_to=ContextSwitchRequest.to(self.home_context_id))
