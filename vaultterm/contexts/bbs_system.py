"""
Bulletin board system context.

Simulates a dial-up BBS with a login gate, a numbered main menu, message
boards and a file library whose downloads land in the local filesystem.
"""
from typing import Any, Optional, TYPE_CHECKING

from ..core.dispatch import Command, CommandResult, ContextSwitchRequest
from .scripted_context import ScriptedContext

if TYPE_CHECKING:
    from ..core.dispatch import BaseContext
    from ..core.events import EventManager
    from ..core.filesystem import VirtualFileSystem
    from ..core.state_manager import StateManager


VALID_ACCOUNTS = {
    "ghost": "shadow1337",
    "admin": "vault-tec",
    "guest": "guest",
}

MAIN_MENU = """
================ MAIN MENU ================

  [1] Message Boards
  [2] File Library
  [3] User List
  [4] System Info
  [5] Logout

===========================================

Type number or command name to continue."""

MESSAGE_BOARDS = """
================ MESSAGE BOARDS ================

  [1] General Discussion (23 messages)
  [2] Technical Support (8 messages)
  [3] Wasteland Reports (15 messages)
  [4] Encrypted Channel (3 messages) [LOCKED]

Type "read <number>" to read messages.
Type "menu" to return to main menu."""

FILE_LIBRARY = """
================ FILE LIBRARY ================

  vault-map.txt          2.3 KB    Public
  radio-frequencies.txt  1.8 KB    Public
  research-notes.txt     4.1 KB    Members
  classified-data.zip    8.7 KB    Encrypted [LOCKED]

Type "download <filename>" to download.
Type "menu" to return to main menu."""

USER_LIST = """
================ USER LIST ================

  ghost        [SYSOP]      Last seen: 2 hours ago
  wanderer     [Member]     Last seen: 1 day ago
  techie       [Member]     Last seen: 3 days ago
  shadow       [Guest]      Last seen: 5 days ago

Total users: 47
Online now: 3"""

SYSTEM_INFO = """
================ SYSTEM INFO ================

  System: DARKNET BBS v3.2
  Location: Undisclosed
  Uptime: 2847 days
  Total Calls: 15,847
  Files: 342
  Messages: 2,891

  Running on: Vault-Tec Terminal System
  Network: Post-Apocalyptic Mesh Network

"Knowledge is power. Share responsibly.\""""

DOWNLOADS = {
    "vault-map.txt": "Map of nearby vault locations...\nVault 13: 37.2431 N, 115.7930 W",
    "radio-frequencies.txt": "Emergency frequencies:\n144.39 MHz - Vault Network\n446.50 MHz - Wasteland Comms",
    "research-notes.txt": (
        "CLASSIFIED RESEARCH\n\nProject RAVEN initiated.\n"
        "Objective: Neural interface development.\n\n"
        "Access code fragment discovered: _NIGHT_SHADOW"
    ),
}

MESSAGES = {
    1: "From: wanderer\nSubject: Safe zones\n\n"
       "Found a clean water source near the old facility. Coordinates in vault-map.txt.",
    2: "From: techie\nSubject: Terminal access\n\n"
       "Anyone know how to bypass Vault-Tec security? Need access codes.",
    3: "From: ghost\nSubject: Research data\n\n"
       "Check file library for updates. More fragments incoming.",
    4: "From: [ENCRYPTED]\nSubject: [ENCRYPTED]\n\n[This message requires level 2 clearance]",
}


class BBSSystem(ScriptedContext):
    """The DARKNET bulletin board."""

    def __init__(
        self,
        event_manager: "EventManager",
        state_manager: "StateManager",
        filesystem: "VirtualFileSystem",
        latency_scale: float = 1.0,
    ):
        super().__init__("bbs", "BBS System", "bbs",
                         event_manager, state_manager, filesystem, latency_scale)
        self.authenticated = False
        self.current_menu = "main"
        self.address = ""
        self.system_name = "DARKNET BBS"

    def get_prompt(self) -> str:
        return f"[BBS:{self.current_menu.upper()}]>"

    async def on_enter(self, params: dict[str, Any]) -> Optional[ContextSwitchRequest]:
        await super().on_enter(params)
        self.address = params.get("address") or "darknet.bbs.net"
        self.current_menu = "main"

        self.output(f"\nConnecting to {self.address}...", "info")
        await self.pause(800)
        self.output("Connection established.", "success")
        await self.pause(300)
        self.output(f"\n=== {self.system_name} ===\nUnderground Information Exchange\nSince 2077\n", "highlight")

        if self.state_manager.has_flag("bbs_authenticated"):
            self.authenticated = True
            self.output(MAIN_MENU, "info")
        else:
            self.authenticated = False
            self.show_login_prompt()

        self.state_manager.visit_system(self.id)
        return None

    async def on_exit(self) -> None:
        self.output("\nDisconnecting from BBS...\nConnection closed.", "warning")

    def show_login_prompt(self) -> None:
        self.output("\nLOGIN REQUIRED", "warning")
        self.output("Use: login <username> <password>", "info")
        self.output('or type "exit" to disconnect\n', "system")

    def get_commands(self) -> list[Command]:
        bbs = [self.type]
        return [
            Command("login", self.cmd_login, contexts=bbs,
                    description="Login to BBS", usage="login <username> <password>"),
            Command("logout", self.cmd_logout, aliases=["5"], contexts=bbs,
                    description="Logout from BBS", usage="logout"),
            Command("menu", self.cmd_menu, contexts=bbs,
                    description="Show main menu", usage="menu"),
            Command("messages", self.cmd_messages, aliases=["1"], contexts=bbs,
                    description="View message boards", usage="messages"),
            Command("files", self.cmd_files, aliases=["2"], contexts=bbs,
                    description="Browse file library", usage="files"),
            Command("users", self.cmd_users, aliases=["3"], contexts=bbs,
                    description="List users", usage="users"),
            Command("info", self.cmd_info, aliases=["4"], contexts=bbs,
                    description="Show system info", usage="info"),
            Command("download", self.cmd_download, contexts=bbs,
                    description="Download file", usage="download <filename>"),
            Command("read", self.cmd_read, contexts=bbs,
                    description="Read message", usage="read <number>"),
            Command("exit", self.cmd_exit, contexts=bbs,
                    description="Disconnect from BBS", usage="exit"),
        ]

    async def cmd_login(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if len(args) < 2:
            return CommandResult.fail("Usage: login <username> <password>")

        username, password = args[0], args[1]
        self.output("\nAuthenticating...", "info")
        await self.pause(1000)

        if VALID_ACCOUNTS.get(username) != password:
            self._emit_log(f"Failed BBS login for '{username}'", level="DEBUG")
            return CommandResult.fail("Access denied. Invalid credentials.")

        self.authenticated = True
        self.current_menu = "main"
        self.state_manager.set_flag("bbs_authenticated")
        self.state_manager.store_credentials("bbs", {"username": username, "password": password})
        self.output(f"\nWelcome, {username}!", "success")

        if username == "ghost":
            await self.pause(500)
            self.glitch(500)
            self.state_manager.set_flag("ghost_login")

        return CommandResult.ok(MAIN_MENU, style="info")

    def cmd_logout(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return CommandResult.fail("You are not logged in.")

        self.authenticated = False
        self.current_menu = "main"
        self.show_login_prompt()
        return CommandResult.ok()

    def cmd_menu(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return CommandResult.fail("Please login first.")
        self.current_menu = "main"
        return CommandResult.ok(MAIN_MENU, style="info")

    def cmd_messages(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return self.denied("Access denied. Please login.")
        self.current_menu = "messages"
        return CommandResult.ok(MESSAGE_BOARDS, style="info")

    def cmd_files(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return self.denied("Access denied. Please login.")
        self.current_menu = "files"
        return CommandResult.ok(FILE_LIBRARY, style="info")

    def cmd_users(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return self.denied("Access denied. Please login.")
        self.current_menu = "users"
        return CommandResult.ok(USER_LIST, style="info")

    def cmd_info(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        return CommandResult.ok(SYSTEM_INFO, style="system")

    async def cmd_download(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return self.denied("Access denied. Please login.")
        if not args:
            return CommandResult.fail("Usage: download <filename>")

        filename = args[0]
        if filename not in DOWNLOADS:
            return CommandResult.fail(f"File not found: {filename}")

        self.output(f"\nInitiating download: {filename}", "info")
        await self.pause(2000)

        downloads_dir = f"{self.filesystem.home_directory}/downloads"
        if not self.filesystem.is_directory(downloads_dir):
            self.filesystem.create_directory(downloads_dir)
        self.filesystem.write_file(f"{downloads_dir}/{filename}", DOWNLOADS[filename])
        self.state_manager.add_to_inventory(filename)

        if filename == "research-notes.txt":
            self.state_manager.set_flag("downloaded_research_notes")

        return CommandResult.ok(
            f"\nDownload complete: {filename}\nSaved to: ~/downloads/{filename}", style="success"
        )

    def cmd_read(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        if not self.authenticated:
            return self.denied("Access denied. Please login.")
        if not args:
            return CommandResult.fail("Usage: read <message_number>")

        try:
            number = int(args[0])
        except ValueError:
            return CommandResult.fail(f"Message {args[0]} not found.")

        if number not in MESSAGES:
            return CommandResult.fail(f"Message {number} not found.")
        return CommandResult.ok(f"\n{MESSAGES[number]}", style="info")

    def cmd_exit(self, args: list[str], context: Optional["BaseContext"] = None) -> CommandResult:
        return CommandResult.ok(switch_to=ContextSwitchRequest.to(self.home_context_id))
