"""
Main terminal orchestration class.

This module wires the event bus, the state and filesystem collaborators, the
command registry and the context manager together, registers the scripted
contexts, and runs the read-dispatch-render loop.
"""
import asyncio
from typing import Optional, TypeVar

from ..contexts import BBSSystem, LocalShell, SSHClient, create_builtin_commands
from ..core.config_loader import TerminalConfig
from ..core.dispatch import CommandRegistry, ContextManager
from ..core.events import (
    EventManager,
    EventType,
    LogMessage,
    ManagerInitialized,
    TerminalEvent,
    TerminalOutput,
)
from ..core.filesystem import VirtualFileSystem, load_tree_file
from ..core.renderer import Renderer
from ..core.state_manager import StateManager
from .input_handler import InputHandler
from .log_manager import LogLevel, LogManager
from .narrative_loader import NarrativeLoader


TManager = TypeVar("TManager")

# Queued events may publish more events; bound the rounds so a feedback loop
# between subscribers cannot hang the prompt.
MAX_EVENT_ROUNDS = 20

PASSWORD_FRAGMENTS = ["RAVEN_", "SHADOW_", "VAULT_", "OMEGA_", "ALPHA_"]

WELCOME_BANNER = """\
+==============================================================+
|                                                              |
|            VAULT-TEC TERMINAL SYSTEM v2.1                    |
|            (C) 2077 VAULT-TEC INDUSTRIES                     |
|                                                              |
+==============================================================+"""


class TerminalApp:
    """Main terminal orchestrator that coordinates all subsystems."""

    def __init__(
        self,
        config: TerminalConfig,
        renderer: Renderer,
        input_func=None,
    ):
        self.config = config
        self.renderer = renderer
        self.input_func = input_func or input
        self.running = False

        self.event_manager = EventManager(enable_debug_logging=False)

        self._log_manager: Optional[LogManager] = None
        self._state_manager: Optional[StateManager] = None
        self._filesystem: Optional[VirtualFileSystem] = None
        self._command_registry: Optional[CommandRegistry] = None
        self._context_manager: Optional[ContextManager] = None
        self._input_handler: Optional[InputHandler] = None
        self._narrative_loader: Optional[NarrativeLoader] = None

        self._pending_minigames: list[tuple[str, str]] = []

    def _require_manager(self, manager: Optional[TManager], name: str) -> TManager:
        """Return the manager if initialized, otherwise raise a helpful error."""

        if manager is None:
            raise RuntimeError(f"{name} not initialized. Call initialize() first.")
        return manager

    @property
    def log_manager(self) -> LogManager:
        return self._require_manager(self._log_manager, "LogManager")

    @property
    def state_manager(self) -> StateManager:
        return self._require_manager(self._state_manager, "StateManager")

    @property
    def filesystem(self) -> VirtualFileSystem:
        return self._require_manager(self._filesystem, "VirtualFileSystem")

    @property
    def command_registry(self) -> CommandRegistry:
        return self._require_manager(self._command_registry, "CommandRegistry")

    @property
    def context_manager(self) -> ContextManager:
        return self._require_manager(self._context_manager, "ContextManager")

    @property
    def input_handler(self) -> InputHandler:
        return self._require_manager(self._input_handler, "InputHandler")

    @property
    def narrative_loader(self) -> NarrativeLoader:
        return self._require_manager(self._narrative_loader, "NarrativeLoader")

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="SYSTEM", level=level, source="TerminalApp"),
            source="TerminalApp",
        )

    def _print(self, text: str, style: str = "") -> None:
        self.event_manager.publish_immediate(TerminalOutput(text=text, style=style), source="TerminalApp")

    async def initialize(self, show_welcome: bool = True) -> None:
        """Build every subsystem, register the contexts and enter the first one."""
        self.renderer.start()
        if hasattr(self.renderer, "attach"):
            self.renderer.attach(self.event_manager)

        self._setup_event_system()
        self._initialize_managers()
        self._register_commands_and_contexts()

        if show_welcome:
            await self.show_welcome()

        narrative_path = self.config.narrative_path
        if narrative_path:
            self.narrative_loader.load_from_file(self.config.resolve_path(narrative_path))

        start_context = self.narrative_loader.get_start_context() or self.config.start_context
        await self.context_manager.switch_context(start_context, {"first_time": True})

        self.process_events()
        self.running = True

    def _setup_event_system(self) -> None:
        self._log_manager = LogManager(
            event_manager=self.event_manager,
            default_level=LogLevel.parse(self.config.log_level, LogLevel.INFO),
            log_dir=str(self.config.resolve_path(self.config.log_dir)),
        )
        self.event_manager.set_debug_callback(self.log_manager.debug)

        self.event_manager.subscribe(
            EventType.MINIGAME_STARTED,
            self._handle_minigame_started,
            subscriber_name="TerminalApp.minigame_started",
        )

    def _initialize_managers(self) -> None:
        self._state_manager = StateManager(
            event_manager=self.event_manager,
            save_dir=self.config.resolve_path(self.config.save_dir),
            max_history=self.config.max_history,
            autosave_seconds=self.config.autosave_seconds,
        )

        tree_path = self.config.resolve_path("assets/filesystem/vault.yaml")
        root = None
        try:
            root = load_tree_file(tree_path)
        except (OSError, ValueError) as e:
            self._emit_log(f"Failed to load filesystem tree {tree_path}: {e}", level="ERROR")

        self._filesystem = VirtualFileSystem(
            event_manager=self.event_manager,
            home_directory=self.config.home_directory,
            root=root,
        )

        self._command_registry = CommandRegistry(self.event_manager)
        self._context_manager = ContextManager(
            command_registry=self.command_registry,
            event_manager=self.event_manager,
            state_manager=self.state_manager,
        )
        self._input_handler = InputHandler(
            command_registry=self.command_registry,
            context_manager=self.context_manager,
            event_manager=self.event_manager,
            max_history=self.config.max_history,
        )
        self._narrative_loader = NarrativeLoader(
            event_manager=self.event_manager,
            state_manager=self.state_manager,
            filesystem=self.filesystem,
        )

        for name in ("LogManager", "StateManager", "VirtualFileSystem", "CommandRegistry",
                     "ContextManager", "InputHandler", "NarrativeLoader"):
            self.event_manager.publish(ManagerInitialized(manager_name=name), source="TerminalApp")

    def _register_commands_and_contexts(self) -> None:
        self.command_registry.register_bulk(create_builtin_commands(
            self.command_registry,
            self.state_manager,
            self.event_manager,
            log_manager=self.log_manager,
            context_manager=self.context_manager,
        ))

        scale = self.config.latency_scale
        contexts = [
            LocalShell(self.event_manager, self.state_manager, self.filesystem,
                       username=self.config.username, hostname=self.config.hostname,
                       latency_scale=scale),
            BBSSystem(self.event_manager, self.state_manager, self.filesystem, latency_scale=scale),
            SSHClient(self.event_manager, self.state_manager, self.filesystem, latency_scale=scale),
        ]
        for context in contexts:
            self.context_manager.register_context(context.id, context)

        self._emit_log(f"Registered {len(contexts)} contexts and "
                       f"{len(self.command_registry.get_all_commands())} commands")

    async def show_welcome(self) -> None:
        self._print(WELCOME_BANNER, "success")
        self._print("")
        self._print("INITIALIZING SYSTEM...", "system")
        for step in ("Loading kernel modules", "Mounting file systems", "Starting network services"):
            await self._pause(300)
            self._print(f"[OK] {step}", "success")
        self._print("")
        self._print('Type "help" for available commands.', "info")
        self._print('Type "cat welcome.txt" to begin.', "info")
        self._print("")

    async def _pause(self, ms: int) -> None:
        delay = ms * self.config.latency_scale / 1000
        if delay > 0:
            await asyncio.sleep(delay)

    def process_events(self) -> int:
        """Drain the queue, including events published while draining."""
        processed = 0
        for _ in range(MAX_EVENT_ROUNDS):
            if not self.event_manager.has_queued_events():
                break
            processed += self.event_manager.process_events()
        return processed

    # Minigames

    def _handle_minigame_started(self, event: TerminalEvent) -> None:
        self._pending_minigames.append((getattr(event, "kind", ""), getattr(event, "target", "")))

    async def run_pending_minigames(self) -> None:
        while self._pending_minigames:
            kind, target = self._pending_minigames.pop(0)
            if kind == "password_crack":
                await self.password_crack(target)
            else:
                self._emit_log(f"Unknown minigame '{kind}'", level="WARNING")

    async def password_crack(self, target: str) -> None:
        self._print("")
        self._print("=== PASSWORD CRACKER v1.0 ===", "highlight")
        self._print(f"Target: {target}", "info")
        self._print("")
        await self._pause(500)

        self._print("Found password fragments:", "success")
        for fragment in PASSWORD_FRAGMENTS:
            await self._pause(200)
            self._print(f"  {fragment}", "warning")

        self._print("")
        self._print("Combine fragments to create full password.", "info")
        self._print("Hint: Check downloaded files for the complete sequence.", "system")

    # Main loop

    def install_completion(self) -> None:
        """Hook tab completion into readline when the platform has it."""
        try:
            import readline
        except ImportError:
            return

        matches: list[str] = []

        def completer(text: str, state: int) -> Optional[str]:
            if state == 0:
                line = readline.get_line_buffer()[:readline.get_endidx()]
                matches[:] = self.input_handler.complete(line)
            return matches[state] if state < len(matches) else None

        readline.set_completer_delims(" ")
        readline.set_completer(completer)
        readline.parse_and_bind("tab: complete")

    async def step(self, line: str) -> bool:
        """
        Run one line of input through the terminal.

        Returns:
            bool: False once the session should end
        """
        result = await self.input_handler.handle_line(line)
        self.process_events()
        await self.run_pending_minigames()
        self.process_events()
        await self.renderer.drain()
        self.state_manager.maybe_autosave()
        self.process_events()

        if result is not None and result.terminate:
            return False
        return True

    async def _read_line(self) -> str:
        prompt = self.renderer.render_prompt() if hasattr(self.renderer, "render_prompt") else "> "
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.input_func, prompt)

    async def run(self) -> None:
        """Main terminal loop."""
        try:
            await self.initialize()
            self.install_completion()
            await self.renderer.drain()

            while self.running:
                try:
                    line = await self._read_line()
                except EOFError:
                    self._print("")
                    break
                self.running = await self.step(line)

        except KeyboardInterrupt:
            self._emit_log("Session interrupted", level="WARNING")
        finally:
            self.running = False
            await self.cleanup()

    async def cleanup(self) -> None:
        if self._state_manager is not None:
            self._state_manager.update_play_time()
        self.process_events()
        await self.renderer.drain()
        self.renderer.stop()
        self.event_manager.shutdown()
