"""
Shared base for the scripted story contexts.

Adds the collaborators every scripted context works with (event manager,
progression state, virtual filesystem) and small helpers for printing and
simulated latency.
"""
import asyncio
from typing import TYPE_CHECKING

from ..core.dispatch import BaseContext, CommandResult
from ..core.events import LogMessage, TerminalGlitch, TerminalOutput

if TYPE_CHECKING:
    from ..core.events import EventManager
    from ..core.filesystem import VirtualFileSystem
    from ..core.state_manager import StateManager


class ScriptedContext(BaseContext):
    """A context driven by canned content and progression flags."""

    home_context_id = "localhost"

    def __init__(
        self,
        context_id: str,
        name: str,
        context_type: str,
        event_manager: "EventManager",
        state_manager: "StateManager",
        filesystem: "VirtualFileSystem",
        latency_scale: float = 1.0,
    ):
        super().__init__(context_id, name, context_type)
        self.event_manager = event_manager
        self.state_manager = state_manager
        self.filesystem = filesystem
        self.latency_scale = latency_scale

    def output(self, text: str, style: str = "") -> None:
        """Print a line right away, ahead of the command's final result."""
        self.event_manager.publish_immediate(TerminalOutput(text=text, style=style), source=self.name)

    def glitch(self, duration_ms: int = 300) -> None:
        self.event_manager.publish_immediate(TerminalGlitch(duration_ms=duration_ms), source=self.name)

    async def pause(self, ms: int) -> None:
        """Simulated network or processing delay."""
        delay = ms * self.latency_scale / 1000
        if delay > 0:
            await asyncio.sleep(delay)

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="CONTEXT", level=level, source=self.name),
            source=self.name,
        )

    @staticmethod
    def denied(message: str = "Permission denied.") -> CommandResult:
        return CommandResult.fail(message)
