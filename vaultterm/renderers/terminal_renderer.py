import asyncio
import sys
from collections import deque
from dataclasses import dataclass
from typing import Optional, TextIO, TYPE_CHECKING

from ..core.renderer import Renderer, RendererConfig
from ..core.events import EventType

if TYPE_CHECKING:
    from ..core.events import EventManager, TerminalEvent


@dataclass(frozen=True)
class _QueuedLine:
    text: str
    style: str = ""
    clear: bool = False


class TerminalRenderer(Renderer):

    def __init__(
        self,
        config: Optional[RendererConfig] = None,
        event_manager: Optional["EventManager"] = None,
        stream: Optional[TextIO] = None,
    ):
        super().__init__(config)
        self.stream = stream or sys.stdout
        self.prompt = ""
        self._pending: deque[_QueuedLine] = deque()
        self._typing_task: Optional[asyncio.Task] = None

        # Written lines, newest last, for the debug view and tests
        self.history: deque[str] = deque(maxlen=500)

        self.terminal_codes = {
            "reset": "\033[0m",
            "clear_screen": "\033[2J",
            "cursor_home": "\033[H",
        }

        # Style tag -> ANSI colour
        self.style_colors = {
            "error": "\033[91m",        # Red
            "success": "\033[92m",      # Green
            "warning": "\033[93m",      # Yellow
            "info": "\033[96m",         # Cyan
            "system": "\033[37m",       # Light gray
            "highlight": "\033[1;97m",  # Bright white
            "glitch": "\033[95m",       # Magenta
            "achievement": "\033[1;93m",  # Bright yellow
            "prompt": "\033[92m",       # Green
        }

        if event_manager is not None:
            self.attach(event_manager)

    def attach(self, event_manager: "EventManager") -> None:
        """Subscribe to the events this renderer displays."""
        event_manager.subscribe(EventType.TERMINAL_OUTPUT, self._handle_output,
                                subscriber_name="TerminalRenderer.output")
        event_manager.subscribe(EventType.TERMINAL_CLEAR, self._handle_clear,
                                subscriber_name="TerminalRenderer.clear")
        event_manager.subscribe(EventType.CONTEXT_CHANGED, self._handle_context_changed,
                                subscriber_name="TerminalRenderer.context_changed")
        event_manager.subscribe(EventType.ACHIEVEMENT_UNLOCKED, self._handle_achievement,
                                subscriber_name="TerminalRenderer.achievement")
        event_manager.subscribe(EventType.TERMINAL_GLITCH, self._handle_glitch,
                                subscriber_name="TerminalRenderer.glitch")

    def initialize(self) -> None:
        self.clear()

    def cleanup(self) -> None:
        if self.config.use_color:
            self.stream.write(self.terminal_codes["reset"])
        self.stream.flush()

    def clear(self) -> None:
        if self.config.use_color:
            self.stream.write(self.terminal_codes["clear_screen"] + self.terminal_codes["cursor_home"])
            self.stream.flush()
        self.history.clear()

    def colorize(self, text: str, style: str = "") -> str:
        color = self.style_colors.get(style, "")
        if not self.config.use_color or not color:
            return text
        return f"{color}{text}{self.terminal_codes['reset']}"

    def write(self, text: str, style: str = "") -> None:
        for line in text.split("\n"):
            self.stream.write(self.colorize(line, style) + "\n")
            self.history.append(line)
        self.stream.flush()

    def render_prompt(self) -> str:
        if not self.prompt:
            return "> "
        return self.colorize(self.prompt, "prompt") + " "

    # Event handlers

    def _handle_output(self, event: "TerminalEvent") -> None:
        self._enqueue(_QueuedLine(text=event.text, style=event.style))

    def _handle_clear(self, event: "TerminalEvent") -> None:
        self._enqueue(_QueuedLine(text="", clear=True))

    def _handle_context_changed(self, event: "TerminalEvent") -> None:
        self.prompt = event.prompt

    def _handle_achievement(self, event: "TerminalEvent") -> None:
        self._enqueue(_QueuedLine(text=f"*** Achievement Unlocked: {event.achievement} ***",
                                  style="achievement"))

    def _handle_glitch(self, event: "TerminalEvent") -> None:
        width = max(1, min(self.config.width, event.duration_ms // 10))
        self._enqueue(_QueuedLine(text="▓▒░" * (width // 3) or "▓", style="glitch"))

    # Output queue

    def _enqueue(self, line: _QueuedLine) -> None:
        """Queue a line; lines are always written in the order they arrive."""
        self._pending.append(line)

        if self.config.typing_speed_ms <= 0:
            self._flush_now()
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._flush_now()
            return

        if self._typing_task is None or self._typing_task.done():
            self._typing_task = loop.create_task(self._type_pending())

    def _flush_now(self) -> None:
        while self._pending:
            self._emit(self._pending.popleft())

    def _emit(self, line: _QueuedLine) -> None:
        if line.clear:
            self.clear()
        else:
            self.write(line.text, line.style)

    async def _type_pending(self) -> None:
        delay = self.config.typing_speed_ms / 1000
        while self._pending:
            line = self._pending.popleft()
            if line.clear or not line.text:
                self._emit(line)
                continue

            color = self.style_colors.get(line.style, "") if self.config.use_color else ""
            for row in line.text.split("\n"):
                self.stream.write(color)
                for char in row:
                    self.stream.write(char)
                    self.stream.flush()
                    await asyncio.sleep(delay)
                self.stream.write((self.terminal_codes["reset"] if color else "") + "\n")
                self.history.append(row)
            self.stream.flush()

    async def drain(self) -> None:
        if self._typing_task is not None and not self._typing_task.done():
            await self._typing_task
        self._flush_now()
