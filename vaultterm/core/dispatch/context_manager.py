"""
Context management system.

This module owns the single active terminal context, runs the exit/enter
lifecycle on every transition, keeps the prompt published, and remembers the
previously active contexts so a context can return to its caller.

Lifecycle-hook faults roll back: a failing `on_exit` aborts the switch and
keeps the outgoing context active; a failing `on_enter` restores the context
that was active before (re-entered with empty params), or leaves the manager
without an active context when there is nothing to restore.
"""
from typing import TYPE_CHECKING, Any, Optional

from ..events import (
    ContextChanged,
    ContextRegistered,
    EventType,
    LogMessage,
    TerminalOutput,
)
from .base_context import BaseContext

if TYPE_CHECKING:
    from ..events import EventManager, TerminalEvent
    from ..events.event_manager import Unsubscribe
    from ..state_manager import StateManager
    from .command_registry import CommandRegistry
    from .commands import ContextSwitchRequest


class ContextManager:
    """Manages registered contexts and transitions between them."""

    def __init__(
        self,
        command_registry: "CommandRegistry",
        event_manager: "EventManager",
        state_manager: "StateManager",
    ):
        self.command_registry = command_registry
        self.event_manager = event_manager
        self.state_manager = state_manager

        self._contexts: dict[str, BaseContext] = {}
        self._current: Optional[BaseContext] = None
        self._current_id: Optional[str] = None
        self._context_stack: list[str] = []
        self._directory_listener: Optional["Unsubscribe"] = None

    def _emit_log(self, message: str, level: str = "INFO") -> None:
        self.event_manager.publish(
            LogMessage(message=message, category="CONTEXT", level=level, source="ContextManager"),
            source="ContextManager",
        )

    def _notify_error(self, text: str) -> None:
        self.event_manager.publish_immediate(
            TerminalOutput(text=text, style="error"), source="ContextManager"
        )

    def register_context(self, context_id: str, context: BaseContext) -> bool:
        """
        Register a context and the commands it provides.

        Args:
            context_id: Registration key used by switch_context
            context: The context instance

        Returns:
            bool: False if the id is already taken (the existing context is kept)
        """
        if not isinstance(context, BaseContext):
            raise TypeError(f"Context '{context_id}' must be a BaseContext, got {type(context).__name__}")

        if context_id in self._contexts:
            self._emit_log(f"Context '{context_id}' is already registered; ignoring duplicate", level="WARNING")
            return False

        self._contexts[context_id] = context
        for command in context.get_commands():
            self.command_registry.register(command)

        self.event_manager.publish(ContextRegistered(context_id=context_id), source="ContextManager")
        self._emit_log(f"Registered context '{context_id}' ({context.type})")
        return True

    async def switch_context(self, context_id: Optional[str], params: Optional[dict[str, Any]] = None) -> bool:
        """
        Switch to a registered context.

        The outgoing context's on_exit completes before the target's on_enter
        starts. A switch request returned by on_enter is applied right away.

        Args:
            context_id: Target context id
            params: Parameters merged into the target's data on entry

        Returns:
            bool: True if the switch (or the redirect it triggered) succeeded
        """
        target = self._contexts.get(context_id) if context_id is not None else None
        if target is None:
            self._notify_error(f"Error: Unknown context '{context_id}'")
            self._emit_log(f"Switch to unknown context '{context_id}' refused", level="WARNING")
            return False

        previous_id = self._current_id
        if self._current is not None:
            try:
                await self._current.on_exit()
            except Exception as e:
                self._report_hook_fault("on_exit", previous_id, e)
                self._publish_prompt()
                return False
            self._context_stack.append(previous_id)

        self._set_current(context_id)
        try:
            redirect = await target.on_enter(dict(params or {}))
        except Exception as e:
            self._report_hook_fault("on_enter", context_id, e)
            if previous_id is not None:
                self._context_stack.pop()
            await self._restore(previous_id)
            return False

        if redirect is not None:
            self._emit_log(f"Context '{context_id}' redirected on entry", level="DEBUG")
            return await self.apply(redirect)

        self._finish_transition()
        return True

    async def pop_context(self) -> bool:
        """
        Return to the previously active context.

        The context being left is not pushed back onto the stack.

        Returns:
            bool: False if there is no previous context or a hook failed
        """
        if not self._context_stack:
            return False

        exited_id = self._current_id
        if self._current is not None:
            try:
                await self._current.on_exit()
            except Exception as e:
                self._report_hook_fault("on_exit", exited_id, e)
                self._publish_prompt()
                return False

        previous_id = self._context_stack.pop()
        self._set_current(previous_id)
        try:
            redirect = await self._contexts[previous_id].on_enter({})
        except Exception as e:
            self._report_hook_fault("on_enter", previous_id, e)
            self._context_stack.append(previous_id)
            await self._restore(exited_id)
            return False

        if redirect is not None:
            return await self.apply(redirect)

        self._finish_transition()
        return True

    async def apply(self, request: "ContextSwitchRequest") -> bool:
        """Carry out a switch request returned by a handler or hook."""
        if request.pop:
            return await self.pop_context()
        return await self.switch_context(request.context_id, request.params)

    def _set_current(self, context_id: Optional[str]) -> None:
        self._current_id = context_id
        self._current = self._contexts[context_id] if context_id is not None else None

    async def _restore(self, context_id: Optional[str]) -> None:
        """Make a context active again after a failed transition."""
        self._set_current(context_id)
        if self._current is not None:
            try:
                # a redirect requested while rolling back is ignored
                await self._current.on_enter({})
            except Exception as e:
                self._report_hook_fault("on_enter", context_id, e)
                self._set_current(None)

        self._publish_prompt()
        self._replace_directory_listener()
        if self._current_id is not None:
            self.state_manager.set_current_context(self._current_id)

    def _finish_transition(self) -> None:
        self._publish_prompt()
        self._replace_directory_listener()
        self.state_manager.set_current_context(self._current_id)
        self._emit_log(f"Active context is now '{self._current_id}'")

    def _report_hook_fault(self, hook: str, context_id: Optional[str], error: Exception) -> None:
        self._emit_log(f"{hook} of context '{context_id}' failed: {error}", level="ERROR")
        self._notify_error(f"Error: context '{context_id}' failed during {hook}: {error}")

    def _replace_directory_listener(self) -> None:
        """Keep exactly one prompt-refresh listener on directory changes."""
        if self._directory_listener is not None:
            self._directory_listener()
            self._directory_listener = None

        self._directory_listener = self.event_manager.subscribe(
            EventType.DIRECTORY_CHANGED,
            self._handle_directory_changed,
            subscriber_name="ContextManager.directory_changed",
        )

    def _handle_directory_changed(self, event: "TerminalEvent") -> None:
        self._publish_prompt()

    def _publish_prompt(self) -> None:
        self.event_manager.publish_immediate(
            ContextChanged(context_id=self._current_id, prompt=self.get_prompt(), context=self._current),
            source="ContextManager",
        )

    def get_prompt(self) -> str:
        """Prompt of the active context, empty when there is none."""
        if self._current is None:
            return ""
        try:
            return self._current.get_prompt()
        except Exception as e:
            self._emit_log(f"Error computing prompt for '{self._current_id}': {e}", level="ERROR")
            return ""

    def get_current_context(self) -> Optional[BaseContext]:
        return self._current

    def get_current_context_id(self) -> Optional[str]:
        return self._current_id

    def get_context(self, context_id: str) -> Optional[BaseContext]:
        return self._contexts.get(context_id)

    def has_context(self, context_id: str) -> bool:
        return context_id in self._contexts

    def get_all_contexts(self) -> list[dict[str, str]]:
        """
        Describe every registered context.

        Returns:
            list[dict]: One {"id", "name", "type"} entry per context
        """
        return [
            {
                "id": context_id,
                "name": context.name or context_id,
                "type": context.type or "unknown",
            }
            for context_id, context in self._contexts.items()
        ]

    def get_context_stack(self) -> list[str]:
        """Ids of previously active contexts, oldest first."""
        return list(self._context_stack)
