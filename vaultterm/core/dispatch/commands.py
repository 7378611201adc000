"""
Command definitions for the terminal dispatch engine.

This module defines the registered command record, the result contract every
handler must satisfy, and the action-method command used to route a shared
verb to whichever context is currently active.
"""
import inspect
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

if TYPE_CHECKING:
    from .base_context import BaseContext


WILDCARD = "*"


class CommandFailure(Enum):
    """Why the dispatcher synthesized a failure instead of the handler."""
    NOT_FOUND = auto()
    INELIGIBLE = auto()
    FAULT = auto()
    INVALID_RESULT = auto()


@dataclass(frozen=True)
class ContextSwitchRequest:
    """A transition a handler or lifecycle hook asks the context manager to make.

    `pop` returns to the previously active context; otherwise `context_id`
    names the target.
    """
    context_id: Optional[str] = None
    params: dict[str, Any] = field(default_factory=dict)
    pop: bool = False

    @classmethod
    def to(cls, context_id: str, **params: Any) -> "ContextSwitchRequest":
        return cls(context_id=context_id, params=dict(params))

    @classmethod
    def back(cls) -> "ContextSwitchRequest":
        return cls(pop=True)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a command handler.

    Either a success (optional `output` and `style` tag) or a failure
    (`error`). `failure` is only set when the dispatcher produced the result
    itself rather than the handler.
    """
    success: bool
    output: str = ""
    style: str = ""
    error: str = ""
    failure: Optional[CommandFailure] = None
    switch_to: Optional[ContextSwitchRequest] = None
    terminate: bool = False

    @classmethod
    def ok(
        cls,
        output: str = "",
        style: str = "",
        switch_to: Optional[ContextSwitchRequest] = None,
        terminate: bool = False,
    ) -> "CommandResult":
        return cls(success=True, output=output, style=style,
                   switch_to=switch_to, terminate=terminate)

    @classmethod
    def fail(
        cls,
        error: str,
        failure: Optional[CommandFailure] = None,
        style: str = "error",
    ) -> "CommandResult":
        return cls(success=False, error=error, failure=failure, style=style)


HandlerReturn = Optional[CommandResult]
CommandHandler = Callable[
    [list[str], Optional["BaseContext"]],
    Union[HandlerReturn, Awaitable[HandlerReturn]],
]


@dataclass
class Command:
    """A registered name-to-handler binding.

    `contexts` lists the context types the command is valid in; the wildcard
    makes it valid everywhere and an empty list disables it.
    """
    name: str
    handler: Optional[CommandHandler]
    aliases: list[str] = field(default_factory=list)
    contexts: list[str] = field(default_factory=lambda: [WILDCARD])
    description: str = ""
    usage: str = ""
    hidden: bool = False

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def keys(self) -> list[str]:
        """Every lookup key of this command, primary name first."""
        return [self.key] + [alias.lower() for alias in self.aliases]

    def is_available_for(self, context_type: Optional[str]) -> bool:
        if WILDCARD in self.contexts:
            return True
        return context_type is not None and context_type in self.contexts


class ContextAction:
    """Handler that delegates to a `cmd_<name>` method on the active context."""

    def __init__(self, action_name: str):
        self.action_name = action_name
        self.__name__ = f"cmd_{action_name}"

    async def __call__(self, args: list[str], context: Optional["BaseContext"]) -> HandlerReturn:
        """Execute by calling the corresponding method on the context."""
        method = getattr(context, f"cmd_{self.action_name}", None)
        if method is None:
            return CommandResult.fail(f"{self.action_name}: not supported here")
        result = method(args)
        if inspect.isawaitable(result):
            result = await result
        return result
