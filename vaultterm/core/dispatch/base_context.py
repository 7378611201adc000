"""
Abstract interaction context.

A context is a named, stateful mode of interaction (local shell, BBS, SSH)
with its own prompt and command set. The context manager only talks to
contexts through this interface.
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .commands import Command, ContextSwitchRequest


class BaseContext(ABC):
    """Abstract base class for all terminal contexts."""

    def __init__(self, context_id: str, name: str, context_type: str):
        self.id = context_id
        self.name = name
        self.type = context_type
        self.data: dict[str, Any] = {}

    @abstractmethod
    def get_prompt(self) -> str:
        """Prompt string shown while this context is active."""

    @abstractmethod
    def get_commands(self) -> list["Command"]:
        """Commands this context contributes to the registry."""

    async def on_enter(self, params: dict[str, Any]) -> Optional["ContextSwitchRequest"]:
        """Called every time the context becomes active.

        Returning a switch request makes the context manager redirect
        immediately (e.g. a refused connection sending the user home).
        """
        self.data = {**self.data, **params}
        return None

    async def on_exit(self) -> None:
        """Called every time the context stops being active."""

    def set_data(self, key: str, value: Any) -> None:
        self.data[key] = value

    def get_data(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def has_data(self, key: str) -> bool:
        return key in self.data

    def clear_data(self) -> None:
        self.data = {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, type={self.type!r})"
