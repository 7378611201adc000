from abc import ABC, abstractmethod
from typing import Optional
from dataclasses import dataclass


@dataclass
class RendererConfig:
    width: int = 80
    title: str = "Vault-Tec Terminal"
    typing_speed_ms: int = 0
    use_color: bool = True


class Renderer(ABC):

    def __init__(self, config: Optional[RendererConfig] = None):
        self.config = config or RendererConfig()
        self._running = False

    @abstractmethod
    def initialize(self) -> None:
        pass

    @abstractmethod
    def cleanup(self) -> None:
        pass

    @abstractmethod
    def write(self, text: str, style: str = "") -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every queued line has been written."""

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        self._running = True
        self.initialize()

    def stop(self) -> None:
        self._running = False
        self.cleanup()

    def get_width(self) -> int:
        return self.config.width
