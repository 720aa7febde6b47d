from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol


class Direction(str, Enum):
    """Which way the next Z move goes."""

    UP = "up"
    DOWN = "down"

    def flipped(self) -> Direction:
        return Direction.DOWN if self is Direction.UP else Direction.UP

    def offset(self, step: float = 1.0) -> float:
        return step if self is Direction.UP else -step


class DeviceSession(Protocol):
    """What the scheduler needs from a connected device."""

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def move_relative(self, x: float, y: float, z: float, speed: int = ...) -> None: ...


@dataclass(slots=True)
class ApplicationState:
    """Mutable record shared by the startup sequence and the scheduler.

    ``session`` is set once, after the device connects. ``busy`` is true
    while a move command is in flight.
    """

    session: Optional[DeviceSession] = None
    direction: Direction = Direction.UP
    busy: bool = False


__all__ = ["ApplicationState", "DeviceSession", "Direction"]
