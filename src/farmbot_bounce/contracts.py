"""
CeleryScript contracts exchanged with FarmBot OS over MQTT.

Commands are wrapped in an ``rpc_request`` node identified by a unique
label. The device answers on its ``from_device`` channel with either an
``rpc_ok`` or an ``rpc_error`` node carrying the same label.
"""

from __future__ import annotations

import uuid
from typing import Literal, Union

from pydantic import BaseModel, Field

# ==============================================================================
# CONSTANTS & TOPICS
# ==============================================================================

DEFAULT_RPC_PRIORITY = 600
DEFAULT_MOVE_SPEED = 100


def topic_from_clients(bot: str) -> str:
    """Channel the device listens on for commands."""
    return f"bot/{bot}/from_clients"


def topic_from_device(bot: str) -> str:
    """Channel the device answers RPC requests on."""
    return f"bot/{bot}/from_device"


# ==============================================================================
# REQUESTS
# ==============================================================================


class MoveRelativeArgs(BaseModel):
    x: float
    y: float
    z: float
    speed: int = Field(default=DEFAULT_MOVE_SPEED, gt=0, le=100)


class MoveRelative(BaseModel):
    """Offset the gantry from its current position."""

    kind: Literal["move_relative"] = "move_relative"
    args: MoveRelativeArgs

    model_config = {"extra": "forbid"}


class RpcRequestArgs(BaseModel):
    label: str = Field(default_factory=lambda: uuid.uuid4().hex)
    priority: int = DEFAULT_RPC_PRIORITY


class RpcRequest(BaseModel):
    """
    Envelope for commands sent to the device.

    Example:
        >>> req = RpcRequest.wrap(MoveRelative(args=MoveRelativeArgs(x=0, y=0, z=1)))
        >>> req.args.label  # Auto-generated uuid
    """

    kind: Literal["rpc_request"] = "rpc_request"
    args: RpcRequestArgs = Field(default_factory=RpcRequestArgs)
    body: list[MoveRelative]

    model_config = {"extra": "forbid"}

    @classmethod
    def wrap(cls, *commands: MoveRelative, priority: int = DEFAULT_RPC_PRIORITY) -> RpcRequest:
        return cls(args=RpcRequestArgs(priority=priority), body=list(commands))

    @property
    def label(self) -> str:
        return self.args.label


# ==============================================================================
# REPLIES
# ==============================================================================


class ReplyArgs(BaseModel):
    label: str


class ExplanationArgs(BaseModel):
    message: str


class Explanation(BaseModel):
    kind: Literal["explanation"] = "explanation"
    args: ExplanationArgs


class RpcOk(BaseModel):
    kind: Literal["rpc_ok"]
    args: ReplyArgs


class RpcError(BaseModel):
    kind: Literal["rpc_error"]
    args: ReplyArgs
    body: list[Explanation] = Field(default_factory=list)

    def messages(self) -> list[str]:
        return [item.args.message for item in self.body]


class RpcReply(BaseModel):
    """Discriminated wrapper used to parse ``from_device`` payloads."""

    reply: Union[RpcOk, RpcError] = Field(discriminator="kind")


__all__ = [
    "DEFAULT_MOVE_SPEED",
    "DEFAULT_RPC_PRIORITY",
    "Explanation",
    "MoveRelative",
    "MoveRelativeArgs",
    "RpcError",
    "RpcOk",
    "RpcReply",
    "RpcRequest",
    "RpcRequestArgs",
    "topic_from_clients",
    "topic_from_device",
]
