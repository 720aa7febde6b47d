"""Exception hierarchy for the bounce client."""

from __future__ import annotations


class BounceError(RuntimeError):
    """Base class for every error raised by farmbot-bounce."""


class ConfigurationError(BounceError):
    """Raised when required settings are missing from the environment."""


class TokenExchangeError(BounceError):
    """Raised when the API server does not hand out a session token."""


class TokenDecodeError(BounceError):
    """Raised when a session token cannot be decoded into its claims."""


class SessionError(BounceError):
    """Base class for device session failures."""


class SessionNotConnected(SessionError):
    """Raised when a command is sent on a session that is not connected."""


class CommandError(SessionError):
    """Raised when the device answers an RPC with ``rpc_error``."""

    def __init__(self, label: str, explanations: list[str]) -> None:
        self.label = label
        self.explanations = explanations
        detail = "; ".join(explanations) if explanations else "no explanation given"
        super().__init__(f"RPC {label} failed: {detail}")


class CommandTimeout(SessionError):
    """Raised when the device does not answer an RPC in time."""

    def __init__(self, label: str, timeout: float) -> None:
        self.label = label
        self.timeout = timeout
        super().__init__(f"RPC {label} timed out after {timeout:.1f}s")


__all__ = [
    "BounceError",
    "CommandError",
    "CommandTimeout",
    "ConfigurationError",
    "SessionError",
    "SessionNotConnected",
    "TokenDecodeError",
    "TokenExchangeError",
]
