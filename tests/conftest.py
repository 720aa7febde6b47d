"""Shared pytest fixtures for farmbot-bounce tests."""

from __future__ import annotations

import asyncio
import base64
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest

from farmbot_bounce.config import BounceSettings


def make_jwt(claims: dict[str, Any]) -> str:
    """Build an unsigned JWT with the given payload claims."""

    def _segment(data: dict[str, Any]) -> str:
        return base64.urlsafe_b64encode(orjson.dumps(data)).rstrip(b"=").decode()

    return f"{_segment({'alg': 'RS256', 'typ': 'JWT'})}.{_segment(claims)}.signature"


class FakeSession:
    """Stand-in device session recording every move it is asked to make."""

    def __init__(self, token: str) -> None:
        self.token = token
        self.connected = False
        self.disconnected = False
        self.moves: list[dict[str, Any]] = []
        self.fail_next: list[BaseException] = []
        self.gate: asyncio.Event | None = None

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.disconnected = True

    async def move_relative(self, x: float, y: float, z: float, speed: int = 100) -> None:
        self.moves.append({"x": x, "y": y, "z": z})
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_next:
            raise self.fail_next.pop(0)


@pytest.fixture
def device_claims() -> dict[str, Any]:
    return {
        "sub": 1,
        "bot": "device_42",
        "mqtt": "broker.example.com",
        "mqtt_ws": "wss://broker.example.com:443/ws/mqtt",
        "iss": "//my.farm.bot:443",
        "jti": "abc-123",
        "exp": 1893456000,
    }


@pytest.fixture
def device_token(device_claims) -> str:
    return make_jwt(device_claims)


@pytest.fixture
def settings_factory() -> Callable[..., BounceSettings]:
    def _factory(**overrides: Any) -> BounceSettings:
        data: dict[str, Any] = {
            "email": "a@example.com",
            "password": "x",
            "server": "https://my.farm.bot",
            "loop_interval": 0.01,
        }
        data.update(overrides)
        return BounceSettings(**data)

    return _factory


@pytest.fixture
def fake_session_factory() -> Callable[[str], FakeSession]:
    """Factory that remembers every session it builds on ``.sessions``."""
    sessions: list[FakeSession] = []

    def _factory(token: str) -> FakeSession:
        session = FakeSession(token)
        sessions.append(session)
        return session

    _factory.sessions = sessions  # type: ignore[attr-defined]
    return _factory


@pytest.fixture
def mock_mqtt_client():
    """Mock asyncio_mqtt.Client for unit testing the device session."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.subscribe = AsyncMock()
    client.publish = AsyncMock()

    messages_context = MagicMock()
    messages_context.__aenter__ = AsyncMock(return_value=_never_yields())
    messages_context.__aexit__ = AsyncMock(return_value=None)
    client.messages = MagicMock(return_value=messages_context)
    return client


async def _never_yields():
    await asyncio.Event().wait()
    yield  # pragma: no cover
