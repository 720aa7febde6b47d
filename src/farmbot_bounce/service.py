from __future__ import annotations

import asyncio
import functools
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from farmbot_bounce.config import BounceSettings
from farmbot_bounce.errors import SessionNotConnected
from farmbot_bounce.session import FarmbotSession
from farmbot_bounce.state import ApplicationState, DeviceSession
from farmbot_bounce.tokens import create_token

logger = logging.getLogger("farmbot-bounce")

TokenProvider = Callable[[str, str, str], Awaitable[str]]
SessionFactory = Callable[[str], DeviceSession]


class StartupPhase(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class BounceService:
    """
    Moves the Z axis of one FarmBot up and down on a fixed period.

    Lifecycle:
      1. Trade the configured credentials for a session token
      2. Open a device session with that token and connect it
      3. Every ``loop_interval`` seconds, launch one tick; a tick that finds
         a command still in flight does nothing

    The scheduler is only armed once the session is connected, so no
    command can be sent before a session exists.
    """

    def __init__(
        self,
        settings: BounceSettings,
        *,
        token_provider: Optional[TokenProvider] = None,
        session_factory: Optional[SessionFactory] = None,
        state: Optional[ApplicationState] = None,
    ) -> None:
        self.settings = settings
        self.state = state or ApplicationState()
        self.phase = StartupPhase.UNAUTHENTICATED
        self._token_provider = token_provider or functools.partial(
            create_token, timeout=settings.http_timeout
        )
        self._session_factory = session_factory or self._default_session
        self._ticks: set[asyncio.Task[None]] = set()

    def _default_session(self, token: str) -> FarmbotSession:
        return FarmbotSession(
            token,
            port=self.settings.mqtt_port,
            rpc_timeout=self.settings.rpc_timeout,
        )

    # --- Startup ---

    async def start(self) -> bool:
        """Authenticate and connect. Returns True once the device is connected.

        Every failure is logged and reported as False; the caller must not
        arm the scheduler in that case.
        """
        self.phase = StartupPhase.CONNECTING
        session: Optional[DeviceSession] = None
        try:
            token = await self._token_provider(
                self.settings.email, self.settings.password, self.settings.server
            )
            session = self._session_factory(token)
            await session.connect()
        except Exception as exc:
            self.phase = StartupPhase.FAILED
            self._on_error(exc)
            if session is not None:
                await self._close_session(session)
            return False

        self.state.session = session
        self.phase = StartupPhase.CONNECTED
        logger.info("CONNECTED TO FARMBOT!")
        return True

    # --- Scheduler ---

    async def tick(self) -> None:
        """Issue one move command unless the previous one is still running."""
        state = self.state
        if state.busy:
            logger.info("Busy. Not running loop.")
            return
        if state.session is None:
            raise SessionNotConnected("Cannot move before the device session is connected")

        state.busy = True
        direction = state.direction
        logger.info("Move Z Axis %s", direction.value, extra={"direction": direction.value})

        failed = False
        try:
            await state.session.move_relative(
                x=0,
                y=0,
                z=direction.offset(self.settings.move_step),
                speed=self.settings.move_speed,
            )
        except Exception as exc:
            failed = True
            self._on_error(exc)
        else:
            state.direction = direction.flipped()
        finally:
            if not failed or self.settings.reset_busy_on_failure:
                state.busy = False
            else:
                logger.warning("Command failed; loop halted until restart")

    async def run(self, stop_event: asyncio.Event) -> None:
        """Start up, then tick on a fixed period until ``stop_event`` is set."""
        try:
            if await self.start():
                await self._schedule(stop_event)
            else:
                await stop_event.wait()
        finally:
            await self._shutdown()

    async def _schedule(self, stop_event: asyncio.Event) -> None:
        interval = self.settings.loop_interval
        logger.info("Starting move loop every %.1fs", interval)
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                task = asyncio.create_task(self.tick())
                self._ticks.add(task)
                task.add_done_callback(self._tick_done)

    def _tick_done(self, task: asyncio.Task[None]) -> None:
        self._ticks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._on_error(exc)

    async def _shutdown(self) -> None:
        for task in list(self._ticks):
            task.cancel()
        if self._ticks:
            await asyncio.gather(*self._ticks, return_exceptions=True)

        if self.state.session is not None:
            await self._close_session(self.state.session)
        logger.info("Bounce service stopped")

    async def _close_session(self, session: DeviceSession) -> None:
        try:
            await session.disconnect()
        except Exception as exc:
            logger.warning("Session disconnect failed: %s", exc)

    @staticmethod
    def _on_error(exc: BaseException) -> None:
        logger.error("=== ERROR ===", exc_info=exc, extra={"error": repr(exc)})


__all__ = ["BounceService", "StartupPhase"]
