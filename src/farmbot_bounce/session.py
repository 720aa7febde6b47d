"""Live MQTT session with a single FarmBot device.

The session is built from an encoded session token. ``connect`` reads the
broker host and device id from the token claims, logs in to the broker
with the token as password and listens on the device's reply channel.
Commands are CeleryScript ``rpc_request`` nodes; each call waits for the
``rpc_ok`` or ``rpc_error`` answer that carries its label.

Example:
    ```python
    async with FarmbotSession(token) as bot:
        await bot.move_relative(x=0, y=0, z=1)
    ```
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Optional

import asyncio_mqtt as mqtt

from farmbot_bounce.contracts import (
    DEFAULT_MOVE_SPEED,
    MoveRelative,
    MoveRelativeArgs,
    RpcError,
    RpcReply,
    RpcRequest,
    topic_from_clients,
    topic_from_device,
)
from farmbot_bounce.errors import CommandError, CommandTimeout, SessionNotConnected
from farmbot_bounce.json import dumps, loads
from farmbot_bounce.tokens import TokenClaims, decode_token

logger = logging.getLogger("farmbot-bounce.session")


class FarmbotSession:
    """Authenticated command channel to one device."""

    def __init__(
        self,
        token: str,
        *,
        port: int = 1883,
        rpc_timeout: float = 30.0,
        keepalive: int = 60,
        qos: int = 0,
    ) -> None:
        self.token = token
        self.port = port
        self.rpc_timeout = rpc_timeout
        self.keepalive = keepalive
        self.qos = qos

        self._claims: Optional[TokenClaims] = None
        self._client: Optional[mqtt.Client] = None
        self._dispatch_task: Optional[asyncio.Task[None]] = None
        self._pending: dict[str, asyncio.Future[None]] = {}
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def claims(self) -> Optional[TokenClaims]:
        """Token claims, available once ``connect`` has run."""
        return self._claims

    async def __aenter__(self) -> FarmbotSession:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()

    # --- Lifecycle ---

    async def connect(self) -> None:
        """Log in to the device's broker and start routing replies.

        Raises:
            TokenDecodeError: If the token does not carry broker claims
            asyncio_mqtt.MqttError: If the broker refuses the connection
        """
        if self._connected:
            logger.debug("Already connected, skipping connect()")
            return

        claims = decode_token(self.token)
        client = mqtt.Client(
            hostname=claims.mqtt,
            port=self.port,
            username=claims.bot,
            password=self.token,
            client_id=f"farmbot-bounce-{uuid.uuid4().hex[:12]}",
            keepalive=self.keepalive,
        )
        await client.__aenter__()
        self._claims = claims
        self._client = client
        self._connected = True

        logger.info(
            "Connected to MQTT broker at %s:%d as %s",
            claims.mqtt,
            self.port,
            claims.bot,
        )

        self._dispatch_task = asyncio.create_task(self._dispatch_messages())
        try:
            await client.subscribe(topic_from_device(claims.bot), qos=self.qos)
        except BaseException:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Stop routing replies and close the broker connection.

        Pending commands fail with SessionNotConnected. Safe to call when
        not connected.
        """
        if not self._connected:
            return
        self._connected = False

        if self._dispatch_task:
            self._dispatch_task.cancel()
            try:
                await asyncio.wait_for(self._dispatch_task, timeout=1.0)
            except (asyncio.CancelledError, asyncio.TimeoutError):
                pass
            self._dispatch_task = None

        for label, future in self._pending.items():
            if not future.done():
                future.set_exception(SessionNotConnected(f"Session closed before RPC {label} finished"))
        self._pending.clear()

        if self._client:
            await self._client.__aexit__(None, None, None)
            self._client = None

        logger.info("Disconnected from MQTT broker")

    # --- Commands ---

    async def move_relative(
        self,
        x: float,
        y: float,
        z: float,
        speed: int = DEFAULT_MOVE_SPEED,
    ) -> None:
        """Offset the device by ``(x, y, z)`` and wait for it to finish.

        Raises:
            SessionNotConnected: If called before ``connect``
            CommandError: If the device answers with ``rpc_error``
            CommandTimeout: If no answer arrives within ``rpc_timeout``
        """
        command = MoveRelative(args=MoveRelativeArgs(x=x, y=y, z=z, speed=speed))
        await self.send(RpcRequest.wrap(command))

    async def send(self, request: RpcRequest) -> None:
        """Publish an RPC request and wait for the matching reply."""
        if not self._connected or self._client is None or self._claims is None:
            raise SessionNotConnected("Cannot send command: session is not connected")

        label = request.label
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._pending[label] = future
        try:
            await self._client.publish(
                topic_from_clients(self._claims.bot),
                dumps(request.model_dump(mode="json")),
                qos=self.qos,
            )
            logger.debug("Published rpc_request label=%s", label)
            await asyncio.wait_for(future, timeout=self.rpc_timeout)
        except asyncio.TimeoutError:
            raise CommandTimeout(label, self.rpc_timeout) from None
        finally:
            self._pending.pop(label, None)

    # --- Reply routing ---

    def _handle_reply(self, payload: bytes) -> None:
        try:
            parsed = RpcReply.model_validate({"reply": loads(payload)})
        except ValueError:
            # Anything that is not rpc_ok / rpc_error is not ours to route.
            logger.debug("Ignoring non-reply payload on device channel")
            return

        reply = parsed.reply
        future = self._pending.get(reply.args.label)
        if future is None or future.done():
            logger.debug("No pending RPC for label=%s", reply.args.label)
            return

        if isinstance(reply, RpcError):
            future.set_exception(CommandError(reply.args.label, reply.messages()))
        else:
            future.set_result(None)

    async def _dispatch_messages(self) -> None:
        assert self._client is not None, "Client must be set before dispatch"

        try:
            async with self._client.messages() as messages:
                async for message in messages:
                    payload = message.payload
                    if isinstance(payload, str):
                        payload = payload.encode("utf-8")
                    elif not isinstance(payload, (bytes, bytearray)):
                        logger.warning("Unexpected payload type %s, skipping", type(payload))
                        continue
                    self._handle_reply(bytes(payload))
        except asyncio.CancelledError:
            logger.debug("Reply dispatch task cancelled")
            raise
        except Exception as e:
            logger.error("Reply dispatch error: %s", e, exc_info=True)


__all__ = ["FarmbotSession"]
