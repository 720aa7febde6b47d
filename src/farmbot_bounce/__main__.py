from __future__ import annotations

import asyncio
import signal

from farmbot_bounce.config import BounceSettings
from farmbot_bounce.logging import configure_logging
from farmbot_bounce.service import BounceService


async def run() -> None:
    settings = BounceSettings.from_env()
    configure_logging(settings.log_level)
    service = BounceService(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _handle_stop(_: signal.Signals) -> None:
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_stop, sig)

    await service.run(stop_event)


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
