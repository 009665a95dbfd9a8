"""Oracle signing service entrypoint.

Loads the persisted keypair once, then serves the HTTP API until SIGINT or
SIGTERM. Exits with status 1 if the keypair is missing or unreadable.
"""

import argparse
import asyncio
import signal
import sys

import bittensor as bt
from dotenv import load_dotenv


def main() -> None:
    from moisture.base.config import add_oracle_args, is_test_mode, load_oracle_settings

    # Load .env if not in test mode
    if not is_test_mode():
        load_dotenv()

    from moisture.errors import KeypairError
    from moisture.oracle.http_server import OracleHTTPServer
    from moisture.oracle.service import OracleSigningService

    parser = argparse.ArgumentParser(description="Moisture score oracle")
    bt.logging.add_args(parser)
    add_oracle_args(parser)
    args = parser.parse_args()

    settings = load_oracle_settings(args)
    bt.logging.info({
        "oracle_config": {
            "host": settings.host,
            "port": settings.port,
            "keypair_path": settings.keypair_path,
            "rate_limit": f"{settings.rate_limit_per_window}/{settings.rate_limit_window_seconds}s",
            "allowed_origins": settings.allowed_origins,
        }
    })

    try:
        service = OracleSigningService.from_settings(settings)
    except KeypairError as e:
        bt.logging.error({"oracle": "keypair_unavailable", "error": e.message})
        bt.logging.error("Run `moisture-keygen` first to create a keypair.")
        sys.exit(1)

    server = OracleHTTPServer(
        service,
        host=settings.host,
        port=settings.port,
        allowed_origins=settings.allowed_origins,
    )

    loop = asyncio.new_event_loop()
    stop_event = asyncio.Event()

    def _signal_handler(sig, frame):
        bt.logging.info({"oracle": "shutdown_signal_received"})
        loop.call_soon_threadsafe(stop_event.set)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    async def _serve() -> None:
        await server.start()
        await stop_event.wait()

    try:
        loop.run_until_complete(_serve())
    except KeyboardInterrupt:
        bt.logging.info({"oracle": "keyboard_interrupt"})
    finally:
        loop.run_until_complete(server.stop())
        loop.close()
        bt.logging.info({"oracle": "stopped"})


if __name__ == "__main__":
    main()
