from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace

from .adapter import ShellyMqttAdapter
from .config import AdapterConfig, load_config
from .exceptions import ConfigError
from .host import LoggingHost

_LOGGER = logging.getLogger(__name__)


async def run(config: AdapterConfig) -> None:
    adapter = ShellyMqttAdapter(config, LoggingHost())
    await adapter.start()
    try:
        await asyncio.Event().wait()
    finally:
        await adapter.stop()


def main() -> None:
    parser = argparse.ArgumentParser(prog="shelly-mqtt", description="Bridge Shelly MQTT devices")
    parser.add_argument("--config", default=os.environ.get("SHELLY_MQTT_CONFIG"),
                        help="JSON configuration file")
    parser.add_argument("--broker", help="broker host, overrides the configuration")
    parser.add_argument("--debug", action="store_true", help="enable debug logs")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = load_config(args.config) if args.config else AdapterConfig()
    except ConfigError as err:
        _LOGGER.error("%s", err)
        sys.exit(2)
    if args.broker or args.debug:
        config = replace(
            config,
            broker_host=args.broker or config.broker_host,
            debug_logs=config.debug_logs or args.debug,
        )

    try:
        asyncio.run(run(config))
    except ConnectionError as err:
        _LOGGER.error("%s", err)
        sys.exit(1)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
