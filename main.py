"""Demo entry point: log a few records through the Cloud Logging stream to stdout."""

import asyncio
import logging
import sys

from cloudlog_stream.config import load_config
from cloudlog_stream.handler import CloudLoggingHandler
from cloudlog_stream.stream import create_stream


async def run(config) -> None:
    descriptor = create_stream(config.level, **config.stream_options())

    app_logger = logging.getLogger(config.logger_name)
    app_logger.propagate = False
    app_logger.setLevel(logging.DEBUG)
    handler = CloudLoggingHandler(descriptor)
    app_logger.addHandler(handler)

    try:
        app_logger.info("simple log info")
        app_logger.info(
            "sample message",
            extra={"data1": {"id": "sample-id"}, "data2": {"id": "simple-id-2"}},
        )
        try:
            raise RuntimeError("sample error")
        except RuntimeError:
            app_logger.exception("sample error message", extra={"field": "other field"})
        app_logger.info(
            "request served",
            extra={"req": {"method": "GET", "url": "/health", "remoteAddress": "127.0.0.1"}},
        )
    finally:
        app_logger.removeHandler(handler)
        handler.close()
        await descriptor.stage.end()

    if handler.dropped:
        logging.getLogger(__name__).warning("Dropped %d records", handler.dropped)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stderr,
    )
    config = load_config()
    logging.getLogger(__name__).info(
        "Starting demo stream: level=%d, high_water_mark=%d",
        config.level, config.high_water_mark,
    )
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
