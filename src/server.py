"""Background worker for the food ordering service.

Runs the event reactor, which consumes account, restaurant and payment
events from the broker and applies them to carts and orders. When the domain
processes events asynchronously (production), the Protean Engine runs
alongside it to dispatch committed domain events to the outbound relay.

Usage:
    python src/server.py                # Reactor, plus Engine if async
    python src/server.py --no-engine    # Reactor only
"""

import argparse
import asyncio
import threading

import structlog
from protean.server.engine import Engine

from food_ordering.domain import food_ordering
from food_ordering.messaging.runtime import build_messaging
from food_ordering.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


async def run(with_engine: bool):
    stop_event = threading.Event()
    messaging = build_messaging(food_ordering)
    with food_ordering.domain_context():
        messaging.open(consume=True)

    tasks = [asyncio.to_thread(messaging.reactor.run, stop_event)]
    if with_engine:
        tasks.append(Engine(food_ordering).run())

    try:
        await asyncio.gather(*tasks)
    finally:
        stop_event.set()
        messaging.close()


def main():
    parser = argparse.ArgumentParser(description="Food ordering event worker")
    parser.add_argument(
        "--no-engine",
        action="store_true",
        help="Do not start the Protean Engine even if events are processed asynchronously",
    )
    args = parser.parse_args()

    configure_logging()
    food_ordering.init()

    with_engine = food_ordering.config["event_processing"] == "async" and not args.no_engine
    logger.info("Starting food ordering worker", engine=with_engine)

    try:
        asyncio.run(run(with_engine))
    except KeyboardInterrupt:
        logger.info("Worker interrupted, shutting down")


if __name__ == "__main__":
    main()
