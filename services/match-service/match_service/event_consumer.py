import asyncio
import json

import aio_pika
from aio_pika import ExchangeType
from loguru import logger

from shared.idempotency import already_processed, release

from .cache import invalidate_city
from .rabbitmq import connect, EXCHANGE_NAME

QUEUE_NAME = "match_service_domain_events"

ROUTING_KEYS = [
    "guide.approved",
    "guide.updated",
    "guide.availability_updated",
    "review.created",
]

RETRY_SECONDS = 5


async def handle_event(payload: dict, cache) -> bool:
    """
    Invalidate the candidate cache of the event's city.
    Returns True if something was invalidated.
    """
    if not isinstance(payload, dict):
        return False

    event_id = payload.get("event_id")
    event_type = payload.get("event_type")
    data = payload.get("data") or {}

    if not event_id or not event_type:
        return False

    if event_type not in ROUTING_KEYS:
        return False

    if await already_processed(cache, event_id):
        return False

    # guide rows carry their city; a city change sends both
    cities = [data.get("city"), data.get("previous_city")]
    cities = [c for c in cities if isinstance(c, str) and c.strip()]
    if not cities:
        return False

    try:
        for city in cities:
            await invalidate_city(cache, city)
    except Exception:
        await release(cache, event_id)
        raise
    return True


def make_handler(cache):
    async def handle_message(message: aio_pika.IncomingMessage):
        async with message.process(requeue=False):
            try:
                payload = json.loads(message.body.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("dropping undecodable event")
                return
            await handle_event(payload, cache)

    return handle_message


async def _connect_and_consume(rabbit_url: str, cache):
    connection = await connect(rabbit_url)
    if connection is None:
        raise RuntimeError("RABBIT_URL not set; cannot start consumer")

    channel = await connection.channel()
    await channel.set_qos(prefetch_count=50)

    exchange = await channel.declare_exchange(
        EXCHANGE_NAME,
        ExchangeType.TOPIC,
        durable=True,
    )

    queue = await channel.declare_queue(
        QUEUE_NAME,
        durable=True,
    )

    for rk in ROUTING_KEYS:
        await queue.bind(exchange, routing_key=rk)

    await queue.consume(make_handler(cache))

    logger.info("event consumer started (candidate cache invalidation)")
    return connection


async def start_consumer_with_retry(rabbit_url: str, cache, stop_event: asyncio.Event):
    while not stop_event.is_set():
        try:
            return await _connect_and_consume(rabbit_url, cache)
        except Exception as e:
            logger.warning("consumer connect failed, retrying in {}s: {}", RETRY_SECONDS, e)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=RETRY_SECONDS)
            except asyncio.TimeoutError:
                continue

    return None
