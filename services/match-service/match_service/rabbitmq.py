import aio_pika

EXCHANGE_NAME = "domain_events"


async def connect(rabbit_url: str | None):
    if not rabbit_url:
        return None
    return await aio_pika.connect_robust(rabbit_url)
