IDEMPOTENCY_TTL_SECONDS = 60 * 60  # 1 hour


def processed_key(event_id: str) -> str:
    return f"processed_event:{event_id}"


async def already_processed(cache, event_id: str, ttl_seconds: int = IDEMPOTENCY_TTL_SECONDS) -> bool:
    """
    Marks event_id as seen. Returns True if it had been seen before.
    """
    first_time = await cache.add_once(processed_key(event_id), ttl_seconds)
    return not first_time


async def release(cache, event_id: str) -> None:
    """Forget event_id so a redelivery is handled again."""
    await cache.delete(processed_key(event_id))
