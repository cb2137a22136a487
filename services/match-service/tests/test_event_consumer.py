import pytest
from redis import RedisError

from match_service.cache import MemoryCache
from match_service.cache_keys import candidates_cache_key
from match_service.event_consumer import handle_event
from match_service.schemas import MatchCriteria


def _event(event_id="evt-1", event_type="guide.availability_updated", **data):
    return {"event_id": event_id, "event_type": event_type, "data": data}


async def _seed(cache, city, **prefs):
    key = candidates_cache_key(MatchCriteria(city=city, **prefs))
    await cache.set(key, [{"id": "g1"}], 900)
    return key


async def test_event_drops_every_entry_for_city(cache):
    plain = await _seed(cache, "Paris")
    french = await _seed(cache, "Paris", preferred_nationality="French")
    rome = await _seed(cache, "Rome")

    assert await handle_event(_event(city="Paris"), cache)

    assert await cache.get(plain) is None
    assert await cache.get(french) is None
    assert await cache.get(rome) == [{"id": "g1"}]


async def test_city_move_invalidates_both_cities(cache):
    paris = await _seed(cache, "Paris")
    lyon = await _seed(cache, "Lyon")

    await handle_event(_event(event_type="guide.updated", city="Lyon", previous_city="Paris"), cache)

    assert await cache.get(paris) is None
    assert await cache.get(lyon) is None


async def test_duplicate_events_are_ignored(cache):
    await _seed(cache, "Paris")
    assert await handle_event(_event(city="Paris"), cache)

    key = await _seed(cache, "Paris")
    assert not await handle_event(_event(city="Paris"), cache)
    assert await cache.get(key) == [{"id": "g1"}]


async def test_irrelevant_or_malformed_events_are_ignored(cache):
    key = await _seed(cache, "Paris")

    assert not await handle_event(_event(event_type="user.created", city="Paris"), cache)
    assert not await handle_event({"event_type": "guide.approved", "data": {"city": "Paris"}}, cache)
    assert not await handle_event(_event(event_id="evt-2", event_type="review.created"), cache)
    assert not await handle_event(["not", "a", "dict"], cache)

    assert await cache.get(key) == [{"id": "g1"}]


class _FlakyCache(MemoryCache):
    def __init__(self):
        super().__init__()
        self.fail = True

    async def delete_pattern(self, pattern):
        if self.fail:
            raise RedisError("connection reset")
        return await super().delete_pattern(pattern)


async def test_failed_invalidation_leaves_event_unprocessed():
    cache = _FlakyCache()
    key = await _seed(cache, "Paris")

    with pytest.raises(RedisError):
        await handle_event(_event(city="Paris"), cache)

    cache.fail = False
    assert await handle_event(_event(city="Paris"), cache)
    assert await cache.get(key) is None
