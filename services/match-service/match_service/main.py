import asyncio

from fastapi import FastAPI
from loguru import logger

from shared.database import get_engine, get_session
from shared.redis_client import get_redis

from .cache import MemoryCache, RedisCache
from .candidates import CandidateFetcher
from .config import Settings
from .event_consumer import start_consumer_with_retry
from .log_setup import configure_logging
from .routes import router
from .services import MatchService

app = FastAPI(title="Match Service")
app.include_router(router)

_stop_event = asyncio.Event()
_consumer_task = None


@app.get("/health")
async def health():
    return {"status": "ok", "service": "match-service"}


def build_cache(settings: Settings):
    if settings.redis_url:
        return RedisCache(get_redis(settings.redis_url))
    logger.warning("REDIS_URL not set; using in-process candidate cache")
    return MemoryCache()


@app.on_event("startup")
async def startup():
    global _consumer_task
    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_json)
    logger.info("match-service config: {}", settings.log_summary())

    engine = get_engine(settings.require_database(), echo=settings.sql_echo)
    cache = build_cache(settings)

    app.state.engine = engine
    app.state.cache = cache
    app.state.session_factory = get_session(engine)
    app.state.match_service = MatchService(
        CandidateFetcher(
            app.state.session_factory,
            cache,
            max_candidates=settings.max_candidates,
            min_pool_size=settings.effective_min_pool_size,
            ttl_seconds=settings.candidate_ttl_seconds,
        ),
        max_matches=settings.max_results,
    )

    if settings.rabbit_url:
        # don't block startup on the broker
        _consumer_task = asyncio.create_task(
            start_consumer_with_retry(settings.rabbit_url, cache, _stop_event)
        )


@app.on_event("shutdown")
async def shutdown():
    _stop_event.set()
    if _consumer_task:
        try:
            conn = await _consumer_task
            if conn and not conn.is_closed:
                await conn.close()
        except Exception as e:
            logger.warning("consumer shutdown failed: {}", e)

    cache = getattr(app.state, "cache", None)
    if cache is not None:
        await cache.close()

    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
