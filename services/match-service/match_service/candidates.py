import time

from loguru import logger
from redis import RedisError
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from .cache_keys import candidates_cache_key
from .errors import CacheUnavailableError, StoreUnavailableError
from .models import APPROVED, Guide, GuideLanguage
from .schemas import AvailabilitySlot, GuideCandidate, MatchCriteria

MAX_CANDIDATES = 50
MIN_POOL_SIZE = 4
CANDIDATE_TTL_SECONDS = 15 * 60


def eligibility_filters(city: str) -> list:
    return [
        Guide.city == city,
        Guide.status == APPROVED,
        Guide.availability.any(),
    ]


def preference_filter(criteria: MatchCriteria):
    """OR of the soft preferences (union, not intersection), or None if there are none."""
    conditions = []
    if criteria.preferred_nationality:
        conditions.append(Guide.nationality == criteria.preferred_nationality)
    if criteria.preferred_languages:
        conditions.append(
            Guide.languages.any(GuideLanguage.language.in_(criteria.preferred_languages))
        )
    if criteria.preferred_gender:
        conditions.append(Guide.gender == criteria.preferred_gender)

    if not conditions:
        return None
    return or_(*conditions)


def to_candidate(guide: Guide) -> GuideCandidate:
    # contact columns (email, phone) are never projected
    return GuideCandidate(
        id=guide.id,
        name=guide.name,
        nationality=guide.nationality,
        languages=[lang.language for lang in guide.languages],
        institute=guide.institute,
        gender=guide.gender,
        city=guide.city,
        trips_hosted=guide.trips_hosted or 0,
        average_rating=guide.average_rating,
        no_show_count=guide.no_show_count or 0,
        reliability_badge=guide.reliability_badge,
        interests=list(guide.interests or []),
        acceptance_rate=guide.acceptance_rate,
        availability=[
            AvailabilitySlot(
                day_of_week=s.day_of_week,
                start_time=s.start_time,
                end_time=s.end_time,
                note=s.note,
            )
            for s in guide.availability
        ],
    )


class CandidateFetcher:
    """
    Bounded, quality-ordered candidate pool for a city, read through an optional cache.
    """

    def __init__(
        self,
        session_factory,
        cache=None,
        *,
        max_candidates: int = MAX_CANDIDATES,
        min_pool_size: int = MIN_POOL_SIZE,
        ttl_seconds: int = CANDIDATE_TTL_SECONDS,
    ):
        self.session_factory = session_factory
        self.cache = cache
        self.max_candidates = max_candidates
        self.min_pool_size = min_pool_size
        self.ttl_seconds = ttl_seconds

    def _statement(self, city: str, extra=None):
        stmt = (
            select(Guide)
            .where(*eligibility_filters(city))
            .options(selectinload(Guide.languages), selectinload(Guide.availability))
            .order_by(
                Guide.average_rating.desc().nulls_last(),
                Guide.trips_hosted.desc(),
                Guide.id,
            )
            .limit(self.max_candidates)
        )
        if extra is not None:
            stmt = stmt.where(extra)
        return stmt

    async def _query(self, criteria: MatchCriteria) -> list[dict]:
        start = time.perf_counter()
        prefs = preference_filter(criteria)

        try:
            async with self.session_factory() as db:
                result = await db.execute(self._statement(criteria.city, prefs))
                guides = result.scalars().all()

                if prefs is not None and len(guides) < self.min_pool_size:
                    logger.debug(
                        "only {} candidates match preferences in city={}, broadening",
                        len(guides),
                        criteria.city,
                    )
                    result = await db.execute(self._statement(criteria.city))
                    guides = result.scalars().all()

                candidates = [to_candidate(g).model_dump(mode="json") for g in guides]
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"guide store query failed: {e}") from e

        logger.debug(
            "fetched {} candidates city={} duration_ms={:.1f}",
            len(candidates),
            criteria.city,
            (time.perf_counter() - start) * 1000,
        )
        return candidates

    async def fetch(self, criteria: MatchCriteria) -> list[GuideCandidate]:
        city = criteria.city
        if not isinstance(city, str) or not city.strip():
            return []

        if self.cache is None:
            rows = await self._query(criteria)
        else:
            key = candidates_cache_key(criteria)
            try:
                rows = await self.cache.cached(key, lambda: self._query(criteria), self.ttl_seconds)
            except RedisError as e:
                raise CacheUnavailableError(f"candidate cache unavailable: {e}") from e

        return [GuideCandidate.model_validate(r) for r in rows]
