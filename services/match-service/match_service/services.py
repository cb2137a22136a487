import time

from loguru import logger

from .anonymize import generate_anonymous_id
from .candidates import CandidateFetcher
from .schemas import MatchCriteria, MatchView, ScoredCandidate, TripRequest
from .scoring import score_candidate

MAX_MATCHES = 4


class MatchService:
    """
    fetch -> score -> stable sort (desc) -> truncate.

    Empty pools and unavailable guides give short or empty lists. Store and cache
    failures propagate from the fetcher.
    """

    def __init__(self, fetcher: CandidateFetcher, max_matches: int = MAX_MATCHES):
        self.fetcher = fetcher
        self.max_matches = max_matches

    async def find_matches(self, request: TripRequest) -> list[ScoredCandidate]:
        start = time.perf_counter()

        city = request.city
        if not isinstance(city, str) or not city.strip():
            return []

        criteria = MatchCriteria.from_request(request)
        candidates = await self.fetcher.fetch(criteria)

        if not candidates:
            logger.info("no candidates found for city={}", city)
            return []

        scored = [
            ScoredCandidate(**c.model_dump(), score=score_candidate(c, request))
            for c in candidates
        ]
        # list.sort is stable: equal scores keep fetch order (rating, trips)
        scored.sort(key=lambda s: s.score, reverse=True)
        matches = scored[: self.max_matches]

        logger.info(
            "matching completed city={} scored={} returned={} top_score={} duration_ms={:.1f}",
            city,
            len(scored),
            len(matches),
            matches[0].score,
            (time.perf_counter() - start) * 1000,
        )
        return matches


def to_match_view(match: ScoredCandidate) -> MatchView:
    return MatchView(
        anonymous_id=generate_anonymous_id(match.id),
        university=match.institute,
        languages=match.languages,
        trips_hosted=match.trips_hosted,
        rating=match.average_rating,
        badge=match.reliability_badge or "none",
        score=match.score,
    )
