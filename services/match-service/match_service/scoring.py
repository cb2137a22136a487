import math
from dataclasses import dataclass
from typing import Union

from .availability import is_available
from .schemas import GuideCandidate, TripRequest

AVAILABILITY_POINTS = 40
RATING_MULTIPLIER = 4
DEFAULT_RATING = 3.0
RELIABILITY_POINTS = 20
NO_SHOW_PENALTY = 5
INTEREST_POINTS = 20
NATIONALITY_BONUS = 10
LANGUAGE_BONUS = 5
LANGUAGE_BONUS_CAP = 15


@dataclass(frozen=True)
class Rated:
    value: float


@dataclass(frozen=True)
class Unrated:
    pass


Rating = Union[Rated, Unrated]


def rating_of(raw) -> Rating:
    # bool is an int subclass; a True rating is garbage, not 1.0
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return Unrated()
    if not math.isfinite(raw):
        return Unrated()
    return Rated(float(raw))


def rating_points(rating: Rating) -> float:
    if isinstance(rating, Rated):
        return rating.value * RATING_MULTIPLIER
    return DEFAULT_RATING * RATING_MULTIPLIER


def reliability_points(no_show_count: int) -> float:
    if no_show_count <= 0:
        return RELIABILITY_POINTS
    return max(0, RELIABILITY_POINTS - no_show_count * NO_SHOW_PENALTY)


def interest_points(requested, offered) -> float:
    if not requested:
        return 0
    requested = set(requested)
    overlap = len(requested & set(offered))
    return (overlap / len(requested)) * INTEREST_POINTS


def nationality_bonus(preferred, nationality) -> float:
    if preferred and nationality == preferred:
        return NATIONALITY_BONUS
    return 0


def language_bonus(preferred, spoken) -> float:
    if not preferred:
        return 0
    matches = len(set(preferred) & set(spoken))
    return min(matches * LANGUAGE_BONUS, LANGUAGE_BONUS_CAP)


def score_candidate(candidate: GuideCandidate, request: TripRequest) -> float:
    """
    100-point base plus uncapped bonuses:
      availability 40 | rating 4/star (3.0 if unrated) | reliability 20 - 5/no-show
      interest overlap 20 | nationality +10 | languages +5 each, max +15
    """
    available = is_available(candidate.availability, request.dates, request.preferred_time)

    total = (
        (AVAILABILITY_POINTS if available else 0)
        + rating_points(rating_of(candidate.average_rating))
        + reliability_points(candidate.no_show_count)
        + interest_points(request.interests, candidate.interests)
        + nationality_bonus(request.preferred_nationality, candidate.nationality)
        + language_bonus(request.preferred_languages, candidate.languages)
    )

    return round(total, 1)
