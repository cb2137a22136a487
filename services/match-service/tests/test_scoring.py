import math

import pytest

from match_service.schemas import AvailabilitySlot, GuideCandidate, TripRequest
from match_service.scoring import (
    Rated,
    Unrated,
    interest_points,
    language_bonus,
    rating_of,
    rating_points,
    reliability_points,
    score_candidate,
)


def candidate(**kwargs):
    base = {
        "id": "g1",
        "availability": [
            AvailabilitySlot(day_of_week=d, start_time="06:00", end_time="14:00") for d in range(7)
        ],
    }
    base.update(kwargs)
    return GuideCandidate(**base)


def request(**kwargs):
    base = {"city": "Paris", "dates": {"date": "2025-07-01"}}
    base.update(kwargs)
    return TripRequest(**base)


def test_rating_of_distinguishes_zero_from_missing():
    assert rating_of(0) == Rated(0.0)
    assert rating_of(4.5) == Rated(4.5)
    assert rating_of(None) == Unrated()
    assert rating_of("4.5") == Unrated()
    assert rating_of(True) == Unrated()
    assert rating_of(math.nan) == Unrated()
    assert rating_of(math.inf) == Unrated()


def test_zero_rating_scores_below_unrated():
    assert rating_points(rating_of(0)) == 0
    assert rating_points(rating_of(None)) == 12
    rated_zero = score_candidate(candidate(average_rating=0), request())
    unrated = score_candidate(candidate(average_rating=None), request())
    assert unrated - rated_zero == 12


@pytest.mark.parametrize("no_shows,expected", [(0, 20), (1, 15), (3, 5), (4, 0), (10, 0)])
def test_reliability_points(no_shows, expected):
    assert reliability_points(no_shows) == expected


def test_no_requested_interests_contributes_nothing():
    assert interest_points([], ["History", "Food"]) == 0
    assert interest_points(None, ["History"]) == 0


def test_interest_overlap_is_proportional():
    assert interest_points(["History", "Food"], ["History", "Food", "Art"]) == 20
    assert interest_points(["History", "Food"], ["Food"]) == 10
    assert interest_points(["History", "Food"], []) == 0


def test_language_bonus_is_capped():
    assert language_bonus(["French"], ["French", "English"]) == 5
    assert language_bonus(["French", "English", "German", "Hindi"], ["French", "English", "German", "Hindi"]) == 15
    assert language_bonus([], ["French"]) == 0


def test_nationality_bonus_needs_exact_match():
    base = score_candidate(candidate(nationality="French"), request())
    match = score_candidate(candidate(nationality="French"), request(preferred_nationality="French"))
    case_mismatch = score_candidate(candidate(nationality="french"), request(preferred_nationality="French"))
    assert match - base == 10
    assert case_mismatch == base


def test_unavailable_guide_loses_availability_points():
    available = score_candidate(candidate(), request())
    # no Tuesday slot
    monday_only = candidate(availability=[AvailabilitySlot(day_of_week=1, start_time="09:00", end_time="17:00")])
    assert available - score_candidate(monday_only, request()) == 40


def test_score_is_rounded_to_one_decimal():
    s = score_candidate(candidate(average_rating=4.33), request(interests=["A", "B", "C"]))
    assert s == round(s, 1)
    # 40 + 17.32 + 20 + 0
    assert s == 77.3


def test_full_scenario_scores_103():
    guide = candidate(
        languages=["French", "English"],
        interests=["History", "Food", "Art"],
        average_rating=4.5,
        no_show_count=0,
    )
    trip = request(
        dates={"start": "2025-07-01", "end": "2025-07-03"},
        preferred_time="morning",
        interests=["History", "Food"],
        preferred_languages=["French"],
    )
    assert score_candidate(guide, trip) == 103.0


def test_repeated_request_entries_count_once():
    assert language_bonus(["French", "French", "French"], ["French"]) == 5
    assert interest_points(["History", "History", "Food"], ["History"]) == 10


def test_padded_preferences_still_earn_bonuses():
    guide = candidate(nationality="French", languages=["French"])
    clean = score_candidate(guide, request(preferred_nationality="French", preferred_languages=["French"]))
    padded = score_candidate(guide, request(preferred_nationality=" French ", preferred_languages=[" French", "  "]))
    assert padded == clean
    assert clean - score_candidate(guide, request()) == 15
