from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_NO_PREFERENCE = {"", "any", "no_preference"}


def _list_or_empty(value):
    if value is None:
        return []
    return value


class AvailabilitySlot(BaseModel):
    day_of_week: int  # 0 = Sunday
    start_time: str
    end_time: str
    note: Optional[str] = None


class TripRequest(BaseModel):
    """
    Read-only view of a tourist's trip request.

    dates is either {"start": ..., "end": ...} or {"date": ...}, possibly as a JSON
    string. It is left unvalidated here; the availability check decides.
    """
    model_config = ConfigDict(frozen=True)

    city: Optional[str] = None
    dates: Any = None
    preferred_time: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    preferred_nationality: Optional[str] = None
    preferred_languages: List[str] = Field(default_factory=list)
    preferred_gender: Optional[str] = None

    @field_validator("interests", "preferred_languages", mode="before")
    @classmethod
    def none_as_empty_list(cls, value):
        return _list_or_empty(value)

    @field_validator("preferred_nationality")
    @classmethod
    def strip_nationality(cls, value):
        if value is None:
            return None
        return value.strip() or None

    @field_validator("preferred_languages")
    @classmethod
    def strip_languages(cls, value):
        return [lang.strip() for lang in value if lang.strip()]


class GuideCandidate(BaseModel):
    id: str
    name: Optional[str] = None
    nationality: Optional[str] = None
    languages: List[str] = Field(default_factory=list)
    institute: Optional[str] = None
    gender: Optional[str] = None
    city: Optional[str] = None
    trips_hosted: int = 0
    average_rating: Optional[float] = None
    no_show_count: int = 0
    reliability_badge: Optional[str] = None
    interests: List[str] = Field(default_factory=list)
    acceptance_rate: Optional[float] = None
    availability: List[AvailabilitySlot] = Field(default_factory=list)

    @field_validator("languages", "interests", "availability", mode="before")
    @classmethod
    def none_as_empty_list(cls, value):
        return _list_or_empty(value)


class ScoredCandidate(GuideCandidate):
    score: float


class MatchCriteria(BaseModel):
    """Static part of a request: drives the store filter and the cache key. No dates."""
    model_config = ConfigDict(frozen=True)

    city: str
    preferred_nationality: Optional[str] = None
    preferred_languages: Tuple[str, ...] = ()
    preferred_gender: Optional[str] = None

    @property
    def has_preferences(self) -> bool:
        return bool(self.preferred_nationality or self.preferred_languages or self.preferred_gender)

    @classmethod
    def from_request(cls, request: TripRequest) -> "MatchCriteria":
        nationality = request.preferred_nationality

        gender = (request.preferred_gender or "").strip()
        if gender.lower() in _NO_PREFERENCE:
            gender = None

        languages = sorted({
            lang.strip() for lang in request.preferred_languages
            if isinstance(lang, str) and lang.strip()
        })

        return cls(
            city=request.city.strip() if isinstance(request.city, str) else request.city,
            preferred_nationality=nationality,
            preferred_languages=tuple(languages),
            preferred_gender=gender,
        )


# ---- HTTP ----

class MatchesRequest(BaseModel):
    request_id: str


class MatchView(BaseModel):
    anonymous_id: str
    university: Optional[str] = None
    languages: List[str]
    trips_hosted: int
    rating: Optional[float] = None
    badge: str
    score: float


class MatchesResponse(BaseModel):
    success: bool = True
    matches: List[MatchView]
    count: int
