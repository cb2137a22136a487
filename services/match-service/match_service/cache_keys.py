import hashlib
import json
import re

from .schemas import MatchCriteria

CANDIDATES_PREFIX = "guides:candidates"

UNKNOWN = "unknown"
EMPTY = "empty"

MAX_PLAIN_LENGTH = 50
PREFIX_LENGTH = 20
DIGEST_LENGTH = 16

_PLAIN = re.compile(r"[a-z0-9]+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def sanitize_cache_key(value) -> str:
    """
    Turn free text into a bounded, collision-resistant cache key component.

    Short lowercase alphanumerics (most city names) come back as-is. Anything else
    becomes "<first 20 alnum chars>_<16 hex of sha256(normalized)>".
    """
    if not isinstance(value, str):
        return UNKNOWN

    normalized = value.strip().lower()
    if not normalized:
        return EMPTY

    if len(normalized) <= MAX_PLAIN_LENGTH and _PLAIN.fullmatch(normalized):
        return normalized

    prefix = _NON_ALNUM.sub("", normalized)[:PREFIX_LENGTH]
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:DIGEST_LENGTH]
    return f"{prefix}_{digest}"


def criteria_digest(criteria: MatchCriteria) -> str:
    payload = {
        "city": criteria.city,
        "nationality": criteria.preferred_nationality,
        "languages": list(criteria.preferred_languages),
        "gender": criteria.preferred_gender,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def city_key_pattern(city) -> str:
    return f"{CANDIDATES_PREFIX}:{sanitize_cache_key(city)}:*"


def candidates_cache_key(criteria: MatchCriteria) -> str:
    return f"{CANDIDATES_PREFIX}:{sanitize_cache_key(criteria.city)}:{criteria_digest(criteria)}"
