class MatchServiceError(Exception):
    pass


class StoreUnavailableError(MatchServiceError):
    """Guide store could not be queried."""


class CacheUnavailableError(MatchServiceError):
    """Candidate cache could not be read or written."""
