import os
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, Field

_BOOL_FIELDS = {"log_json", "sql_echo"}


def mask_url(url: Optional[str]) -> str:
    if not url:
        return "unset"
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class Settings(BaseModel):
    database_url: Optional[str] = Field(default=None)
    redis_url: Optional[str] = Field(default=None)
    rabbit_url: Optional[str] = Field(default=None)

    max_candidates: int = Field(default=50, ge=1)
    max_results: int = Field(default=4, ge=1)
    # fallback re-query trigger; falls back to max_results when unset
    min_pool_size: Optional[int] = Field(default=None, ge=0)
    candidate_ttl_seconds: int = Field(default=900, ge=1)

    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    sql_echo: bool = Field(default=False)

    @property
    def effective_min_pool_size(self) -> int:
        if self.min_pool_size is None:
            return self.max_results
        return self.min_pool_size

    @classmethod
    def from_env(cls, overrides: Optional[dict[str, Any]] = None) -> "Settings":
        raw: dict[str, Any] = {}

        env_map = {
            "database_url": os.getenv("MATCH_DATABASE_URL"),
            "redis_url": os.getenv("REDIS_URL"),
            "rabbit_url": os.getenv("RABBIT_URL"),
            "max_candidates": os.getenv("MATCH_MAX_CANDIDATES"),
            "max_results": os.getenv("MATCH_MAX_RESULTS"),
            "min_pool_size": os.getenv("MATCH_MIN_POOL_SIZE"),
            "candidate_ttl_seconds": os.getenv("MATCH_CANDIDATE_TTL_SECONDS"),
            "log_level": os.getenv("LOG_LEVEL"),
            "log_json": os.getenv("LOG_JSON"),
            "sql_echo": os.getenv("SQL_ECHO"),
        }

        for k, v in env_map.items():
            if v is None or v == "":
                continue
            if k in _BOOL_FIELDS:
                raw[k] = str(v).lower() in {"1", "true", "yes", "on"}
            else:
                raw[k] = v

        if overrides:
            raw.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**raw)

    def require_database(self) -> str:
        if not self.database_url:
            raise RuntimeError("MATCH_DATABASE_URL environment variable is not set")
        return self.database_url

    def log_summary(self) -> str:
        return (
            "database=%s redis=%s rabbit=%s max_candidates=%s max_results=%s min_pool=%s ttl=%ss"
            % (
                mask_url(self.database_url),
                mask_url(self.redis_url),
                mask_url(self.rabbit_url),
                self.max_candidates,
                self.max_results,
                self.effective_min_pool_size,
                self.candidate_ttl_seconds,
            )
        )
