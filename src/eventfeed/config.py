"""
Pipeline settings.

``Settings`` gathers every tunable of the pipeline in one dataclass.
``Settings.from_env`` reads ``EVENTFEED_*`` environment variables and falls
back to the defaults below for anything unset. Durations accept the same
strings as ``parse_duration`` ("300ms", "5m", ...).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from eventfeed.duration import parse_duration
from eventfeed.schemas import MAX_PAGE_SIZE
from eventfeed.scroll import ObserverOptions

ENV_PREFIX = "EVENTFEED_"


@dataclass(frozen=True)
class Settings:
    """Settings for the event list pipeline."""

    api_base_url: str = "http://localhost:3000/api"
    events_path: str = "/events"
    page_size: int = 18
    # Cached pages are served without a request for this long
    stale_time: str = "5m"
    # Unobserved entries are dropped after this much inactivity
    gc_time: str = "10m"
    search_debounce: str = "300ms"
    root_margin: str = "200px"
    threshold: float = 0.1
    load_more_delay: str = "0ms"
    request_timeout: float | None = 30.0
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        for name in ("stale_time", "gc_time", "search_debounce", "load_more_delay"):
            parse_duration(getattr(self, name))
        ObserverOptions(root_margin=self.root_margin, threshold=self.threshold)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``EVENTFEED_*`` variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for field in fields(cls):
            raw = env.get(ENV_PREFIX + field.name.upper())
            if raw is None or raw == "":
                continue
            if field.name == "page_size":
                values[field.name] = int(raw)
            elif field.name == "threshold":
                values[field.name] = float(raw)
            elif field.name == "request_timeout":
                values[field.name] = None if raw.lower() == "none" else float(raw)
            else:
                values[field.name] = raw
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["ENV_PREFIX", "Settings"]
