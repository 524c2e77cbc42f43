"""Update cycle orchestration."""

from .throttle import RateLimitedRunner
from .update import (
    UpdatePipeline, UpdateResult,
    dedup_by_title, filter_unprocessed,
    run_update_cycle, fetch_and_filter
)

__all__ = [
    "RateLimitedRunner", "UpdatePipeline", "UpdateResult",
    "dedup_by_title", "filter_unprocessed",
    "run_update_cycle", "fetch_and_filter"
]
