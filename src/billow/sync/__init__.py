"""
Resource sync layer.

This package provides:
- QueryCacheEntry: per-view fetch state with supersession and retry
- DebouncedQueryController: search-as-you-type parameter changes
- MutationCoordinator: validate, submit and refetch for forms
"""

from billow.sync.debounce import DebouncedQueryController
from billow.sync.mutation import (
    MutationCoordinator,
    MutationOutcome,
    MutationStatus,
    OutcomeStatus,
)
from billow.sync.query_cache import EntrySnapshot, EntryStatus, QueryCacheEntry

__all__ = [
    "DebouncedQueryController",
    "EntrySnapshot",
    "EntryStatus",
    "MutationCoordinator",
    "MutationOutcome",
    "MutationStatus",
    "OutcomeStatus",
    "QueryCacheEntry",
]
