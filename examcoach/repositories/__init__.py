"""
Persistence ports and adapters.

- base: Protocols the engine depends on
- memory: dict-backed adapters (tests, single-process hosts)
- sql: SQLAlchemy adapters
"""

from examcoach.repositories.base import AttemptHistorySource, ExposureLedger, SkipCounterStore
from examcoach.repositories.memory import (
    InMemoryAttemptHistory,
    InMemoryExposureLedger,
    InMemorySkipCounters,
)
from examcoach.repositories.sql import (
    SqlAttemptHistory,
    SqlExposureLedger,
    SqlSkipCounters,
    SqlStore,
)

__all__ = [
    "AttemptHistorySource",
    "ExposureLedger",
    "InMemoryAttemptHistory",
    "InMemoryExposureLedger",
    "InMemorySkipCounters",
    "SkipCounterStore",
    "SqlAttemptHistory",
    "SqlExposureLedger",
    "SqlSkipCounters",
    "SqlStore",
]
