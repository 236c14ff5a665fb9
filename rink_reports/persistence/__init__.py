"""Event log, game directory and report store collaborators."""

from .memory import InMemoryEventLog, InMemoryGameDirectory, InMemoryReportStore
from .protocols import EventLog, GameDirectory, LoggedEvent, ReportStore

__all__ = [
    "EventLog",
    "GameDirectory",
    "LoggedEvent",
    "ReportStore",
    "InMemoryEventLog",
    "InMemoryGameDirectory",
    "InMemoryReportStore",
]
