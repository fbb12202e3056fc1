from __future__ import annotations

from typing import Any, List, Mapping, Optional


class SalesEngineError(Exception):
    """Base class for errors raised by the sales analytics engine."""


class InvalidRecordError(SalesEngineError, ValueError):
    def __init__(self, reasons: List[str], record: Optional[Mapping[str, Any]] = None) -> None:
        self.reasons = list(reasons)
        self.record = record
        super().__init__("; ".join(self.reasons) or "invalid record")


class InvalidFilterError(SalesEngineError, ValueError):
    pass


class FeedUnavailableError(SalesEngineError):
    """The record feed could not be loaded and no fallback was allowed."""
