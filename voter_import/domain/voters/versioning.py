"""Batch identity and the recency rule for voter file submissions.

A submitted file is identified by its ``BatchKey``: the year it was entered
and its entry number within that year. ``is_newer`` is the only place that
decides whether one batch supersedes another; ``BatchKey`` intentionally has
no ordering operators so callers cannot compare keys any other way.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BatchKey:
    period: int
    sequence: int

    def __post_init__(self) -> None:
        if isinstance(self.period, bool) or not isinstance(self.period, int):
            raise TypeError("period must be an integer.")
        if isinstance(self.sequence, bool) or not isinstance(self.sequence, int):
            raise TypeError("sequence must be an integer.")

    def __str__(self) -> str:
        return f"{self.period}/{self.sequence}"


def is_newer(candidate: BatchKey, stored: BatchKey) -> bool:
    """Return True when ``candidate`` strictly supersedes ``stored``.

    Equal keys are never newer, so the first application of a batch wins and
    re-applying it is a no-op.
    """
    if candidate.period > stored.period:
        return True
    if candidate.period == stored.period and candidate.sequence > stored.sequence:
        return True
    return False
