from __future__ import annotations

from typing import Mapping, Sequence

from voter_import.domain.voters.schema import CATEGORY_FIELDS
from voter_import.pipeline.ingest.voters.models import RawVoterRow


class CategoryAggregator:
    """Distinct values per dropdown category, collected over one ingest run."""

    def __init__(self, categories: Sequence[str] = CATEGORY_FIELDS) -> None:
        self.categories: tuple[str, ...] = tuple(categories)
        self._values: dict[str, set[str]] = {name: set() for name in self.categories}

    def reset(self) -> None:
        for values in self._values.values():
            values.clear()

    def observe(self, row: RawVoterRow) -> None:
        for name in self.categories:
            raw_value = row.get(name)
            if raw_value is None:
                continue
            value = str(raw_value).strip()
            if value:
                self._values[name].add(value)

    def values(self, category: str) -> frozenset[str]:
        return frozenset(self._values[category])

    @property
    def observed_count(self) -> int:
        return sum(len(values) for values in self._values.values())

    def merged_snapshot(
        self,
        existing: Mapping[str, Sequence[str]] | None,
    ) -> dict[str, list[str]]:
        # Union with what is already stored; a category absent from this run keeps its stored values.
        merged: dict[str, list[str]] = {}
        for name in self.categories:
            combined = set(self._values[name])
            if existing and existing.get(name):
                combined.update(existing[name])
            merged[name] = sorted(combined)
        return merged
