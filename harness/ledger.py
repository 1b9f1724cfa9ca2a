#!/usr/bin/env python3
"""Storage for the append-only ledger of mismatching comparisons."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence

from harness.outcome import ComparisonRecord


class JsonLedgerStore:
    """Whole-file JSON ledger.

    Each save rewrites the full array. There is no locking: one harness
    process runs scenarios one at a time and is the only writer.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[ComparisonRecord]:
        if not self.path.exists():
            return []
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, list):
            raise ValueError(f"{self.path} does not contain a JSON array")
        return [ComparisonRecord.from_dict(entry) for entry in raw]

    def save(self, records: Sequence[ComparisonRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [record.to_dict() for record in records]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


class MemoryLedgerStore:
    def __init__(self, records: Sequence[ComparisonRecord] = ()) -> None:
        self.records: List[ComparisonRecord] = [r.without_screenshots() for r in records]
        self.saves = 0

    def load(self) -> List[ComparisonRecord]:
        return list(self.records)

    def save(self, records: Sequence[ComparisonRecord]) -> None:
        self.records = [r.without_screenshots() for r in records]
        self.saves += 1
