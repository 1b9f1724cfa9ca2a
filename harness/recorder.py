#!/usr/bin/env python3
"""
Persist mismatching comparisons and render them as a Markdown summary.

Storage problems never change a verdict that has already been computed:
they are reported as warnings and the run carries on.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from harness.outcome import ComparisonRecord, Outcome

NO_DIFFERENCES = "# Test Results\n\n✅ No differences found between Old App and Spicy Claude!\n"
UNREADABLE_LEDGER = "# Test Results\n\n⚠️ The differences ledger could not be read: {error}\n"

BASELINE_SCREENSHOT = "old-app.png"
CANDIDATE_SCREENSHOT = "spicy-claude.png"


class LedgerStore(Protocol):
    def load(self) -> List[ComparisonRecord]: ...

    def save(self, records: Sequence[ComparisonRecord]) -> None: ...


def _outcome_lines(title: str, outcome: Outcome) -> List[str]:
    lines = [
        f"### {title}",
        f"- **Success**: {str(outcome.succeeded).lower()}",
        f"- **Permission Prompted**: {str(outcome.permission_prompted).lower()}",
    ]
    if outcome.error_message:
        lines.append(f"- **Error**: {outcome.error_message}")
    lines.append("")
    return lines


def build_summary(records: Sequence[ComparisonRecord]) -> str:
    if not records:
        return NO_DIFFERENCES
    lines: List[str] = []
    lines.append("# Test Results: Behavioral Differences")
    lines.append("")
    lines.append(f"**Total Tests with Differences**: {len(records)}")
    lines.append("")
    for idx, record in enumerate(records, 1):
        lines.append(f"## {idx}. Test: {record.scenario_id}")
        lines.append("")
        lines.append(f"**Timestamp**: {record.observed_at}")
        lines.append("")
        lines.extend(_outcome_lines("Old App Result", record.baseline))
        lines.extend(_outcome_lines("Spicy Claude Result", record.candidate))
        lines.append("### Differences")
        for reason in record.mismatch_reasons:
            lines.append(f"- {reason}")
        lines.append("")
        lines.append("---")
        lines.append("")
    return "\n".join(lines)


class DifferenceRecorder:
    def __init__(
        self,
        store: LedgerStore,
        *,
        screenshot_dir: Optional[Path] = None,
        summary_path: Optional[Path] = None,
        verbose: bool = True,
    ) -> None:
        self.store = store
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir else None
        self.summary_path = Path(summary_path) if summary_path else None
        self.verbose = verbose
        self.ledger_error: Optional[str] = None

    def record_if_mismatched(self, record: ComparisonRecord) -> bool:
        """Append ``record`` to the ledger unless both outcomes matched.

        Returns True when the ledger entry was written.
        """
        if record.identical:
            return False

        written = False
        try:
            entries = self.store.load()
        except (OSError, ValueError) as exc:
            warnings.warn(f"Ledger unreadable, difference for {record.scenario_id} not recorded: {exc}")
        else:
            entries.append(record.without_screenshots())
            try:
                self.store.save(entries)
                written = True
            except OSError as exc:
                warnings.warn(f"Failed to save ledger for {record.scenario_id}: {exc}")

        if record.screenshots and self.screenshot_dir:
            self._write_screenshots(record)

        if self.verbose:
            print(f"🔍 Recorded difference for test {record.scenario_id}")
            print(f"   Differences: {len(record.mismatch_reasons)}")
            for reason in record.mismatch_reasons:
                print(f"     - {reason}")
        return written

    def _write_screenshots(self, record: ComparisonRecord) -> None:
        shot_dir = self.screenshot_dir / record.scenario_id
        try:
            shot_dir.mkdir(parents=True, exist_ok=True)
            (shot_dir / BASELINE_SCREENSHOT).write_bytes(record.screenshots.baseline)
            (shot_dir / CANDIDATE_SCREENSHOT).write_bytes(record.screenshots.candidate)
        except OSError as exc:
            warnings.warn(f"Failed to save screenshots for {record.scenario_id}: {exc}")

    def generate_summary(self) -> str:
        """Render the ledger as Markdown and write it to ``summary_path``.

        An unreadable ledger leaves any previous summary file untouched and
        sets ``ledger_error``.
        """
        try:
            entries = self.store.load()
        except (OSError, ValueError) as exc:
            self.ledger_error = str(exc)
            warnings.warn(f"Ledger unreadable, summary not written: {exc}")
            return UNREADABLE_LEDGER.format(error=exc)
        self.ledger_error = None
        summary = build_summary(entries)
        if self.summary_path:
            try:
                self.summary_path.parent.mkdir(parents=True, exist_ok=True)
                self.summary_path.write_text(summary, encoding="utf-8")
            except OSError as exc:
                warnings.warn(f"Failed to write summary {self.summary_path}: {exc}")
        return summary
