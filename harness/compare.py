#!/usr/bin/env python3
"""
Field-by-field comparison of two outcomes.

Every check runs for every pair, in a fixed order, so the same divergence
always produces the same reasons in the same sequence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from harness.outcome import Outcome

BASELINE_LABEL = "Old"
CANDIDATE_LABEL = "Spicy"


@dataclass(frozen=True)
class ComparisonResult:
    identical: bool
    mismatch_reasons: List[str]


def _fmt(value: bool) -> str:
    return "true" if value else "false"


def _error(outcome: Outcome) -> Optional[str]:
    return outcome.error_message or None


def _success_mismatch(old: Outcome, new: Outcome) -> Optional[str]:
    if old.succeeded == new.succeeded:
        return None
    return f"SUCCESS MISMATCH: {BASELINE_LABEL}={_fmt(old.succeeded)}, {CANDIDATE_LABEL}={_fmt(new.succeeded)}"


def _permission_mismatch(old: Outcome, new: Outcome) -> Optional[str]:
    if old.permission_prompted == new.permission_prompted:
        return None
    return (
        f"PERMISSION PROMPT MISMATCH: {BASELINE_LABEL}={_fmt(old.permission_prompted)}, "
        f"{CANDIDATE_LABEL}={_fmt(new.permission_prompted)}"
    )


def _error_on_baseline_only(old: Outcome, new: Outcome) -> Optional[str]:
    if _error(old) and not _error(new):
        return f"ERROR IN OLD APP ONLY: {old.error_message}"
    return None


def _error_on_candidate_only(old: Outcome, new: Outcome) -> Optional[str]:
    if not _error(old) and _error(new):
        return f"ERROR IN SPICY CLAUDE ONLY: {new.error_message}"
    return None


def _different_errors(old: Outcome, new: Outcome) -> Optional[str]:
    if _error(old) and _error(new) and old.error_message != new.error_message:
        return (
            "DIFFERENT ERROR MESSAGES:\n"
            f"  {BASELINE_LABEL}: {old.error_message}\n"
            f"  {CANDIDATE_LABEL}: {new.error_message}"
        )
    return None


CHECKS: Tuple[Callable[[Outcome, Outcome], Optional[str]], ...] = (
    _success_mismatch,
    _permission_mismatch,
    _error_on_baseline_only,
    _error_on_candidate_only,
    _different_errors,
)


def compare_outcomes(baseline: Outcome, candidate: Outcome) -> ComparisonResult:
    reasons: List[str] = []
    for check in CHECKS:
        reason = check(baseline, candidate)
        if reason:
            reasons.append(reason)
    return ComparisonResult(identical=not reasons, mismatch_reasons=reasons)
