#!/usr/bin/env python3
"""
Run one scenario against the Old App and Spicy Claude at the same time.

Both runs are awaited together; a crash or timeout on one side becomes a
failed Outcome for that side and never stops the other run.
"""

from __future__ import annotations

import asyncio
import warnings
from typing import Any, Awaitable, Callable, Optional, Protocol

from harness.compare import compare_outcomes
from harness.outcome import ComparisonRecord, Outcome, ScreenshotPair, now

ScenarioFn = Callable[[Any], Awaitable[Outcome]]


class Recorder(Protocol):
    def record_if_mismatched(self, record: ComparisonRecord) -> bool: ...


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


async def _attempt(scenario: ScenarioFn, app: Any) -> Outcome:
    try:
        return await scenario(app)
    except Exception as exc:
        return Outcome.failure(_describe(exc))


async def run_isolated(
    scenario: ScenarioFn,
    app: Any,
    *,
    timeout: Optional[float] = None,
) -> Outcome:
    if timeout is None:
        return await _attempt(scenario, app)
    # Scenario errors are absorbed by _attempt; a TimeoutError here is the budget.
    try:
        return await asyncio.wait_for(_attempt(scenario, app), timeout=timeout)
    except asyncio.TimeoutError:
        return Outcome.failure(f"scenario timed out after {timeout:g}s")


async def capture_screenshots(baseline: Any, candidate: Any) -> Optional[ScreenshotPair]:
    try:
        old_shot, new_shot = await asyncio.gather(
            baseline.screenshot_page(),
            candidate.screenshot_page(),
        )
    except Exception as exc:
        warnings.warn(f"Screenshot capture failed: {_describe(exc)}")
        return None
    return ScreenshotPair(baseline=old_shot, candidate=new_shot)


async def run_side_by_side(
    scenario: ScenarioFn,
    baseline: Any,
    candidate: Any,
    scenario_id: str,
    *,
    recorder: Optional[Recorder] = None,
    timeout: Optional[float] = None,
) -> ComparisonRecord:
    observed_at = now()
    old_outcome, new_outcome = await asyncio.gather(
        run_isolated(scenario, baseline, timeout=timeout),
        run_isolated(scenario, candidate, timeout=timeout),
    )

    comparison = compare_outcomes(old_outcome, new_outcome)

    screenshots = None
    if not comparison.identical:
        screenshots = await capture_screenshots(baseline, candidate)

    record = ComparisonRecord(
        scenario_id=scenario_id,
        baseline=old_outcome,
        candidate=new_outcome,
        identical=comparison.identical,
        mismatch_reasons=comparison.mismatch_reasons,
        observed_at=observed_at,
        screenshots=screenshots,
    )

    if recorder is not None and not record.identical:
        recorder.record_if_mismatched(record)

    return record
