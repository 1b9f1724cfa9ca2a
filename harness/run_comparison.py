#!/usr/bin/env python3
"""
Side-by-side comparison of the Old App and Spicy Claude.

Scenarios run one at a time: both apps share the same project selection and
test files, so overlapping scenarios would trample each other. Within a
scenario the two apps are driven concurrently.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from typing import List, Optional

from harness import config as config_lib
from harness.browser import AppPage
from harness.ledger import JsonLedgerStore
from harness.outcome import ComparisonRecord
from harness.recorder import DifferenceRecorder
from harness.scenarios import GROUPS, Scenario, build_catalog, select_scenarios
from harness.side_by_side import run_side_by_side

JSON = config_lib.JSON


def build_recorder(config: JSON) -> DifferenceRecorder:
    paths = config_lib.report_paths(config)
    return DifferenceRecorder(
        JsonLedgerStore(paths["ledger"]),
        screenshot_dir=paths["screenshots"],
        summary_path=paths["summary"],
    )


async def run_scenario(
    scenario: Scenario,
    *,
    config: JSON,
    baseline: AppPage,
    candidate: AppPage,
    recorder: DifferenceRecorder,
    first: bool = False,
) -> Optional[ComparisonRecord]:
    try:
        scenario.setup()
    except OSError as exc:
        print(f"⚠️  {scenario.id}: setup failed, skipping ({exc})")
        return None

    response_key = "first_response_ms" if first else "response_ms"
    try:
        return await run_side_by_side(
            scenario.as_callable(
                config["project_path"],
                response_timeout=config_lib.timeout_s(config, response_key),
            ),
            baseline,
            candidate,
            scenario.id,
            recorder=recorder,
            timeout=config_lib.timeout_s(config, "scenario_ms"),
        )
    finally:
        scenario.cleanup()


async def run_all(scenarios: List[Scenario], config: JSON) -> JSON:
    baseline = config_lib.build_page(config, "baseline")
    candidate = config_lib.build_page(config, "candidate")
    recorder = build_recorder(config)

    results: JSON = {"identical": [], "different": [], "skipped": []}
    await asyncio.gather(baseline.close(), candidate.close())
    try:
        for idx, scenario in enumerate(scenarios):
            print(f"▶️  {scenario.id}: {scenario.title}")
            record = await run_scenario(
                scenario,
                config=config,
                baseline=baseline,
                candidate=candidate,
                recorder=recorder,
                first=idx == 0,
            )
            if record is None:
                results["skipped"].append(scenario.id)
            elif record.identical:
                print("   ✅ identical")
                results["identical"].append(scenario.id)
            else:
                print(f"   ❌ {len(record.mismatch_reasons)} difference(s)")
                results["different"].append(scenario.id)
    finally:
        await asyncio.gather(baseline.close(), candidate.close())

    results["summary"] = recorder.generate_summary()
    results["summary_path"] = str(recorder.summary_path)
    results["ledger_error"] = recorder.ledger_error
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Side-by-side comparison of Old App and Spicy Claude using agent-browser")
    parser.add_argument("--config", default=None, help="Harness config (YAML or JSON); defaults plus HARNESS_* env vars when omitted")
    parser.add_argument("--scenario", action="append", default=[], help="Scenario id or prefix, e.g. W1 (repeatable)")
    parser.add_argument("--group", action="append", default=[], choices=GROUPS, help="Scenario group (repeatable)")
    parser.add_argument("--stamp", default=None, help="Suffix for test file names (defaults to current time in ms)")
    parser.add_argument("--list", action="store_true", help="List scenarios and exit")
    args = parser.parse_args(argv)

    config, errors = config_lib.load_and_validate(args.config)
    if errors:
        print("Config validation failed:")
        for err in errors:
            print(f"- {err}")
        return 2

    stamp = args.stamp or str(int(time.time() * 1000))
    catalog = build_catalog(config["project_path"], stamp)
    scenarios = select_scenarios(catalog, ids=args.scenario, groups=args.group)

    if args.list:
        for scenario in scenarios:
            target = f"  [{scenario.test_file}]" if scenario.test_file else ""
            print(f"{scenario.id:<24} {scenario.title}{target}")
        return 0

    if not scenarios:
        print("No scenarios matched the selection.")
        return 2

    print(f"🅰️  {config['baseline']['name']}: {config['baseline']['url']}")
    print(f"🅱️  {config['candidate']['name']}: {config['candidate']['url']}")
    print(f"📁 Project: {config['project_path']}")
    print(f"Running {len(scenarios)} scenario(s)\n")

    results = asyncio.run(run_all(scenarios, config))

    print("\n" + "=" * 72)
    print("📊 COMPARISON SUMMARY")
    print("=" * 72)
    print(f"Scenarios:  {len(scenarios)}")
    print(f"Identical:  {len(results['identical'])}")
    print(f"Different:  {len(results['different'])}")
    print(f"Skipped:    {len(results['skipped'])}")
    if results["different"]:
        print(f"Changed:    {', '.join(results['different'])}")
    if results["ledger_error"]:
        print(f"\n❌ Ledger unreadable, summary not written: {results['ledger_error']}")
        return 1
    print(f"\nMarkdown saved: {results['summary_path']}")

    if results["different"]:
        return 1
    if results["skipped"]:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
