#!/usr/bin/env python3
"""Run the Spicy Claude-only checks (bypass mode, permission prompts)."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

from harness import config as config_lib
from harness.checks import CheckContext, CheckResult, bypass_checks, prompt_checks, run_check

SUITES = ("bypass", "prompts")
RESULTS_FILE = "checks.json"


async def run_suites(suites: List[str], config: config_lib.JSON, stamp: str) -> List[CheckResult]:
    page = config_lib.build_page(config, "candidate")
    ctx = CheckContext(
        project_path=config["project_path"],
        stamp=stamp,
        response_timeout=config_lib.timeout_s(config, "response_ms"),
        first_response_timeout=config_lib.timeout_s(config, "first_response_ms"),
    )
    checks = []
    if "bypass" in suites:
        checks.extend(bypass_checks())
    if "prompts" in suites:
        checks.extend(prompt_checks())

    results: List[CheckResult] = []
    await page.close()
    try:
        for check in checks:
            result = await run_check(check, page, ctx)
            marker = "✅" if result.passed else "❌"
            print(f"{marker} {result.id}: {result.title} ({result.message})")
            results.append(result)
    finally:
        await page.close()
    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Spicy Claude-only checks using agent-browser")
    parser.add_argument("--config", default=None, help="Harness config (YAML or JSON)")
    parser.add_argument("--suite", action="append", default=[], choices=SUITES, help="Suite to run (repeatable, default: all)")
    parser.add_argument("--stamp", default=None, help="Suffix for test file names")
    args = parser.parse_args(argv)

    config, errors = config_lib.load_and_validate(args.config)
    if errors:
        print("Config validation failed:")
        for err in errors:
            print(f"- {err}")
        return 2

    stamp = args.stamp or str(int(time.time() * 1000))
    results = asyncio.run(run_suites(args.suite or list(SUITES), config, stamp))

    out_path = Path(config["report_dir"]) / RESULTS_FILE
    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = [{"id": r.id, "title": r.title, "passed": r.passed, "message": r.message} for r in results]
    out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    failed = [r.id for r in results if not r.passed]
    print(f"\nPassed: {len(results) - len(failed)}/{len(results)}")
    print(f"Results saved: {out_path}")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
