#!/usr/bin/env python3
"""Regenerate the Markdown differences summary from the ledger."""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from harness import config as config_lib
from harness.ledger import JsonLedgerStore
from harness.recorder import DifferenceRecorder


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Render the side-by-side differences ledger as Markdown")
    parser.add_argument("--report-dir", default=None, help="Report directory holding differences.json (default: tests/reports)")
    parser.add_argument("--quiet", action="store_true", help="Write the summary file without printing it")
    args = parser.parse_args(argv)

    config = config_lib.apply_env_overrides(config_lib.normalize_config({}))
    if args.report_dir:
        config["report_dir"] = args.report_dir
    paths = config_lib.report_paths(config)

    recorder = DifferenceRecorder(JsonLedgerStore(paths["ledger"]), summary_path=paths["summary"])
    summary = recorder.generate_summary()
    if not args.quiet:
        print(summary)
    if recorder.ledger_error:
        print(f"❌ Ledger unreadable, {paths['summary']} left unchanged: {recorder.ledger_error}")
        return 1
    print(f"📝 Summary saved: {paths['summary']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
