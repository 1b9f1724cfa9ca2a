#!/usr/bin/env python3
"""Harness configuration parsing and validation helpers."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from harness.browser import AppPage

JSON = Dict[str, Any]

DEFAULT_CONFIG: JSON = {
    "baseline": {
        "name": "Old App",
        "url": "http://localhost:3002",
        "session": "old-app",
    },
    "candidate": {
        "name": "Spicy Claude",
        "url": "http://localhost:3003",
        "session": "spicy-claude",
    },
    "project_path": "",
    "report_dir": "tests/reports",
    "timeouts": {
        "action_ms": 10000,
        "navigation_ms": 30000,
        "response_ms": 30000,
        "first_response_ms": 60000,
        "scenario_ms": 120000,
    },
}

ENV_OVERRIDES = {
    "HARNESS_BASELINE_URL": ("baseline", "url"),
    "HARNESS_CANDIDATE_URL": ("candidate", "url"),
    "HARNESS_PROJECT": ("project_path",),
    "HARNESS_REPORT_DIR": ("report_dir",),
}

LEDGER_FILE = "differences.json"
SUMMARY_FILE = "DIFFERENCES-SUMMARY.md"
SCREENSHOT_DIR = "screenshots"


def load_config(path: str) -> JSON:
    config_path = Path(path)
    raw = config_path.read_text(encoding="utf-8")
    if config_path.suffix.lower() in {".json"}:
        return json.loads(raw)
    return yaml.safe_load(raw) or {}


def normalize_config(config: Optional[JSON]) -> JSON:
    normalized = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (config or {}).items():
        if isinstance(value, dict) and isinstance(normalized.get(key), dict):
            normalized[key].update(value)
        else:
            normalized[key] = value
    return normalized


def apply_env_overrides(config: JSON, environ: Optional[Mapping[str, str]] = None) -> JSON:
    env = os.environ if environ is None else environ
    for var, keys in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        target = config
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value
    return config


def validate_config(config: JSON) -> List[str]:
    errors: List[str] = []
    if not isinstance(config, dict):
        return ["Config must be a mapping/object."]

    for role in ("baseline", "candidate"):
        app = config.get(role)
        if not isinstance(app, dict):
            errors.append(f"{role} must be an object")
            continue
        for key in ("name", "url", "session"):
            if not app.get(key):
                errors.append(f"{role}.{key} is required")
        url = str(app.get("url") or "")
        if url and not (url.startswith("http://") or url.startswith("https://")):
            errors.append(f"{role}.url must start with http:// or https://")

    baseline, candidate = config.get("baseline"), config.get("candidate")
    if isinstance(baseline, dict) and isinstance(candidate, dict):
        if baseline.get("session") and baseline.get("session") == candidate.get("session"):
            errors.append("baseline and candidate must use different sessions")

    if not config.get("project_path"):
        errors.append("project_path is required (or set HARNESS_PROJECT)")

    timeouts = config.get("timeouts")
    if not isinstance(timeouts, dict):
        errors.append("timeouts must be an object")
    else:
        for key, value in timeouts.items():
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                errors.append(f"timeouts.{key} must be a positive number of milliseconds")

    return errors


def load_and_validate(path: Optional[str]) -> Tuple[JSON, List[str]]:
    raw = load_config(path) if path else {}
    config = apply_env_overrides(normalize_config(raw))
    errors = validate_config(config)
    return config, errors


def timeout_s(config: JSON, key: str) -> float:
    return float(config["timeouts"][key]) / 1000.0


def report_paths(config: JSON) -> JSON:
    report_dir = Path(config["report_dir"])
    return {
        "ledger": report_dir / LEDGER_FILE,
        "summary": report_dir / SUMMARY_FILE,
        "screenshots": report_dir / SCREENSHOT_DIR,
    }


def build_page(config: JSON, role: str) -> AppPage:
    app = config[role]
    return AppPage(
        app["name"],
        app["url"],
        app["session"],
        action_timeout=timeout_s(config, "action_ms"),
        navigation_timeout=timeout_s(config, "navigation_ms"),
    )
