#!/usr/bin/env python3
"""
Shared agent-browser command runner for the side-by-side harness.
"""

from __future__ import annotations

import asyncio
import json
import shlex
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

JSON = Dict[str, Any]

JSON_COMMANDS = {
    "open",
    "find",
    "wait",
    "get",
    "is",
    "click",
    "fill",
    "press",
    "eval",
    "errors",
    "console",
}

TIMEOUT_RETURNCODE = 124


def now() -> str:
    return datetime.now().isoformat(timespec="seconds")


def should_add_json(cmd_parts: Sequence[str], *, want_json: bool) -> bool:
    if not want_json or not cmd_parts:
        return False
    if "--json" in cmd_parts:
        return False
    return cmd_parts[0] in JSON_COMMANDS


def build_argv(cmd_parts: Sequence[str], *, session: str, want_json: bool) -> list:
    argv = ["agent-browser", "--session", session] + list(cmd_parts)
    if should_add_json(cmd_parts, want_json=want_json):
        argv.append("--json")
    return argv


async def run_agent_browser(
    cmd_parts: Sequence[str],
    *,
    session: str,
    want_json: bool = True,
    timeout: float = 120,
) -> JSON:
    """Run one agent-browser command without blocking the event loop.

    A command that outlives ``timeout`` is killed and reported with
    return code 124, so callers always get a record back.
    """
    argv = build_argv(cmd_parts, session=session, want_json=want_json)
    rec: JSON = {"time": now(), "session": session, "argv": argv}
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        rec.update({"returncode": 2, "stdout": "", "stderr": "", "error": f"command execution failed: {exc}"})
        return rec

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        rec.update({
            "returncode": TIMEOUT_RETURNCODE,
            "stdout": "",
            "stderr": "",
            "error": f"timed out after {timeout:g}s",
        })
        return rec

    rec["returncode"] = proc.returncode
    rec["stdout"] = stdout.decode("utf-8", errors="replace")
    rec["stderr"] = stderr.decode("utf-8", errors="replace")
    if want_json and rec["stdout"].strip():
        try:
            rec["parsed"] = json.loads(rec["stdout"])
        except json.JSONDecodeError:
            rec["parsed_error"] = "stdout was not valid JSON"
    return rec


async def run_agent_browser_cmd(
    cmd: str,
    *,
    session: str,
    capture_json: bool = True,
    timeout: float = 120,
) -> JSON:
    cmd_parts = shlex.split(cmd)
    return await run_agent_browser(cmd_parts, session=session, want_json=capture_json, timeout=timeout)


def succeeded(record: JSON) -> bool:
    if record.get("returncode", 1) != 0:
        return False
    parsed = record.get("parsed")
    if isinstance(parsed, dict) and parsed.get("success") is False:
        return False
    return True


def describe_failure(record: JSON) -> str:
    if record.get("error"):
        return str(record["error"])
    parsed = record.get("parsed")
    if isinstance(parsed, dict) and parsed.get("error"):
        return str(parsed["error"])
    stderr = (record.get("stderr") or "").strip()
    if stderr:
        return stderr.splitlines()[-1]
    return f"agent-browser exited with code {record.get('returncode')}"


def extract_data_field(record: JSON) -> Any:
    parsed = record.get("parsed")
    if isinstance(parsed, dict) and "data" in parsed:
        data = parsed.get("data")
        # Scalar commands nest their value under "result" for some versions.
        while isinstance(data, dict) and "result" in data and len(data) == 1:
            data = data["result"]
        return data
    return None


def extract_text_field(record: JSON, *keys: str) -> Optional[str]:
    data = extract_data_field(record)
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        for key in keys or ("text", "value"):
            value = data.get(key)
            if isinstance(value, str):
                return value
    return None


def extract_bool_field(record: JSON, *keys: str) -> Optional[bool]:
    data = extract_data_field(record)
    if isinstance(data, bool):
        return data
    if isinstance(data, dict):
        for key in keys or ("visible", "value"):
            value = data.get(key)
            if isinstance(value, bool):
                return value
    return None
