#!/usr/bin/env python3
"""
One running application under test, driven through an agent-browser session.

Each AppPage owns a named session, so the Old App and Spicy Claude pages keep
separate cookies, storage and navigation state while they run side by side.
"""

from __future__ import annotations

import asyncio
import os
import shlex
import tempfile
import time
from pathlib import Path
from typing import List, Optional

from harness import collectors

JSON = collectors.JSON

POLL_INTERVAL_S = 0.25


class BrowserCommandError(RuntimeError):
    """An agent-browser action failed or timed out."""

    def __init__(self, message: str, record: Optional[JSON] = None) -> None:
        super().__init__(message)
        self.record = record or {}


def _prefix_url(base_url: str, maybe_path: str) -> str:
    if maybe_path.startswith("http://") or maybe_path.startswith("https://"):
        return maybe_path
    if maybe_path.startswith("/"):
        return base_url.rstrip("/") + maybe_path
    return base_url.rstrip("/") + "/" + maybe_path


class AppPage:
    def __init__(
        self,
        name: str,
        base_url: str,
        session: str,
        *,
        action_timeout: float = 10,
        navigation_timeout: float = 30,
    ) -> None:
        self.name = name
        self.base_url = base_url
        self.session = session
        self.action_timeout = action_timeout
        self.navigation_timeout = navigation_timeout
        self.log: List[JSON] = []

    def __repr__(self) -> str:
        return f"AppPage({self.name!r}, {self.base_url!r}, session={self.session!r})"

    async def _run(self, cmd_parts: List[str], *, want_json: bool = True, timeout: Optional[float] = None) -> JSON:
        rec = await collectors.run_agent_browser(
            cmd_parts,
            session=self.session,
            want_json=want_json,
            timeout=timeout or self.action_timeout,
        )
        self.log.append(rec)
        return rec

    async def _act(self, cmd_parts: List[str], *, timeout: Optional[float] = None) -> JSON:
        rec = await self._run(cmd_parts, timeout=timeout)
        if not collectors.succeeded(rec):
            action = " ".join(shlex.quote(p) for p in cmd_parts)
            raise BrowserCommandError(f"{self.name}: `{action}` failed: {collectors.describe_failure(rec)}", rec)
        return rec

    async def navigate(self, path: str) -> JSON:
        url = _prefix_url(self.base_url, path)
        return await self._act(["open", url], timeout=self.navigation_timeout)

    async def wait_for_load(self, state: str = "networkidle") -> bool:
        rec = await self._run(["wait", "--load", state], timeout=self.navigation_timeout)
        return collectors.succeeded(rec)

    async def fill_field(self, selector: str, text: str) -> JSON:
        return await self._act(["fill", selector, text])

    async def click(self, selector: str) -> JSON:
        return await self._act(["click", selector])

    async def click_button(self, name: str) -> JSON:
        return await self._act(["find", "role", "button", "click", "--name", name])

    async def is_element_visible(self, selector: str) -> bool:
        rec = await self._run(["is", "visible", selector])
        if not collectors.succeeded(rec):
            return False
        return bool(collectors.extract_bool_field(rec, "visible"))

    async def read_element_text(self, selector: str) -> str:
        rec = await self._act(["get", "text", selector])
        return collectors.extract_text_field(rec, "text") or ""

    async def wait_for_element(self, selector: str, timeout: Optional[float] = None) -> bool:
        rec = await self._run(["wait", selector], timeout=timeout or self.action_timeout)
        return collectors.succeeded(rec)

    async def wait_for_element_hidden(self, selector: str, timeout: float = 30) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if not await self.is_element_visible(selector):
                return True
            await asyncio.sleep(POLL_INTERVAL_S)
        return False

    async def pause(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def evaluate(self, script: str) -> JSON:
        return await self._act(["eval", script])

    async def clear_storage(self) -> None:
        await self.evaluate("(() => { localStorage.clear(); sessionStorage.clear(); return true; })()")
        await self._act(["cookies", "clear"])

    async def screenshot_page(self) -> bytes:
        fd, tmp = tempfile.mkstemp(prefix=f"{self.session}-", suffix=".png")
        os.close(fd)
        path = Path(tmp)
        try:
            await self._act(["screenshot", str(path), "--full"], timeout=self.navigation_timeout)
            return path.read_bytes()
        finally:
            path.unlink(missing_ok=True)

    async def close(self) -> JSON:
        return await self._run(["close"], want_json=False)
