#!/usr/bin/env python3
"""
Chat UI helpers shared by the comparison scenarios and candidate-only checks.

All helpers take an AppPage and work the same way against either app.
"""

from __future__ import annotations

import os
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from harness.browser import AppPage, BrowserCommandError

MESSAGE_INPUT = 'textarea[placeholder*="Type message"]'
SEND_BUTTON = 'button[type="submit"]:has-text("Send"), button[type="submit"]:has-text("Plan")'
LOADING_INDICATOR = "text=Processing..."
LAST_MESSAGE = '[role="article"] >> nth=-1'
PROJECT_HEADER = '[aria-label*="Return to new chat"]'
ALLOW_BUTTON = 'button:has-text("Allow")'
DENY_BUTTON = 'button:has-text("Deny")'
ERROR_TEXT = "text=/error|failed|cannot/i >> nth=0"
MODE_BUTTON = (
    'button:has-text("normal mode"), button:has-text("plan mode"), '
    'button:has-text("accept edits"), button:has-text("bypass permissions")'
)

PERMISSION_MODES = ("normal mode", "plan mode", "accept edits", "bypass permissions")
ERROR_KEYWORDS = ("error", "failed", "cannot")
MODE_SWITCH_ATTEMPTS = 4
MODE_SWITCH_PAUSE_S = 0.2


class PermissionModeError(RuntimeError):
    pass


@dataclass(frozen=True)
class ChatResponse:
    success: bool
    text: str
    error: Optional[str] = None


def looks_like_error(text: str) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in ERROR_KEYWORDS)


async def clear_browser_state(page: AppPage) -> None:
    await page.clear_storage()


async def select_project(page: AppPage, project_path: str, *, header_timeout: float = 5) -> None:
    await page.navigate("/projects" + quote(project_path))
    await page.wait_for_load("networkidle")
    # The header can lag behind the page load; a missing header is not fatal.
    await page.wait_for_element(PROJECT_HEADER, timeout=header_timeout)


async def send_message(page: AppPage, message: str) -> None:
    await page.fill_field(MESSAGE_INPUT, message)
    await page.click(SEND_BUTTON)


async def wait_for_response(page: AppPage, timeout: float = 30) -> ChatResponse:
    await page.wait_for_element_hidden(LOADING_INDICATOR, timeout=timeout)
    try:
        text = await page.read_element_text(LAST_MESSAGE)
    except BrowserCommandError as exc:
        return ChatResponse(success=False, text="", error=str(exc))
    if looks_like_error(text):
        return ChatResponse(success=False, text=text, error=text)
    return ChatResponse(success=True, text=text)


async def verify_permission_prompt(page: AppPage) -> bool:
    return await page.is_element_visible(ALLOW_BUTTON)


async def approve_permission(page: AppPage) -> None:
    await page.click(ALLOW_BUTTON)


async def deny_permission(page: AppPage) -> None:
    await page.click(DENY_BUTTON)


async def get_error_message(page: AppPage) -> Optional[str]:
    try:
        return await page.read_element_text(ERROR_TEXT)
    except BrowserCommandError:
        return None


async def current_permission_mode(page: AppPage) -> str:
    return await page.read_element_text(MODE_BUTTON)


async def switch_permission_mode(page: AppPage, target_mode: str) -> None:
    """Cycle the mode indicator until it shows ``target_mode``."""
    if target_mode not in PERMISSION_MODES:
        raise PermissionModeError(f"Unknown permission mode: {target_mode}")

    for _ in range(MODE_SWITCH_ATTEMPTS):
        if target_mode in await current_permission_mode(page):
            break
        await page.click(MODE_BUTTON)
        await page.pause(MODE_SWITCH_PAUSE_S)

    final = await current_permission_mode(page)
    if target_mode not in final:
        raise PermissionModeError(f"Failed to switch to {target_mode}. Current mode: {final}")


def expand_home(path: str) -> str:
    if path.startswith("~"):
        return path.replace("~", os.environ.get("HOME", ""), 1)
    return path


def file_exists(path: str) -> bool:
    return Path(expand_home(path)).exists()


def delete_test_file(path: str) -> None:
    target = Path(expand_home(path))
    try:
        target.unlink(missing_ok=True)
    except OSError as exc:
        warnings.warn(f"Failed to delete {target}: {exc}")
