#!/usr/bin/env python3
"""
Checks that only make sense on Spicy Claude.

Bypass-permissions mode does not exist in the Old App, so these run against
the candidate alone and report pass/fail instead of a comparison.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List

from harness import chat
from harness.browser import AppPage

BYPASS_MODE = "bypass permissions"
NORMAL_MODE = "normal mode"


@dataclass(frozen=True)
class CheckResult:
    id: str
    title: str
    passed: bool
    message: str = ""


@dataclass(frozen=True)
class CheckContext:
    project_path: str
    stamp: str
    response_timeout: float = 30
    first_response_timeout: float = 60


CheckFn = Callable[[AppPage, CheckContext], Awaitable[CheckResult]]


@dataclass(frozen=True)
class Check:
    id: str
    title: str
    suite: str
    run: CheckFn


async def prepare_bypass(page: AppPage, ctx: CheckContext) -> None:
    await chat.clear_browser_state(page)
    await chat.select_project(page, ctx.project_path)
    await chat.switch_permission_mode(page, BYPASS_MODE)


async def prepare_prompts(page: AppPage, ctx: CheckContext) -> None:
    await chat.select_project(page, ctx.project_path)
    await chat.clear_browser_state(page)


async def _write_without_prompt(page: AppPage, path: str, command: str, *, timeout: float) -> tuple:
    await chat.send_message(page, command)
    prompted = await chat.verify_permission_prompt(page)
    response = await chat.wait_for_response(page, timeout=timeout)
    exists = chat.file_exists(path)
    chat.delete_test_file(path)
    return prompted, response, exists


def _bypass_verdict(check_id: str, title: str, prompted: bool, response: chat.ChatResponse, exists: bool) -> CheckResult:
    problems = []
    if prompted:
        problems.append("permission prompt appeared")
    if not response.success:
        problems.append(f"response failed: {response.error}")
    if not exists:
        problems.append("file was not created")
    return CheckResult(check_id, title, not problems, "; ".join(problems) or "no prompt, file created")


def bypass_checks() -> List[Check]:
    async def bp_w1(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"/tmp/bypass-test-{ctx.stamp}.txt"
        prompted, response, exists = await _write_without_prompt(
            page, path, f'Create a test file at {path} with content "bypass mode test"',
            timeout=ctx.first_response_timeout,
        )
        return _bypass_verdict("BP-W1", "Write to /tmp/ with bypass", prompted, response, exists)

    async def bp_w2(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"{ctx.project_path.rstrip('/')}/bypass-project-{ctx.stamp}.txt"
        prompted, response, exists = await _write_without_prompt(
            page, path, f'Create a test file at {path} with content "project bypass test"',
            timeout=ctx.response_timeout,
        )
        return _bypass_verdict("BP-W2", "Write to project directory with bypass", prompted, response, exists)

    async def bp_b1(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"/tmp/bypass-bash-{ctx.stamp}.txt"
        prompted, response, exists = await _write_without_prompt(
            page, path, f'Use bash to create {path} with echo "bypass bash test"',
            timeout=ctx.response_timeout,
        )
        return _bypass_verdict("BP-B1", "Bash command to /tmp/ with bypass", prompted, response, exists)

    async def bp_verify(page: AppPage, ctx: CheckContext) -> CheckResult:
        visible = await page.is_element_visible("text=/bypass permissions/i")
        return CheckResult("BP-VERIFY", "Bypass mode indicator is visible", visible,
                           "indicator visible" if visible else "indicator not visible")

    async def bp_switch(page: AppPage, ctx: CheckContext) -> CheckResult:
        await chat.switch_permission_mode(page, NORMAL_MODE)
        visible = await page.is_element_visible("text=/normal mode/i")
        path = f"/tmp/normal-mode-test-{ctx.stamp}.txt"
        await chat.send_message(page, f'Create {path} with content "normal mode"')
        prompted = await chat.verify_permission_prompt(page)
        chat.delete_test_file(path)
        return CheckResult("BP-SWITCH", "Can switch back to normal mode", visible,
                           f"normal mode indicator {'visible' if visible else 'missing'}, prompted={prompted}")

    return [
        Check("BP-W1", "Write to /tmp/ with bypass (no prompt)", "bypass", bp_w1),
        Check("BP-W2", "Write to project directory with bypass (no prompt)", "bypass", bp_w2),
        Check("BP-B1", "Bash command to /tmp/ with bypass (no prompt)", "bypass", bp_b1),
        Check("BP-VERIFY", "Bypass mode indicator is visible", "bypass", bp_verify),
        Check("BP-SWITCH", "Can switch back to normal mode", "bypass", bp_switch),
    ]


def prompt_checks() -> List[Check]:
    async def pp_prompt(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"/tmp/perm-test-{ctx.stamp}.txt"
        await chat.send_message(page, f'Create {path} with content "test"')
        # Whether a prompt appears depends on the SDK version; record it only.
        prompted = await chat.verify_permission_prompt(page)
        if prompted:
            await chat.approve_permission(page)
        await chat.wait_for_response(page, timeout=ctx.response_timeout)
        chat.delete_test_file(path)
        return CheckResult("PP-PROMPT", "Permission prompt appears for file write", True, f"prompted={prompted}")

    async def pp_approve(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"{ctx.project_path.rstrip('/')}/perm-approve-{ctx.stamp}.txt"
        await chat.send_message(page, f'Create {path} with content "approved"')
        prompted = await chat.verify_permission_prompt(page)
        if prompted:
            await chat.approve_permission(page)
        response = await chat.wait_for_response(page, timeout=ctx.response_timeout)
        chat.delete_test_file(path)
        if not prompted:
            return CheckResult("PP-APPROVE", "Approving permission allows operation", True, "no prompt appeared")
        return CheckResult("PP-APPROVE", "Approving permission allows operation", response.success,
                           "operation succeeded" if response.success else f"operation failed: {response.error}")

    async def pp_deny(page: AppPage, ctx: CheckContext) -> CheckResult:
        path = f"{ctx.project_path.rstrip('/')}/perm-deny-{ctx.stamp}.txt"
        await chat.send_message(page, f'Create {path} with content "denied"')
        prompted = await chat.verify_permission_prompt(page)
        if not prompted:
            chat.delete_test_file(path)
            return CheckResult("PP-DENY", "Denying permission prevents operation", True, "no prompt appeared, skipped")
        await chat.deny_permission(page)
        response = await chat.wait_for_response(page, timeout=ctx.response_timeout)
        chat.delete_test_file(path)
        return CheckResult("PP-DENY", "Denying permission prevents operation", not response.success,
                           "operation blocked" if not response.success else "operation succeeded despite denial")

    return [
        Check("PP-PROMPT", "Permission prompt appears for file write", "prompts", pp_prompt),
        Check("PP-APPROVE", "Approving permission allows operation to proceed", "prompts", pp_approve),
        Check("PP-DENY", "Denying permission prevents operation", "prompts", pp_deny),
    ]


PREPARE = {
    "bypass": prepare_bypass,
    "prompts": prepare_prompts,
}


async def run_check(check: Check, page: AppPage, ctx: CheckContext) -> CheckResult:
    try:
        await PREPARE[check.suite](page, ctx)
        return await check.run(page, ctx)
    except Exception as exc:
        return CheckResult(check.id, check.title, False, f"error: {str(exc) or exc.__class__.__name__}")
