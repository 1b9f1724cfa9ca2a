#!/usr/bin/env python3
"""
Comparison scenarios: one chat command, sent identically to both apps.

Write (W), read (R), edit (E) and bash (B) scenarios each check the
filesystem or the reply after the app answers, so a run only counts as a
success when the requested change actually happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from harness import chat
from harness.browser import AppPage
from harness.outcome import Outcome

Verify = Callable[[chat.ChatResponse], bool]

GROUPS = ("write", "read", "edit", "bash")


def _noop() -> None:
    return None


def _always(_response: chat.ChatResponse) -> bool:
    return True


def _exists(path: str) -> Verify:
    return lambda _response: chat.file_exists(path)


def _contains(path: str, *needles: str) -> Verify:
    def check(_response: chat.ChatResponse) -> bool:
        target = Path(chat.expand_home(path))
        try:
            content = target.read_text(encoding="utf-8")
        except OSError:
            return False
        return all(needle in content for needle in needles)
    return check


def _reply_contains(needle: str) -> Verify:
    return lambda response: needle in response.text


def _seed(path: str, content: str) -> Callable[[], None]:
    def create() -> None:
        target = Path(chat.expand_home(path))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return create


def _remove(path: str) -> Callable[[], None]:
    return lambda: chat.delete_test_file(path)


@dataclass
class Scenario:
    id: str
    title: str
    group: str
    command: str
    verify: Verify = _always
    setup: Callable[[], None] = _noop
    cleanup: Callable[[], None] = _noop
    test_file: Optional[str] = field(default=None)

    def as_callable(self, project_path: str, *, response_timeout: float = 30):
        """Build the per-app coroutine function handed to run_side_by_side."""

        async def run(page: AppPage) -> Outcome:
            await chat.clear_browser_state(page)
            await chat.select_project(page, project_path)
            await chat.send_message(page, self.command)

            prompted = await chat.verify_permission_prompt(page)
            if prompted:
                await chat.approve_permission(page)

            response = await chat.wait_for_response(page, timeout=response_timeout)
            return Outcome(
                succeeded=response.success and self.verify(response),
                response_text=response.text,
                error_message=response.error,
                permission_prompted=prompted,
            )

        return run


def write_scenarios(project: str, stamp: str) -> List[Scenario]:
    specs = [
        ("W1-write-tmp", "Write to /tmp/ directory", f"/tmp/test-old-vs-spicy-{stamp}.txt", "test from automated test"),
        ("W2-write-project", "Write to project directory", f"{project}/test-write-{stamp}.txt", "project test"),
        ("W3-write-home", "Write to home directory", f"~/test-home-{stamp}.txt", "home test"),
        ("W4-write-nested", "Write to nested project subdirectory", f"{project}/tests/reports/test-nested-{stamp}.txt", "nested test"),
    ]
    return [
        Scenario(
            id=sid,
            title=title,
            group="write",
            command=f'Create a test file at {path} with content "{content}"',
            verify=_exists(path),
            cleanup=_remove(path),
            test_file=path,
        )
        for sid, title, path, content in specs
    ]


def read_scenarios(project: str, stamp: str) -> List[Scenario]:
    tmp_file = f"/tmp/test-read-{stamp}.txt"
    tmp_content = "Test content for reading"
    return [
        Scenario(
            id="R1-read-tmp",
            title="Read from /tmp/ directory",
            group="read",
            command=f"Read the file at {tmp_file} and tell me its content",
            verify=_reply_contains(tmp_content),
            setup=_seed(tmp_file, tmp_content),
            cleanup=_remove(tmp_file),
            test_file=tmp_file,
        ),
        Scenario(
            id="R2-read-project",
            title="Read from project directory",
            group="read",
            command="Read the README.md file and tell me what this project is about",
        ),
    ]


def edit_scenarios(project: str, stamp: str) -> List[Scenario]:
    tmp_file = f"/tmp/test-edit-{stamp}.txt"
    project_file = f"{project}/test-edit-project-{stamp}.txt"
    return [
        Scenario(
            id="E1-edit-tmp",
            title="Edit file in /tmp/",
            group="edit",
            command=f'Edit {tmp_file} and change the content to "Modified content"',
            verify=_contains(tmp_file, "Modified content"),
            setup=_seed(tmp_file, "Original content"),
            cleanup=_remove(tmp_file),
            test_file=tmp_file,
        ),
        Scenario(
            id="E2-edit-project",
            title="Edit file in project directory",
            group="edit",
            command=f'Edit {project_file} and add a new line: "This line was added by test"',
            verify=_contains(project_file, "This line was added by test"),
            setup=_seed(project_file, "Original project content"),
            cleanup=_remove(project_file),
            test_file=project_file,
        ),
    ]


def bash_scenarios(project: str, stamp: str) -> List[Scenario]:
    echo_file = f"/tmp/bash-echo-{stamp}.txt"
    touch_file = f"/tmp/bash-touch-{stamp}.txt"
    project_touch = f"{project}/bash-touch-project-{stamp}.txt"
    heredoc_file = f"{project}/bash-heredoc-{stamp}.txt"
    return [
        Scenario(
            id="B1-bash-echo-tmp",
            title="Bash echo to /tmp/",
            group="bash",
            command=f'Use bash to echo "Hello from bash" > {echo_file}',
            verify=_exists(echo_file),
            cleanup=_remove(echo_file),
            test_file=echo_file,
        ),
        Scenario(
            id="B2-bash-touch-tmp",
            title="Bash touch in /tmp/",
            group="bash",
            command=f"Use bash touch command to create {touch_file}",
            verify=_exists(touch_file),
            cleanup=_remove(touch_file),
            test_file=touch_file,
        ),
        Scenario(
            id="B3-bash-touch-project",
            title="Bash touch in project directory",
            group="bash",
            command=f"Use bash touch to create {project_touch}",
            verify=_exists(project_touch),
            cleanup=_remove(project_touch),
            test_file=project_touch,
        ),
        Scenario(
            id="B4-bash-heredoc",
            title="Bash cat with heredoc",
            group="bash",
            command=f"Use bash with heredoc to create {heredoc_file} with multiple lines:\nLine 1\nLine 2\nLine 3",
            verify=_contains(heredoc_file, "Line 1", "Line 2", "Line 3"),
            cleanup=_remove(heredoc_file),
            test_file=heredoc_file,
        ),
    ]


def build_catalog(project_path: str, stamp: str) -> List[Scenario]:
    project = project_path.rstrip("/")
    return (
        write_scenarios(project, stamp)
        + read_scenarios(project, stamp)
        + edit_scenarios(project, stamp)
        + bash_scenarios(project, stamp)
    )


def select_scenarios(catalog: List[Scenario], *, ids: Optional[List[str]] = None, groups: Optional[List[str]] = None) -> List[Scenario]:
    """Filter by id (exact or prefix such as ``W1``) and/or group, keeping catalog order."""
    wanted_ids = [i.lower() for i in ids or []]
    wanted_groups = {g.lower() for g in groups or []}
    selected: List[Scenario] = []
    for scenario in catalog:
        if wanted_groups and scenario.group not in wanted_groups:
            continue
        if wanted_ids:
            sid = scenario.id.lower()
            if not any(sid == w or sid.startswith(w + "-") for w in wanted_ids):
                continue
        selected.append(scenario)
    return selected
