#!/usr/bin/env python3
"""Result records shared by the executor, comparator and recorder."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional

JSON = Dict[str, Any]


def _require_mapping(data: Any, what: str) -> JSON:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")
    return data


def now() -> str:
    return datetime.now().isoformat(timespec="seconds")


@dataclass(frozen=True)
class Outcome:
    """What one scenario observed on one application.

    ``succeeded`` and ``error_message`` are recorded independently: a run can
    succeed and still surface an error string, or fail without one.
    """

    succeeded: bool
    response_text: str = ""
    error_message: Optional[str] = None
    permission_prompted: bool = False
    observed_at: str = field(default_factory=now)

    @classmethod
    def failure(cls, message: str, *, observed_at: Optional[str] = None) -> "Outcome":
        return cls(
            succeeded=False,
            response_text="",
            error_message=message,
            permission_prompted=False,
            observed_at=observed_at or now(),
        )

    def to_dict(self) -> JSON:
        data: JSON = {
            "succeeded": self.succeeded,
            "response_text": self.response_text,
            "permission_prompted": self.permission_prompted,
            "observed_at": self.observed_at,
        }
        if self.error_message is not None:
            data["error_message"] = self.error_message
        return data

    @classmethod
    def from_dict(cls, data: JSON) -> "Outcome":
        data = _require_mapping(data, "outcome")
        return cls(
            succeeded=bool(data.get("succeeded")),
            response_text=data.get("response_text") or "",
            error_message=data.get("error_message"),
            permission_prompted=bool(data.get("permission_prompted")),
            observed_at=data.get("observed_at") or "",
        )


@dataclass(frozen=True)
class ScreenshotPair:
    baseline: bytes
    candidate: bytes


@dataclass
class ComparisonRecord:
    scenario_id: str
    baseline: Outcome
    candidate: Outcome
    identical: bool
    mismatch_reasons: List[str]
    observed_at: str = field(default_factory=now)
    screenshots: Optional[ScreenshotPair] = None

    def without_screenshots(self) -> "ComparisonRecord":
        return replace(self, mismatch_reasons=list(self.mismatch_reasons), screenshots=None)

    def to_dict(self) -> JSON:
        # Screenshot bytes live next to the ledger, never inside it.
        return {
            "scenario_id": self.scenario_id,
            "baseline": self.baseline.to_dict(),
            "candidate": self.candidate.to_dict(),
            "identical": self.identical,
            "mismatch_reasons": list(self.mismatch_reasons),
            "observed_at": self.observed_at,
        }

    @classmethod
    def from_dict(cls, data: JSON) -> "ComparisonRecord":
        data = _require_mapping(data, "ledger entry")
        reasons = data.get("mismatch_reasons") or []
        if not isinstance(reasons, list):
            raise ValueError("mismatch_reasons must be a list")
        return cls(
            scenario_id=str(data.get("scenario_id", "")),
            baseline=Outcome.from_dict(data.get("baseline") or {}),
            candidate=Outcome.from_dict(data.get("candidate") or {}),
            identical=bool(data.get("identical")),
            mismatch_reasons=[str(r) for r in reasons],
            observed_at=data.get("observed_at") or "",
        )
