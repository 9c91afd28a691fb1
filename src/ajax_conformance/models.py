"""Data model shared by the interceptor, orchestrator and reporter.

Records and outcomes are frozen: the interceptor and orchestrator append them
to their own logs and nothing rewrites them afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


def utc_now() -> str:
    """ISO-8601 timestamp used for every record and outcome."""
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ActionRecord:
    """Outbound asynchronous request observed in the browser."""

    action_id: str
    url: str
    method: str
    raw_payload: str
    observed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action_id,
            "url": self.url,
            "method": self.method,
            "postData": self.raw_payload,
            "timestamp": self.observed_at,
        }


@dataclass(frozen=True)
class ResponseRecord:
    """Response to an in-scope request.

    ``raw_payload`` repeats the originating request body so responses can be
    correlated without looking at the request log.
    """

    action_id: str
    http_status: int
    body: str
    raw_payload: str
    observed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action_id,
            "status": self.http_status,
            "body": self.body,
            "timestamp": self.observed_at,
            "postData": self.raw_payload,
        }


@dataclass(frozen=True)
class ConsoleRecord:
    type: str
    text: str
    observed_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text, "timestamp": self.observed_at}


class OutcomeStatus(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"
    NO_RESPONSE = "NO_RESPONSE"


class StepKind(str, Enum):
    """Interaction directives a tool can issue before settling."""

    SELECT = "select"  # choose option by index in a <select>
    FILL = "fill"
    CHECK = "check"  # tick the first ``count`` matching checkboxes
    CLICK = "click"


@dataclass(frozen=True)
class Step:
    """One UI directive.

    Every step's selector is located before any interaction happens, so a
    missing element short-circuits the tool without touching the page.
    ``value`` may contain ``{stamp}`` which is replaced by a millisecond
    timestamp when the step runs (unique redirect paths and similar).
    """

    kind: StepKind
    selector: str
    value: Optional[str] = None
    index: int = 1
    count: int = 1
    label: Optional[str] = None

    def missing_reason(self, found: int) -> str:
        if self.count > 1:
            return f"Not enough {self.label or self.selector} (found: {found})"
        return f"{self.label or self.selector} not found"


@dataclass(frozen=True)
class ToolSpec:
    """Static catalog entry for one UI-triggered asynchronous action."""

    name: str
    tab_slug: str
    tab_name: str
    steps: Tuple[Step, ...] = ()
    action_id: Optional[str] = None
    action_contains: Tuple[str, ...] = ()
    trigger: str = "click"  # "click" or "load"
    expected_count: int = 1
    settle_timeout_ms: int = 6000
    traffic_optional: bool = False
    count_result: bool = False
    note: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.action_id and not self.action_contains:
            raise ValueError(f"{self.name}: an action id or substring predicate is required")
        if self.trigger not in ("click", "load"):
            raise ValueError(f"{self.name}: unknown trigger {self.trigger!r}")
        if self.trigger == "click" and not any(s.kind is StepKind.CLICK for s in self.steps):
            raise ValueError(f"{self.name}: click-triggered tools need a click step")

    def matches(self, action_id: str) -> bool:
        """Exact match on ``action_id`` or any of the substring predicates."""
        if self.action_id is not None and action_id == self.action_id:
            return True
        return any(fragment in action_id for fragment in self.action_contains)

    @property
    def settle_timeout_s(self) -> float:
        return self.settle_timeout_ms / 1000.0


@dataclass(frozen=True)
class ToolOutcome:
    """Terminal classification of a single tool run."""

    tool: str
    tab: str
    status: OutcomeStatus
    http_status: Optional[int] = None
    response_excerpt: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    posts_processed: Optional[int] = None
    responses: Optional[List[Dict[str, Any]]] = None
    redirect_count: Optional[int] = None
    note: Optional[str] = None
    timestamp: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "tool": self.tool,
            "tab": self.tab,
            "status": self.status.value,
        }
        optional = {
            "httpStatus": self.http_status,
            "response": self.response_excerpt,
            "reason": self.reason,
            "error": self.error,
            "postsProcessed": self.posts_processed,
            "responses": self.responses,
            "redirectCount": self.redirect_count,
            "note": self.note,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        data["timestamp"] = self.timestamp
        return data


@dataclass(frozen=True)
class RunReport:
    """Snapshot of one run, built once by the reporter."""

    summary: Dict[str, Any]
    tool_outcomes: List[Dict[str, Any]]
    request_log: List[Dict[str, Any]]
    response_log: List[Dict[str, Any]]
    console_log: List[Dict[str, Any]]
    timestamp: str = field(default_factory=utc_now)

    @property
    def acceptable(self) -> bool:
        return bool(self.summary.get("runAcceptable"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "summary": self.summary,
            "toolOutcomes": self.tool_outcomes,
            "requestLog": self.request_log,
            "responseLog": self.response_log,
            "consoleLog": self.console_log,
        }
