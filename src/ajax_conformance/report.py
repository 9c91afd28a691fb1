"""Result aggregation and reporting.

``build_report`` is pure: it only reads the outcome sequence and the
interceptor logs. The JSON file and the console summary are two renderings of
the same ``RunReport`` value.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from ajax_conformance.models import (
    ActionRecord,
    ConsoleRecord,
    OutcomeStatus,
    ResponseRecord,
    RunReport,
    ToolOutcome,
)

logger = logging.getLogger(__name__)

FLAGGED_STATUSES = (403, 500)


def success_rate(passed: int, total: int, skipped: int) -> float:
    """Percentage of executed (non-skipped) tools that passed, in [0, 100]."""
    tested = total - skipped
    if tested <= 0:
        return 0.0
    return round(passed / tested * 100, 1)


def status_histogram(responses: Sequence[ResponseRecord]) -> Dict[str, int]:
    counts = Counter(r.http_status for r in responses)
    return {
        "200": counts.get(200, 0),
        "403": counts.get(403, 0),
        "500": counts.get(500, 0),
        "other": sum(n for status, n in counts.items() if status not in (200, 403, 500)),
    }


def run_acceptable(outcomes: Sequence[ToolOutcome], max_skipped: Optional[int] = None) -> bool:
    """No FAILED tool, and no more SKIPPED tools than allowed."""
    statuses = Counter(o.status for o in outcomes)
    if statuses[OutcomeStatus.FAILED]:
        return False
    return max_skipped is None or statuses[OutcomeStatus.SKIPPED] <= max_skipped


def summarize(
    outcomes: Sequence[ToolOutcome],
    request_count: int,
    responses: Sequence[ResponseRecord],
    console: Sequence[ConsoleRecord],
    max_skipped: Optional[int] = None,
) -> Dict[str, Any]:
    statuses = Counter(o.status for o in outcomes)
    passed = statuses[OutcomeStatus.PASSED]
    skipped = statuses[OutcomeStatus.SKIPPED]
    console_types = Counter(m.type for m in console)
    return {
        "totalTools": len(outcomes),
        "passed": passed,
        "failed": statuses[OutcomeStatus.FAILED],
        "skipped": skipped,
        "noResponse": statuses[OutcomeStatus.NO_RESPONSE],
        "successRate": success_rate(passed, len(outcomes), skipped),
        "totalAjaxRequests": request_count,
        "totalAjaxResponses": len(responses),
        "httpStatus": status_histogram(responses),
        "consoleMessages": len(console),
        "consoleErrors": console_types.get("error", 0),
        "consoleWarnings": console_types.get("warning", 0),
        "runAcceptable": run_acceptable(outcomes, max_skipped),
    }


def build_report(
    outcomes: Sequence[ToolOutcome],
    request_log: Sequence[ActionRecord],
    response_log: Sequence[ResponseRecord],
    console_log: Sequence[ConsoleRecord],
    max_skipped: Optional[int] = None,
) -> RunReport:
    """Snapshot the run into an immutable ``RunReport``."""
    return RunReport(
        summary=summarize(outcomes, len(request_log), response_log, console_log, max_skipped),
        tool_outcomes=[o.to_dict() for o in outcomes],
        request_log=[r.to_dict() for r in request_log],
        response_log=[r.to_dict() for r in response_log],
        console_log=[m.to_dict() for m in console_log],
    )


def write_report(report: RunReport, path: Path) -> Path:
    """Write the report as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(report.to_dict(), fh, indent=2, ensure_ascii=False)
    logger.info("Report written to %s", path)
    return path


def load_report(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _status_icon(status: str) -> str:
    if status == OutcomeStatus.PASSED.value:
        return "✅"
    if status == OutcomeStatus.FAILED.value:
        return "❌"
    return "⚠️"


def render_summary(report: RunReport, report_path: Path | None = None) -> str:
    """Human-readable rendering of a report (what ``print_summary`` shows)."""
    s = report.summary
    http = s["httpStatus"]
    lines: List[str] = [
        "",
        "=" * 70,
        "📊 COMPREHENSIVE TOOL TEST SUMMARY",
        "=" * 70,
        "",
        "📈 STATISTICS:",
        f"   Total Tools: {s['totalTools']}",
        f"   ✅ Passed: {s['passed']}",
        f"   ❌ Failed: {s['failed']}",
        f"   ⚠️  Skipped: {s['skipped']}",
        f"   ⚠️  No Response: {s['noResponse']}",
        f"   Success Rate: {s['successRate']:.1f}%",
        "",
        "📡 AJAX STATISTICS:",
        f"   Total Requests: {s['totalAjaxRequests']}",
        f"   Total Responses: {s['totalAjaxResponses']}",
        f"   Status 200: {http['200']}",
        f"   Status 403: {http['403']}",
        f"   Status 500: {http['500']}",
        f"   Other: {http['other']}",
    ]
    if http["403"]:
        lines.append(f"   ❌ {http['403']} × 403 - authorization or nonce failure")
    if http["500"]:
        lines.append(f"   ❌ {http['500']} × 500 - unhandled server exception")
    lines += [
        "",
        "💬 CONSOLE STATISTICS:",
        f"   Total Messages: {s['consoleMessages']}",
        f"   Errors: {s['consoleErrors']}",
        f"   Warnings: {s['consoleWarnings']}",
        "",
        "-" * 70,
        "DETAILED RESULTS:",
        "-" * 70,
    ]
    for index, result in enumerate(report.tool_outcomes, start=1):
        lines.append("")
        lines.append(f"{index}. {_status_icon(result['status'])} {result['tool']} ({result['tab']})")
        lines.append(f"   Status: {result['status']}")
        if result.get("httpStatus"):
            lines.append(f"   HTTP: {result['httpStatus']}")
        if result.get("postsProcessed") is not None:
            lines.append(f"   Posts: {result['postsProcessed']}")
        if result.get("redirectCount") is not None:
            lines.append(f"   Redirects: {result['redirectCount']}")
        if result.get("response"):
            lines.append(f"   Response: {result['response'][:100]}...")
        if result.get("error"):
            lines.append(f"   Error: {result['error']}")
        if result.get("reason"):
            lines.append(f"   Reason: {result['reason']}")
    lines += [
        "",
        "=" * 70,
        f"Run acceptable: {'YES ✅' if s['runAcceptable'] else 'NO ❌'}",
    ]
    if report_path is not None:
        lines.append(f"📝 Full report: {report_path}")
    lines += ["=" * 70, ""]
    return "\n".join(lines)


def print_summary(report: RunReport, report_path: Path | None = None) -> None:
    print(render_summary(report, report_path))
