"""Action orchestrator: drive one cataloged tool at a time and classify it.

Per tool the state machine is::

    NOT_STARTED -> NAVIGATING -> LOCATING_ELEMENTS -> SKIPPED
                                                   -> INTERACTING -> SETTLING -> CLASSIFYING
                                                      -> PASSED | FAILED | NO_RESPONSE

Each ``run_tool`` call re-navigates and re-locates from scratch, and every
exception is caught at the tool boundary, so one broken tool never stops the
tools after it.
"""
from __future__ import annotations

import json
import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ajax_conformance.browser import Browser
from ajax_conformance.config import HarnessConfig
from ajax_conformance.errors import ElementNotFoundError
from ajax_conformance.interceptor import CorrelationWindow, NetworkInterceptor
from ajax_conformance.models import (
    OutcomeStatus,
    ResponseRecord,
    Step,
    StepKind,
    ToolOutcome,
    ToolSpec,
)

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 500
PREVIEW_LENGTH = 200

_ICONS = {
    OutcomeStatus.PASSED: "PASSED ✅",
    OutcomeStatus.FAILED: "FAILED ❌",
    OutcomeStatus.SKIPPED: "SKIPPED ⚠️",
    OutcomeStatus.NO_RESPONSE: "NO RESPONSE ⚠️",
}


class ToolPhase(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    NAVIGATING = "NAVIGATING"
    LOCATING_ELEMENTS = "LOCATING_ELEMENTS"
    INTERACTING = "INTERACTING"
    SETTLING = "SETTLING"
    CLASSIFYING = "CLASSIFYING"
    DONE = "DONE"


def count_result_items(body: str) -> int:
    """Length of ``data`` in a ``{"success": ..., "data": [...]}`` envelope.

    Anything that is not JSON with a list under ``data`` counts as zero.
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError):
        return 0
    data = payload.get("data") if isinstance(payload, dict) else None
    return len(data) if isinstance(data, list) else 0


class ActionOrchestrator:
    """Runs ``ToolSpec`` entries against the authenticated page.

    The orchestrator is the only writer of its outcome list; one entry is
    appended per ``run_tool`` call and never revisited.
    """

    def __init__(
        self,
        browser: Browser,
        interceptor: NetworkInterceptor,
        config: HarnessConfig,
        outcomes: Optional[List[ToolOutcome]] = None,
    ) -> None:
        self.browser = browser
        self.interceptor = interceptor
        self.config = config
        self.outcomes: List[ToolOutcome] = outcomes if outcomes is not None else []
        self.phase = ToolPhase.NOT_STARTED

    def _enter(self, spec: ToolSpec, phase: ToolPhase) -> None:
        self.phase = phase
        logger.debug("%s: %s", spec.name, phase.value)

    async def run_catalog(self, specs: Sequence[ToolSpec]) -> List[ToolOutcome]:
        """Run every spec in order; returns this call's outcomes."""
        produced = []
        for number, spec in enumerate(specs, start=1):
            produced.append(await self.run_tool(spec, number))
        return produced

    async def run_tool(self, spec: ToolSpec, number: int | None = None) -> ToolOutcome:
        """Drive one tool end to end and record exactly one outcome for it."""
        label = f"TOOL {number}: " if number is not None else "TOOL: "
        print("\n" + "=" * 40)
        print(f"🔧 {label}{spec.tab_name.upper()} - {spec.name.upper()}")
        print("=" * 40 + "\n")

        self.phase = ToolPhase.NOT_STARTED
        try:
            outcome = await self._drive(spec)
        except Exception as exc:
            logger.warning("%s failed during %s: %s", spec.name, self.phase.value, exc)
            outcome = self._outcome(spec, OutcomeStatus.FAILED, error=str(exc))
        finally:
            self.browser.reset_dialog_policy()

        self._enter(spec, ToolPhase.DONE)
        self.outcomes.append(outcome)
        self._print_outcome(outcome)
        logger.info("%s -> %s", spec.name, outcome.status.value)
        return outcome

    async def _drive(self, spec: ToolSpec) -> ToolOutcome:
        window: Optional[CorrelationWindow] = None

        self._enter(spec, ToolPhase.NAVIGATING)
        if spec.trigger == "load":
            window = self.interceptor.open_window()
        await self.browser.goto(self.config.tab_url(spec.tab_slug))

        self._enter(spec, ToolPhase.LOCATING_ELEMENTS)
        try:
            await self._locate(spec.steps)
        except ElementNotFoundError as exc:
            print(f"⚠️  {exc.reason}")
            return self._outcome(spec, OutcomeStatus.SKIPPED, reason=exc.reason)

        self._enter(spec, ToolPhase.INTERACTING)
        clicked_window = await self._interact(spec.steps)
        window = window or clicked_window

        self._enter(spec, ToolPhase.SETTLING)
        await self.interceptor.wait_for_responses(
            spec.matches, spec.expected_count, spec.settle_timeout_s, window
        )

        self._enter(spec, ToolPhase.CLASSIFYING)
        return self.classify(spec, window)

    async def _locate(self, steps: Sequence[Step]) -> None:
        """Check every element the steps need before touching any of them."""
        for step in steps:
            found = await self.browser.count(step.selector)
            if found < step.count:
                raise ElementNotFoundError(step.selector, step.missing_reason(found))
            if step.kind is StepKind.SELECT:
                options = await self.browser.count(f"{step.selector} option")
                if options <= step.index:
                    raise ElementNotFoundError(
                        step.selector, f"Not enough options in {step.selector} (found: {options})"
                    )

    async def _interact(self, steps: Sequence[Step]) -> Optional[CorrelationWindow]:
        """Perform the steps; returns the window opened before the trigger click."""
        trigger_index = max(
            (i for i, step in enumerate(steps) if step.kind is StepKind.CLICK), default=None
        )
        window = None
        for i, step in enumerate(steps):
            if step.kind is StepKind.SELECT:
                await self.browser.select_index(step.selector, step.index)
                print(f"✅ Option {step.index} selected in {step.selector}")
            elif step.kind is StepKind.FILL:
                value = (step.value or "").replace("{stamp}", str(int(time.time() * 1000)))
                await self.browser.fill(step.selector, value)
                print(f"✅ Entered '{value}' into {step.selector}")
            elif step.kind is StepKind.CHECK:
                await self.browser.check_first(step.selector, step.count)
                print(f"✅ {step.count} × {step.selector} checked")
            elif step.kind is StepKind.CLICK:
                if i == trigger_index:
                    window = self.interceptor.open_window()
                    self.browser.accept_next_dialog()
                await self.browser.click(step.selector)
                print(f"✅ {step.selector} clicked")
        return window

    def classify(self, spec: ToolSpec, window: Optional[CorrelationWindow]) -> ToolOutcome:
        """Turn the responses observed inside ``window`` into an outcome."""
        matches = self.interceptor.last_responses(spec.matches, spec.expected_count, window)
        if not matches:
            return self._no_traffic(spec)
        if spec.expected_count > 1:
            return self._classify_bulk(spec, matches)

        response = matches[-1]
        status = OutcomeStatus.PASSED if response.http_status == 200 else OutcomeStatus.FAILED
        return self._outcome(
            spec,
            status,
            http_status=response.http_status,
            response_excerpt=response.body[:EXCERPT_LENGTH],
            redirect_count=count_result_items(response.body) if spec.count_result else None,
        )

    def _classify_bulk(self, spec: ToolSpec, matches: List[ResponseRecord]) -> ToolOutcome:
        failing = [r for r in matches if r.http_status != 200]
        previews: List[Dict[str, Any]] = [
            {"status": r.http_status, "preview": r.body[:PREVIEW_LENGTH]} for r in matches
        ]
        reason = None
        if len(matches) < spec.expected_count:
            reason = f"Only {len(matches)} of {spec.expected_count} responses observed"
        status = OutcomeStatus.PASSED if not failing and reason is None else OutcomeStatus.FAILED
        return self._outcome(
            spec,
            status,
            http_status=failing[-1].http_status if failing else 200,
            posts_processed=len(matches),
            responses=previews,
            reason=reason,
        )

    def _no_traffic(self, spec: ToolSpec) -> ToolOutcome:
        if spec.traffic_optional:
            return self._outcome(
                spec, OutcomeStatus.NO_RESPONSE, reason="No matching response within settle window"
            )
        if spec.trigger == "load":
            return self._outcome(spec, OutcomeStatus.SKIPPED, reason="No AJAX response captured")
        return self._outcome(
            spec, OutcomeStatus.FAILED, reason="No matching response within settle window"
        )

    def _outcome(self, spec: ToolSpec, status: OutcomeStatus, **fields: Any) -> ToolOutcome:
        return ToolOutcome(tool=spec.name, tab=spec.tab_name, status=status, note=spec.note, **fields)

    @staticmethod
    def _print_outcome(outcome: ToolOutcome) -> None:
        print(f"📊 Result: {_ICONS[outcome.status]}")
        print(f"HTTP Status: {outcome.http_status or 'N/A'}")
        if outcome.posts_processed is not None:
            print(f"Posts Processed: {outcome.posts_processed}")
        if outcome.redirect_count is not None:
            print(f"Redirects Found: {outcome.redirect_count}")
        if outcome.reason:
            print(f"Reason: {outcome.reason}")
        if outcome.error:
            print(f"❌ Error: {outcome.error}")
