"""Network interceptor and correlator.

Listens passively on the shared browser context, keeps append-only logs of
in-scope asynchronous requests and their responses, and answers correlation
queries from the orchestrator.

Listener callbacks are delivered by Playwright's event loop, interleaved with
the orchestrator's own awaits but never concurrently with each other. The logs
therefore have a single writer (the listeners) and need no lock. Moving the
harness to threads would require a guarded append log instead.

Correlation is done after the fact: the orchestrator opens a
``CorrelationWindow`` right before it triggers an action and afterwards asks
for the most recent (or last N) responses inside that window whose action id
satisfies the tool's predicate.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
from urllib.parse import parse_qs

import anyio

from ajax_conformance.config import HarnessConfig
from ajax_conformance.errors import UNREADABLE_BODY
from ajax_conformance.models import ActionRecord, ConsoleRecord, ResponseRecord

logger = logging.getLogger(__name__)

ActionPredicate = Callable[[str], bool]

UNKNOWN_ACTION = "unknown"
_ACTION_RE = re.compile(r"action=([^&]+)")


def extract_action_id(payload: str) -> str:
    """Return the ``action`` field of a form-encoded payload.

    Falls back to a plain ``action=<value>`` scan for bodies that are not
    strictly form-encoded, and to ``"unknown"`` when there is none.
    """
    try:
        values = parse_qs(payload, keep_blank_values=True).get("action")
    except ValueError:
        values = None
    if values and values[0]:
        return values[0]
    match = _ACTION_RE.search(payload)
    return match.group(1) if match else UNKNOWN_ACTION


@dataclass(frozen=True)
class CorrelationWindow:
    """Log positions at the moment a tool was about to trigger its action."""

    request_mark: int
    response_mark: int


class NetworkInterceptor:
    """Owns the request, response and console logs for one run."""

    def __init__(self, config: HarnessConfig) -> None:
        self._endpoint = config.async_endpoint
        self._prefix = config.action_prefix
        self._console_keywords = tuple(config.console_keywords)
        self._requests: List[ActionRecord] = []
        self._responses: List[ResponseRecord] = []
        self._console: List[ConsoleRecord] = []
        self._appended: Optional[anyio.Event] = None
        self._attached = False

    # ---- wiring ---------------------------------------------------------------
    def attach(self, context: Any) -> "NetworkInterceptor":
        """Register the passive listeners on a browser context.

        Must happen before the first navigation so nothing is missed.
        """
        if self._attached:
            raise RuntimeError("Interceptor is already attached")
        context.on("request", self._on_request)
        context.on("response", self._on_response)
        context.on("console", self._on_console)
        self._attached = True
        logger.debug("Interceptor attached (endpoint=%s, prefix=%s)", self._endpoint, self._prefix)
        return self

    def in_scope(self, url: str, payload: Optional[str]) -> bool:
        return self._endpoint in url and bool(payload) and self._prefix in payload

    # ---- listeners ------------------------------------------------------------
    def _on_request(self, request: Any) -> None:
        payload = request.post_data
        if not self.in_scope(request.url, payload):
            return
        record = ActionRecord(
            action_id=extract_action_id(payload),
            url=request.url,
            method=request.method,
            raw_payload=payload,
        )
        self._requests.append(record)
        logger.debug("AJAX request %s: %s", record.action_id, payload[:100])

    async def _on_response(self, response: Any) -> None:
        request = response.request
        payload = request.post_data
        if not self.in_scope(response.url, payload):
            return
        status = response.status
        try:
            body = await response.text()
        except Exception as exc:
            logger.debug("Response body unreadable for %s: %s", response.url, exc)
            body = UNREADABLE_BODY

        record = ResponseRecord(
            action_id=extract_action_id(payload),
            http_status=status,
            body=body,
            raw_payload=payload,
        )
        self._responses.append(record)
        logger.debug("AJAX response %s: status=%s body=%s", record.action_id, status, body[:200])
        if status in (403, 500):
            logger.error("%s response for AJAX action %s", status, record.action_id)
        self._notify()

    def _on_console(self, message: Any) -> None:
        record = ConsoleRecord(type=message.type, text=message.text)
        self._console.append(record)
        if any(keyword in record.text for keyword in self._console_keywords):
            print(f"[CONSOLE {record.type}] {record.text}")

    def _notify(self) -> None:
        if self._appended is not None:
            self._appended.set()
            self._appended = None

    # ---- read side ------------------------------------------------------------
    @property
    def requests(self) -> List[ActionRecord]:
        return list(self._requests)

    @property
    def responses(self) -> List[ResponseRecord]:
        return list(self._responses)

    @property
    def console(self) -> List[ConsoleRecord]:
        return list(self._console)

    def open_window(self) -> CorrelationWindow:
        return CorrelationWindow(request_mark=len(self._requests), response_mark=len(self._responses))

    def _responses_in(self, window: Optional[CorrelationWindow]) -> List[ResponseRecord]:
        start = window.response_mark if window else 0
        return self._responses[start:]

    def requests_matching(
        self, predicate: ActionPredicate, window: Optional[CorrelationWindow] = None
    ) -> List[ActionRecord]:
        start = window.request_mark if window else 0
        return [r for r in self._requests[start:] if predicate(r.action_id)]

    def responses_matching(
        self, predicate: ActionPredicate, window: Optional[CorrelationWindow] = None
    ) -> List[ResponseRecord]:
        matches = [r for r in self._responses_in(window) if predicate(r.action_id)]
        distinct = {r.action_id for r in matches}
        if len(distinct) > 1:
            # Tail matching still decides; overlapping identifiers are only reported.
            logger.warning(
                "Predicate matched several action ids in one window: %s", ", ".join(sorted(distinct))
            )
        return matches

    def latest_response(
        self, predicate: ActionPredicate, window: Optional[CorrelationWindow] = None
    ) -> Optional[ResponseRecord]:
        """Most recently appended response whose action id satisfies predicate."""
        matches = self.responses_matching(predicate, window)
        return matches[-1] if matches else None

    def last_responses(
        self, predicate: ActionPredicate, count: int, window: Optional[CorrelationWindow] = None
    ) -> List[ResponseRecord]:
        """The last ``count`` matching responses, oldest first."""
        if count <= 0:
            return []
        return self.responses_matching(predicate, window)[-count:]

    async def wait_for_responses(
        self,
        predicate: ActionPredicate,
        count: int = 1,
        timeout_s: float = 6.0,
        window: Optional[CorrelationWindow] = None,
    ) -> List[ResponseRecord]:
        """Resolve once ``count`` matching responses arrived, or at the timeout.

        Returns the last ``count`` matching responses seen inside the window,
        which may be fewer than asked for when the timeout won.
        """
        with anyio.move_on_after(timeout_s):
            while self._count_matching(predicate, window) < count:
                if self._appended is None:
                    self._appended = anyio.Event()
                await self._appended.wait()
        return self.last_responses(predicate, count, window)

    def _count_matching(self, predicate: ActionPredicate, window: Optional[CorrelationWindow]) -> int:
        return sum(1 for r in self._responses_in(window) if predicate(r.action_id))
