"""Run wiring: one ``RunContext`` per harness run, no process-wide state."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ajax_conformance.browser import Browser
from ajax_conformance.catalog import CATALOG
from ajax_conformance.config import HarnessConfig
from ajax_conformance.discovery import TabElements, discover_all, write_discovery
from ajax_conformance.interceptor import NetworkInterceptor
from ajax_conformance.models import RunReport, ToolOutcome, ToolSpec
from ajax_conformance.orchestrator import ActionOrchestrator
from ajax_conformance.playwright_client import PlaywrightClient
from ajax_conformance.report import build_report, print_summary, write_report
from ajax_conformance.session import AuthenticatedContext, authenticate, check_reachable

logger = logging.getLogger(__name__)


def client_for(config: HarnessConfig) -> PlaywrightClient:
    return PlaywrightClient(
        browser_type=config.browser_type,
        headless=config.headless,
        timeout=config.driver_timeout_ms,
        ignore_https_errors=config.ignore_https_errors,
    )


@dataclass
class RunContext:
    """Everything a single run owns: its logs and its outcome sequence."""

    config: HarnessConfig
    interceptor: NetworkInterceptor
    outcomes: List[ToolOutcome] = field(default_factory=list)
    session: Optional[AuthenticatedContext] = None

    @classmethod
    def create(cls, config: HarnessConfig) -> "RunContext":
        return cls(config=config, interceptor=NetworkInterceptor(config))

    def build_report(self) -> RunReport:
        return build_report(
            self.outcomes,
            self.interceptor.requests,
            self.interceptor.responses,
            self.interceptor.console,
            max_skipped=self.config.max_skipped,
        )


async def run_with_client(
    client: Any,
    config: HarnessConfig,
    catalog: Sequence[ToolSpec] = CATALOG,
) -> RunReport:
    """Run the catalog in an already connected client (anything exposing
    ``context`` and ``page``).

    ``AuthenticationError`` propagates; once login succeeded the report is
    always written and printed.
    """
    run = RunContext.create(config)
    logger.info("Running %d tools against %s", len(catalog), config.base_url)
    run.interceptor.attach(client.context)
    browser = Browser(client.page)

    run.session = await authenticate(browser, config)

    orchestrator = ActionOrchestrator(browser, run.interceptor, config, outcomes=run.outcomes)
    try:
        await orchestrator.run_catalog(catalog)
    finally:
        report = run.build_report()
        path = write_report(report, config.report_path)
        print(f"\n📝 Detailed report saved to: {path}")
        print_summary(report, path)
    return report


async def run_harness(config: HarnessConfig, catalog: Sequence[ToolSpec] = CATALOG) -> RunReport:
    """Full run: preflight, launch the browser, log in, run the catalog, report."""
    if config.preflight:
        await check_reachable(config)
    async with client_for(config) as client:
        return await run_with_client(client, config, catalog)


async def run_discovery(config: HarnessConfig) -> Dict[str, TabElements]:
    """Log in and record the interactive elements of every admin tab."""
    if config.preflight:
        await check_reachable(config)
    async with client_for(config) as client:
        browser = Browser(client.page)
        await authenticate(browser, config)
        discovered = await discover_all(browser, config)
    write_discovery(discovered, config.discovery_path)
    return discovered
