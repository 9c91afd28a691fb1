"""Thin wrapper around direct Playwright for the harness' UI directives."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from playwright.async_api import Page, TimeoutError as PlaywrightTimeout

from ajax_conformance.errors import UnexpectedInteractionError

logger = logging.getLogger(__name__)


@dataclass
class ToolError(UnexpectedInteractionError):
    """Raised when a browser operation fails."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


class Browser:
    """Convenience wrapper over direct Playwright with ergonomic API."""

    def __init__(self, page: Page) -> None:
        self._page = page
        self.current_url: str | None = None
        self._accept_next_dialog = False
        self._dialog_handler_installed = False

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int | None = None) -> Dict[str, Any]:
        """Navigate to URL and return response with status.

        Note: "networkidle" can time out on pages with long-polling connections;
        the navigation is retried with "domcontentloaded" before giving up.
        """
        options: Dict[str, Any] = {"wait_until": wait_until}
        if timeout is not None:
            options["timeout"] = timeout
        try:
            response = await self._page.goto(url, **options)
        except PlaywrightTimeout as exc:
            if wait_until != "networkidle":
                raise ToolError(name="goto", payload={"url": url, "wait_until": wait_until}, message=str(exc))
            logger.warning("networkidle timed out for %s, retrying with domcontentloaded", url)
            try:
                response = await self._page.goto(url, **{**options, "wait_until": "domcontentloaded"})
            except Exception as retry_exc:
                raise ToolError(
                    name="goto",
                    payload={"url": url, "wait_until": "domcontentloaded"},
                    message=str(retry_exc),
                ) from retry_exc
        except Exception as exc:
            raise ToolError(name="goto", payload={"url": url}, message=str(exc))
        self.current_url = self._page.url
        return {"url": self.current_url, "status": response.status if response else None}

    async def wait_for_network_idle(self, timeout: int | None = None) -> None:
        """Block until no requests have been in flight for the idle window."""
        try:
            if timeout is None:
                await self._page.wait_for_load_state("networkidle")
            else:
                await self._page.wait_for_load_state("networkidle", timeout=timeout)
        except Exception as exc:
            raise ToolError(name="wait_for_network_idle", payload={}, message=str(exc))
        self.current_url = self._page.url

    async def fill(self, selector: str, value: str) -> Dict[str, Any]:
        """Fill input field."""
        try:
            await self._page.fill(selector, value)
            return {"selector": selector, "value": value}
        except Exception as exc:
            raise ToolError(name="fill", payload={"selector": selector, "value": value}, message=str(exc))

    async def click(self, selector: str) -> Dict[str, Any]:
        """Click element."""
        try:
            await self._page.click(selector)
            self.current_url = self._page.url
            return {"selector": selector, "url": self.current_url}
        except Exception as exc:
            raise ToolError(name="click", payload={"selector": selector}, message=str(exc))

    async def select_index(self, selector: str, index: int) -> Dict[str, Any]:
        """Select the option at ``index`` in a select element."""
        try:
            await self._page.select_option(selector, index=index)
            return {"selector": selector, "index": index}
        except Exception as exc:
            raise ToolError(name="select", payload={"selector": selector, "index": index}, message=str(exc))

    async def check_first(self, selector: str, count: int) -> Dict[str, Any]:
        """Tick the first ``count`` checkboxes matching selector."""
        try:
            handles = await self._page.query_selector_all(selector)
            for handle in handles[:count]:
                await handle.check()
            return {"selector": selector, "checked": min(count, len(handles))}
        except Exception as exc:
            raise ToolError(name="check", payload={"selector": selector, "count": count}, message=str(exc))

    async def count(self, selector: str) -> int:
        """Number of elements currently matching selector."""
        try:
            return len(await self._page.query_selector_all(selector))
        except Exception as exc:
            raise ToolError(name="count", payload={"selector": selector}, message=str(exc))

    async def query_selector_all(self, selector: str) -> List[Any]:
        """Get all element handles matching selector (exposes Playwright ElementHandle API)."""
        try:
            return await self._page.query_selector_all(selector)
        except Exception as exc:
            raise ToolError(name="query_selector_all", payload={"selector": selector}, message=str(exc))

    def accept_next_dialog(self) -> None:
        """Accept the next native dialog (alert/confirm/prompt) instead of dismissing it."""
        self._accept_next_dialog = True
        if not self._dialog_handler_installed:
            self._page.on("dialog", self._handle_dialog)
            self._dialog_handler_installed = True

    def reset_dialog_policy(self) -> None:
        self._accept_next_dialog = False

    async def _handle_dialog(self, dialog) -> None:
        print(f"🔔 Popup detected: {dialog.message}")
        if self._accept_next_dialog:
            self._accept_next_dialog = False
            await dialog.accept()
        else:
            await dialog.dismiss()

    async def cookies(self) -> List[Dict[str, Any]]:
        """Cookies of the shared context."""
        try:
            return await self._page.context.cookies()
        except Exception as exc:
            raise ToolError(name="cookies", payload={}, message=str(exc))
