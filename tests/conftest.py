import inspect
import threading
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from ajax_conformance.browser import ToolError
from ajax_conformance.config import HarnessConfig
from ajax_conformance.interceptor import NetworkInterceptor

AJAX_URL = "https://site.test/wp-admin/admin-ajax.php"


# ============================================================================
# Playwright stand-ins
# ============================================================================

class FakeRequest:
    def __init__(self, url: str, post_data: Optional[str], method: str = "POST"):
        self.url = url
        self.post_data = post_data
        self.method = method


class FakeResponse:
    def __init__(self, request: FakeRequest, status: int, body: str = "", readable: bool = True):
        self.request = request
        self.url = request.url
        self.status = status
        self._body = body
        self._readable = readable

    async def text(self) -> str:
        if not self._readable:
            raise RuntimeError("Response body is unavailable for redirect responses")
        return self._body


class FakeConsoleMessage:
    def __init__(self, type: str, text: str):
        self.type = type
        self.text = text


class FakeContext:
    """Records ``on`` registrations and replays events like Playwright does."""

    def __init__(self):
        self.handlers = defaultdict(list)

    def on(self, event: str, handler) -> None:
        self.handlers[event].append(handler)

    async def emit(self, event: str, payload: Any) -> None:
        for handler in self.handlers[event]:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result

    async def ajax(self, action: str, status: int = 200, body: str = '{"success":true}', url: str = AJAX_URL) -> None:
        """Emit one request/response pair for ``action``."""
        request = FakeRequest(url, f"action={action}&nonce=abc123")
        await self.emit("request", request)
        await self.emit("response", FakeResponse(request, status, body))


Exchange = Tuple[str, int, str]  # action, status, body


class FakeBrowser:
    """Scripted stand-in for ``ajax_conformance.browser.Browser``.

    ``elements`` maps selector -> match count. Clicking a selector listed in
    ``on_click`` (or navigating to a URL containing a key of ``on_goto``)
    emits the scripted exchanges through ``context``.
    """

    def __init__(
        self,
        context: FakeContext,
        elements: Optional[Dict[str, int]] = None,
        on_click: Optional[Dict[str, List[Exchange]]] = None,
        on_goto: Optional[Dict[str, List[Exchange]]] = None,
        failing_clicks: Tuple[str, ...] = (),
        cookies: Optional[List[Dict[str, Any]]] = None,
    ):
        self.context = context
        self.elements = elements or {}
        self.on_click = on_click or {}
        self.on_goto = on_goto or {}
        self.failing_clicks = failing_clicks
        self._cookies = cookies or []
        self.current_url: Optional[str] = None
        self.visited: List[str] = []
        self.clicked: List[str] = []
        self.filled: List[Tuple[str, str]] = []
        self.selected: List[Tuple[str, int]] = []
        self.checked: List[Tuple[str, int]] = []
        self.dialog_armed = False
        self.dialog_resets = 0

    async def _replay(self, exchanges: List[Exchange]) -> None:
        for action, status, body in exchanges:
            await self.context.ajax(action, status, body)

    async def goto(self, url: str, wait_until: str = "networkidle", timeout=None):
        self.visited.append(url)
        self.current_url = url
        for fragment, exchanges in self.on_goto.items():
            if fragment in url:
                await self._replay(exchanges)
        return {"url": url, "status": 200}

    async def wait_for_network_idle(self, timeout=None) -> None:
        return None

    async def count(self, selector: str) -> int:
        return self.elements.get(selector, 0)

    async def select_index(self, selector: str, index: int):
        self.selected.append((selector, index))

    async def fill(self, selector: str, value: str):
        self.filled.append((selector, value))

    async def check_first(self, selector: str, count: int):
        self.checked.append((selector, count))

    async def click(self, selector: str):
        if selector in self.failing_clicks:
            raise ToolError(name="click", payload={"selector": selector}, message="element is detached")
        self.clicked.append(selector)
        await self._replay(self.on_click.get(selector, []))

    def accept_next_dialog(self) -> None:
        self.dialog_armed = True

    def reset_dialog_policy(self) -> None:
        self.dialog_resets += 1

    async def cookies(self) -> List[Dict[str, Any]]:
        return list(self._cookies)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def config(tmp_path) -> HarnessConfig:
    return HarnessConfig(
        base_url="https://site.test",
        username="admin",
        password="secret",
        report_path=tmp_path / "report.json",
        discovery_path=tmp_path / "discovered.json",
        preflight=False,
    )


@pytest.fixture
def context() -> FakeContext:
    return FakeContext()


@pytest.fixture
def interceptor(config, context) -> NetworkInterceptor:
    return NetworkInterceptor(config).attach(context)


@pytest.fixture(scope="function")
def mock_admin_server():
    """Fixture that provides a running mock admin site."""
    from werkzeug.serving import make_server

    from tests.mock_admin_app import create_mock_admin_app, reset_mock_state

    class MockServer:
        def __init__(self, host="127.0.0.1", port=0):
            self.host = host
            self.app = create_mock_admin_app()
            self.server = make_server(host, port, self.app, threaded=True)
            self.port = self.server.server_port
            self.thread = None

        def start(self):
            self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
            self.thread.start()
            time.sleep(0.2)

        def stop(self):
            self.server.shutdown()
            if self.thread:
                self.thread.join(timeout=5)

        @property
        def url(self):
            return f"http://{self.host}:{self.port}"

    reset_mock_state()
    server = MockServer()
    server.start()

    yield server

    server.stop()
    reset_mock_state()
