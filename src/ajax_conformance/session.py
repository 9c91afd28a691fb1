"""Session bootstrap: log in once and keep the authenticated context."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import httpx

from ajax_conformance.browser import Browser, ToolError
from ajax_conformance.config import HarnessConfig
from ajax_conformance.errors import AuthenticationError

logger = logging.getLogger(__name__)

LOGIN_USER_FIELD = "#user_login"
LOGIN_PASS_FIELD = "#user_pass"
LOGIN_SUBMIT = "#wp-submit"

# Set by the login page itself, before any credentials are checked.
PRE_LOGIN_COOKIES = ("wordpress_test_cookie",)


@dataclass(frozen=True)
class AuthenticatedContext:
    """Result of a successful login.

    The cookies themselves live in the browser context; only their names are
    kept here for reporting.
    """

    base_url: str
    cookie_names: List[str]
    landing_url: str | None = None


async def check_reachable(config: HarnessConfig, timeout: float = 15.0) -> int:
    """Probe the login surface over plain HTTP before a browser is launched.

    Returns the HTTP status. Connection failures and 5xx answers raise
    ``AuthenticationError`` since no login could succeed against them.
    """
    try:
        async with httpx.AsyncClient(
            verify=not config.ignore_https_errors,
            timeout=timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(config.login_url)
    except httpx.HTTPError as exc:
        raise AuthenticationError(f"Login page unreachable: {config.login_url} ({exc})") from exc

    if response.status_code >= 500:
        raise AuthenticationError(
            f"Login page returned HTTP {response.status_code}: {config.login_url}"
        )
    logger.debug("Preflight %s -> %s", config.login_url, response.status_code)
    return response.status_code


def session_cookie_names(cookies: List[dict], markers: tuple[str, ...]) -> List[str]:
    """Names of cookies that follow the product's session-cookie naming convention."""
    return [
        c["name"]
        for c in cookies
        if c.get("name", "") not in PRE_LOGIN_COOKIES
        and any(marker in c.get("name", "") for marker in markers)
    ]


async def authenticate(browser: Browser, config: HarnessConfig) -> AuthenticatedContext:
    """Log in through the login form and verify a session cookie was issued.

    Raises:
        AuthenticationError: the form could not be driven, or no session cookie
            exists after the network went idle.
    """
    print("\n" + "=" * 40)
    print("🔐 LOGGING IN")
    print("=" * 40)
    print(f"URL: {config.login_url}")
    print(f"Username: {config.username}")
    print("=" * 40 + "\n")

    try:
        await browser.goto(config.login_url)
        await browser.fill(LOGIN_USER_FIELD, config.username)
        await browser.fill(LOGIN_PASS_FIELD, config.password)
        await browser.click(LOGIN_SUBMIT)
        await browser.wait_for_network_idle()
        cookies = await browser.cookies()
    except ToolError as exc:
        raise AuthenticationError(f"Login form could not be submitted: {exc}") from exc

    names = session_cookie_names(cookies, config.session_cookie_markers)
    if not names:
        raise AuthenticationError(
            f"No session cookie after login at {config.login_url} "
            f"(expected a name containing one of {', '.join(config.session_cookie_markers)})"
        )

    print(f"✅ Login successful - {len(names)} session cookies set")
    for name in names:
        print(f"   Cookie: {name}")
    print("")
    logger.info("Authenticated as %s (%d session cookies)", config.username, len(names))
    return AuthenticatedContext(base_url=config.base_url, cookie_names=names, landing_url=browser.current_url)
