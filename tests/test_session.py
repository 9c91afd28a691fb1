"""Login flow and preflight reachability."""
import httpx
import pytest

from ajax_conformance.config import HarnessConfig
from ajax_conformance.errors import AuthenticationError
from ajax_conformance.session import (
    LOGIN_PASS_FIELD,
    LOGIN_SUBMIT,
    LOGIN_USER_FIELD,
    authenticate,
    check_reachable,
    session_cookie_names,
)

from tests.conftest import FakeBrowser


def test_session_cookie_names_filters_by_marker():
    cookies = [
        {"name": "wordpress_logged_in_abc"},
        {"name": "wp-settings-1"},
        {"name": "_ga"},
    ]
    assert session_cookie_names(cookies, ("wordpress", "wp-")) == ["wordpress_logged_in_abc", "wp-settings-1"]


def test_pre_login_test_cookie_never_counts():
    cookies = [{"name": "wordpress_test_cookie"}, {"name": "wordpress_sec_abc"}]
    assert session_cookie_names(cookies, ("wordpress",)) == ["wordpress_sec_abc"]


def test_default_markers_ignore_non_session_cookies(config):
    cookies = [{"name": "wordpress_test_cookie"}, {"name": "wp-settings-time-1"}, {"name": "wordpress_logged_in_abc"}]
    assert session_cookie_names(cookies, config.session_cookie_markers) == ["wordpress_logged_in_abc"]


@pytest.mark.asyncio
async def test_authenticate_returns_context_with_cookie_names(context, config):
    browser = FakeBrowser(context, cookies=[{"name": "wordpress_logged_in_abc"}, {"name": "_ga"}])
    session = await authenticate(browser, config)

    assert session.cookie_names == ["wordpress_logged_in_abc"]
    assert session.base_url == config.base_url
    assert browser.visited == [config.login_url]
    assert browser.filled == [(LOGIN_USER_FIELD, "admin"), (LOGIN_PASS_FIELD, "secret")]
    assert browser.clicked == [LOGIN_SUBMIT]


@pytest.mark.asyncio
async def test_authenticate_without_session_cookie_raises(context, config):
    browser = FakeBrowser(context, cookies=[{"name": "_ga"}])
    with pytest.raises(AuthenticationError, match="No session cookie"):
        await authenticate(browser, config)


@pytest.mark.asyncio
async def test_rejected_login_with_only_test_cookie_raises(context, config):
    browser = FakeBrowser(context, cookies=[{"name": "wordpress_test_cookie"}])
    with pytest.raises(AuthenticationError, match="No session cookie"):
        await authenticate(browser, config)


@pytest.mark.asyncio
async def test_authenticate_wraps_interaction_failures(context, config):
    browser = FakeBrowser(context, failing_clicks=(LOGIN_SUBMIT,))
    with pytest.raises(AuthenticationError, match="could not be submitted"):
        await authenticate(browser, config)


@pytest.mark.asyncio
async def test_check_reachable_against_mock_site(mock_admin_server):
    config = HarnessConfig(base_url=mock_admin_server.url, username="admin", password="x")
    assert await check_reachable(config) == 200


@pytest.mark.asyncio
async def test_check_reachable_refused_connection_raises():
    config = HarnessConfig(base_url="http://127.0.0.1:1", username="admin", password="x")
    with pytest.raises(AuthenticationError, match="unreachable"):
        await check_reachable(config, timeout=2.0)


@pytest.mark.asyncio
async def test_mock_login_page_sets_pre_login_cookie(mock_admin_server):
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{mock_admin_server.url}/wp-admin")
    assert response.cookies.get("wordpress_test_cookie") == "WP Cookie check"
