"""Full harness run in a real browser against the mock admin site.

Skipped when no Playwright browser is installed.
"""
from dataclasses import replace

import pytest
import pytest_asyncio

from ajax_conformance.browser import Browser
from ajax_conformance.catalog import CATALOG, select_tools
from ajax_conformance.config import HarnessConfig
from ajax_conformance.discovery import discover_all
from ajax_conformance.errors import AuthenticationError
from ajax_conformance.playwright_client import PlaywrightClient
from ajax_conformance.report import load_report
from ajax_conformance.runner import run_with_client
from ajax_conformance.session import authenticate

from tests import mock_admin_app

pytestmark = pytest.mark.e2e


@pytest_asyncio.fixture()
async def playwright_client():
    client = PlaywrightClient(headless=True, timeout=10000)
    try:
        await client.connect()
    except Exception as exc:
        await client.close()
        pytest.skip(f"Playwright browser unavailable: {exc}")
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture
def site_config(mock_admin_server, tmp_path):
    return HarnessConfig(
        base_url=mock_admin_server.url,
        username=mock_admin_app.MOCK_USERNAME,
        password=mock_admin_app.MOCK_PASSWORD,
        report_path=tmp_path / "report.json",
        preflight=False,
    )


def _fast(specs):
    return [replace(spec, settle_timeout_ms=min(spec.settle_timeout_ms, 3000)) for spec in specs]


@pytest.mark.asyncio
async def test_full_catalog_against_mock_admin(playwright_client, site_config):
    report = await run_with_client(playwright_client, site_config, _fast(CATALOG))

    results = {o["tool"]: o for o in report.tool_outcomes}
    assert len(results) == len(CATALOG)

    assert results["Generate Title"]["status"] == "PASSED"
    assert results["Generate Keyword"]["status"] == "PASSED"
    assert results["Generate Description"]["status"] == "FAILED"
    assert results["Generate Description"]["httpStatus"] == 500
    assert results["Analyze Content"]["status"] == "SKIPPED"
    assert results["Get Linking Suggestions"]["status"] == "NO_RESPONSE"
    assert results["Bulk Generate Titles"]["status"] == "PASSED"
    assert results["Bulk Generate Titles"]["postsProcessed"] == 2
    assert results["List Redirects"]["status"] == "PASSED"
    assert results["List Redirects"]["redirectCount"] == len(mock_admin_app.REDIRECTS)
    assert results["Add Redirect"]["status"] == "PASSED"
    assert results["Generate Report"]["status"] == "PASSED"

    assert report.acceptable is False
    data = load_report(site_config.report_path)
    assert data["summary"]["failed"] == 1
    assert data["summary"]["httpStatus"]["500"] == 1
    assert any(r["action"] == "aiseo_generate_title" for r in data["requestLog"])
    assert any("AISEO" in m["text"] for m in data["consoleLog"])

    titles = [c for c in mock_admin_app.AJAX_CALLS if c["action"] == "aiseo_generate_title"]
    assert titles[0]["form"]["post_id"] == "1"
    redirects = [c for c in mock_admin_app.AJAX_CALLS if c["action"] == "aiseo_add_redirect"]
    assert len(redirects) == 1


@pytest.mark.asyncio
async def test_single_tool_run_is_acceptable(playwright_client, site_config):
    report = await run_with_client(playwright_client, site_config, select_tools(["Generate Title"]))
    assert report.summary["passed"] == 1
    assert report.acceptable is True


@pytest.mark.asyncio
async def test_wrong_password_is_an_authentication_error(playwright_client, site_config):
    site_config.password = "wrong"
    with pytest.raises(AuthenticationError):
        await run_with_client(playwright_client, site_config, select_tools(["Generate Title"]))
    assert not site_config.report_path.exists()


@pytest.mark.asyncio
async def test_discovery_finds_tool_controls(playwright_client, site_config):
    browser = Browser(playwright_client.page)
    await authenticate(browser, site_config)
    discovered = await discover_all(browser, site_config, tabs=[("seo-tools", "SEO Tools"), ("technical-seo", "Technical SEO")])

    seo = discovered["SEO Tools"]
    assert "#aiseo-meta-post-select" in [s.selector for s in seo.selects]
    assert any(b.data_field == "title" for b in seo.buttons)
    technical = discovered["Technical SEO"]
    assert 'input[name="redirect_from"]' in [i.selector for i in technical.inputs]
