"""Static catalog of the admin tools under test."""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from ajax_conformance.errors import ConfigurationError
from ajax_conformance.models import Step, StepKind, ToolSpec

SEO_TOOLS = ("seo-tools", "SEO Tools")
BULK = ("bulk-operations", "Bulk Operations")
TECHNICAL = ("technical-seo", "Technical SEO")
AI_CONTENT = ("ai-content", "AI Content")
ADVANCED = ("advanced", "Advanced")

# Tabs visited by element discovery, in admin menu order.
ADMIN_TABS: Tuple[Tuple[str, str], ...] = (
    ("dashboard", "Dashboard"),
    SEO_TOOLS,
    AI_CONTENT,
    BULK,
    TECHNICAL,
    ADVANCED,
    ("monitoring", "Monitoring"),
    ("settings", "Settings"),
)

META_POST_SELECT = "#aiseo-meta-post-select"
VARIATIONS_POST_SELECT = "#aiseo-variations-post-select"


def _select(selector: str) -> Step:
    return Step(StepKind.SELECT, selector, index=1)


def _click(selector: str) -> Step:
    return Step(StepKind.CLICK, selector)


def _tool(name: str, tab: Tuple[str, str], *steps: Step, **options) -> ToolSpec:
    slug, title = tab
    return ToolSpec(name=name, tab_slug=slug, tab_name=title, steps=tuple(steps), **options)


CATALOG: Tuple[ToolSpec, ...] = (
    _tool(
        "Generate Title", SEO_TOOLS,
        _select(META_POST_SELECT),
        _click('button[data-field="title"]'),
        action_id="aiseo_generate_title",
    ),
    _tool(
        "Generate Description", SEO_TOOLS,
        _select(META_POST_SELECT),
        _click('button[data-field="description"]'),
        action_id="aiseo_generate_description",
    ),
    _tool(
        "Bulk Generate Titles", BULK,
        Step(StepKind.CHECK, ".aiseo-bulk-post", count=2, label="posts"),
        _click("#aiseo-bulk-generate-titles"),
        action_id="aiseo_generate_title",
        expected_count=2,
        settle_timeout_ms=8000,
    ),
    _tool(
        "List Redirects", TECHNICAL,
        action_id="aiseo_list_redirects",
        trigger="load",
        settle_timeout_ms=2000,
        count_result=True,
    ),
    _tool(
        "Generate Keyword", SEO_TOOLS,
        _select(META_POST_SELECT),
        _click('button[data-field="keyword"]'),
        action_id="aiseo_generate_keyword",
    ),
    _tool(
        "Analyze Content", SEO_TOOLS,
        _select("#aiseo-analyze-post-select"),
        _click(".aiseo-analyze-content"),
        action_id="aiseo_analyze_content",
    ),
    _tool(
        "Get Linking Suggestions", SEO_TOOLS,
        _select("#aiseo-linking-post-select"),
        _click(".aiseo-get-linking"),
        action_contains=("linking",),
        traffic_optional=True,
        note="May not trigger AJAX if no suggestions found",
    ),
    _tool(
        "Title Variations", SEO_TOOLS,
        _select(VARIATIONS_POST_SELECT),
        _click(".aiseo-get-title-variations"),
        action_contains=("variation", "title"),
        traffic_optional=True,
    ),
    _tool(
        "Description Variations", SEO_TOOLS,
        _select(VARIATIONS_POST_SELECT),
        _click(".aiseo-get-desc-variations"),
        action_contains=("variation", "description"),
        traffic_optional=True,
    ),
    _tool(
        "Generate Post", AI_CONTENT,
        Step(StepKind.FILL, "#aiseo-content-topic", value="Playwright Test Topic"),
        _click("#aiseo-generate-content"),
        action_id="aiseo_create_post",
        settle_timeout_ms=8000,
    ),
    _tool(
        "Add Redirect", TECHNICAL,
        Step(StepKind.FILL, 'input[name="redirect_from"]', value="/test-playwright-{stamp}"),
        Step(StepKind.FILL, 'input[name="redirect_to"]', value="/"),
        _click('button:has-text("Add Redirect")'),
        action_id="aiseo_add_redirect",
        settle_timeout_ms=3000,
    ),
    _tool(
        "Regenerate Sitemap", TECHNICAL,
        _click("#aiseo-regenerate-sitemap"),
        action_id="aiseo_regenerate_sitemap",
        settle_timeout_ms=3000,
        traffic_optional=True,
    ),
    _tool(
        "Save CPT Settings", ADVANCED,
        _click('button:has-text("Save Post Type Settings")'),
        action_id="aiseo_save_cpt_settings",
        settle_timeout_ms=3000,
        traffic_optional=True,
    ),
    _tool(
        "Generate Report", ADVANCED,
        _click("#aiseo-generate-report"),
        action_id="aiseo_generate_report",
        traffic_optional=True,
        note="May show popup instead of AJAX",
    ),
    _tool(
        "Research Keyword", ADVANCED,
        Step(StepKind.FILL, 'input[placeholder*="keyword"]', value="test keyword"),
        _click('button:has-text("Research Keyword")'),
        action_id="aiseo_keyword_research",
        traffic_optional=True,
    ),
)


def tool_names(catalog: Iterable[ToolSpec] = CATALOG) -> List[str]:
    return [spec.name for spec in catalog]


def select_tools(names: Sequence[str] | None, catalog: Sequence[ToolSpec] = CATALOG) -> List[ToolSpec]:
    """Subset of the catalog, in catalog order, by case-insensitive tool name.

    An empty or missing selection returns the whole catalog.
    """
    if not names:
        return list(catalog)
    wanted = {name.strip().lower() for name in names}
    known = {spec.name.lower() for spec in catalog}
    unknown = sorted(wanted - known)
    if unknown:
        raise ConfigurationError(f"Unknown tool(s): {', '.join(unknown)}")
    return [spec for spec in catalog if spec.name.lower() in wanted]
