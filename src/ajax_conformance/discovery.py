#!/usr/bin/env python3
"""
Element Discovery

Walks the admin tabs in an authenticated session and records the interactive
elements each one renders (buttons, inputs, selects, textareas, forms) with a
suggested selector. Useful when catalog selectors drift after a UI change.

Elements that go stale while being inspected are skipped.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ajax_conformance.browser import Browser
from ajax_conformance.catalog import ADMIN_TABS
from ajax_conformance.config import HarnessConfig

logger = logging.getLogger(__name__)

BUTTON_SELECTOR = 'button, input[type="button"], input[type="submit"]'
INPUT_SELECTOR = 'input[type="text"], input[type="email"], input[type="url"], input[type="number"]'


@dataclass
class ElementInfo:
    """One discovered element."""
    tag: str
    id: Optional[str] = None
    name: Optional[str] = None
    css_class: Optional[str] = None
    text: Optional[str] = None
    placeholder: Optional[str] = None
    data_field: Optional[str] = None
    type: Optional[str] = None
    action: Optional[str] = None
    method: Optional[str] = None
    option_count: Optional[int] = None
    selector: Optional[str] = None


@dataclass
class TabElements:
    """Elements found on one admin tab."""
    buttons: List[ElementInfo] = field(default_factory=list)
    inputs: List[ElementInfo] = field(default_factory=list)
    selects: List[ElementInfo] = field(default_factory=list)
    textareas: List[ElementInfo] = field(default_factory=list)
    forms: List[ElementInfo] = field(default_factory=list)

    def counts(self) -> Dict[str, int]:
        return {kind: len(items) for kind, items in asdict(self).items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            kind: [{k: v for k, v in asdict(item).items() if v is not None} for item in items]
            for kind, items in (
                ("buttons", self.buttons),
                ("inputs", self.inputs),
                ("selects", self.selects),
                ("textareas", self.textareas),
                ("forms", self.forms),
            )
        }


def suggest_selector(tag: str, element_id: str | None, name: str | None, css_class: str | None) -> str | None:
    """``#id`` first, then ``tag[name=...]``, then the first class for buttons."""
    if element_id:
        return f"#{element_id}"
    if name and tag != "button":
        return f'{tag}[name="{name}"]'
    if css_class and tag == "button":
        return f".{css_class.split()[0]}"
    return None


async def _attrs(handle: Any, *names: str) -> Dict[str, Optional[str]]:
    return {name: await handle.get_attribute(name) for name in names}


async def _describe(kind: str, handle: Any) -> ElementInfo:
    if kind == "buttons":
        attrs = await _attrs(handle, "id", "class", "data-field", "type")
        text = (await handle.inner_text() or "").strip()
        return ElementInfo(
            tag="button",
            id=attrs["id"],
            css_class=attrs["class"],
            text=text or None,
            data_field=attrs["data-field"],
            type=attrs["type"],
            selector=suggest_selector("button", attrs["id"], None, attrs["class"]),
        )
    if kind in ("inputs", "textareas"):
        tag = "input" if kind == "inputs" else "textarea"
        attrs = await _attrs(handle, "id", "name", "placeholder", "class")
        return ElementInfo(
            tag=tag,
            id=attrs["id"],
            name=attrs["name"],
            placeholder=attrs["placeholder"],
            css_class=attrs["class"],
            selector=suggest_selector(tag, attrs["id"], attrs["name"], None),
        )
    if kind == "selects":
        attrs = await _attrs(handle, "id", "name", "class")
        options = await handle.query_selector_all("option")
        return ElementInfo(
            tag="select",
            id=attrs["id"],
            name=attrs["name"],
            css_class=attrs["class"],
            option_count=len(options),
            selector=suggest_selector("select", attrs["id"], attrs["name"], None),
        )
    attrs = await _attrs(handle, "id", "action", "method", "class")
    return ElementInfo(
        tag="form",
        id=attrs["id"],
        action=attrs["action"],
        method=attrs["method"],
        css_class=attrs["class"],
        selector=f"#{attrs['id']}" if attrs["id"] else None,
    )


_KIND_SELECTORS = (
    ("buttons", BUTTON_SELECTOR),
    ("inputs", INPUT_SELECTOR),
    ("selects", "select"),
    ("textareas", "textarea"),
    ("forms", "form"),
)


async def discover_tab(browser: Browser, url: str) -> TabElements:
    """Navigate to ``url`` and collect its interactive elements."""
    await browser.goto(url)
    elements = TabElements()
    for kind, selector in _KIND_SELECTORS:
        bucket: List[ElementInfo] = getattr(elements, kind)
        for handle in await browser.query_selector_all(selector):
            try:
                bucket.append(await _describe(kind, handle))
            except Exception as exc:
                logger.debug("Skipping stale %s element: %s", kind, exc)
    return elements


def _print_tab(name: str, elements: TabElements) -> None:
    print(f"\n{'=' * 70}")
    print(f"🔍 DISCOVERED: {name}")
    print("=" * 70)
    for kind, count in elements.counts().items():
        print(f"   {kind.capitalize()}: {count}")
    buttons = [b for b in elements.buttons if b.text][:5]
    if buttons:
        print("\n   Key Buttons:")
        for button in buttons:
            print(f'     - "{button.text}" {button.selector or ""}')
    if elements.selects:
        print("\n   Key Selects:")
        for select in elements.selects:
            print(f"     - {select.selector or select.name} ({select.option_count} options)")


async def discover_all(
    browser: Browser,
    config: HarnessConfig,
    tabs: Sequence[Tuple[str, str]] = ADMIN_TABS,
) -> Dict[str, TabElements]:
    """Discover every tab in order; keyed by tab display name."""
    discovered: Dict[str, TabElements] = {}
    for slug, name in tabs:
        elements = await discover_tab(browser, config.tab_url(slug))
        discovered[name] = elements
        _print_tab(name, elements)
    return discovered


def write_discovery(discovered: Dict[str, TabElements], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {name: elements.to_dict() for name, elements in discovered.items()}
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    print(f"\n📝 Discovery report saved to: {path}")
    return path
