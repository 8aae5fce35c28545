"""axe-core accessibility scans.

Scans inject axe-core into the page and report violations. They log and
return results; deciding whether a violation fails a test is up to the test.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from playwright.async_api import Page

from ibank_uat.config import DEFAULT_AXE_SCRIPT_URL

logger = logging.getLogger(__name__)

WCAG_LEVELS = ("wcag2a", "wcag2aa", "wcag21aa", "best-practice")
IMPACT_ORDER = ("critical", "serious", "moderate", "minor", "unknown")

_RUN_AXE = """
async ({ tags, rules }) => {
    let options = {};
    if (rules && rules.length) {
        options = { runOnly: { type: 'rule', values: rules } };
    } else if (tags && tags.length) {
        options = { runOnly: { type: 'tag', values: tags } };
    }
    const results = await window.axe.run(document, options);
    return { violations: results.violations, passes: results.passes.length, url: results.url };
}
"""


@dataclass(frozen=True)
class AxeViolation:
    id: str
    impact: str
    help: str
    help_url: str
    targets: List[str] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.targets)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AxeViolation":
        targets: List[str] = []
        for node in data.get("nodes", []):
            for target in node.get("target", []):
                # iframe/shadow targets come back as nested lists
                targets.append(" ".join(target) if isinstance(target, list) else str(target))
        return cls(
            id=data.get("id", ""),
            impact=data.get("impact") or "unknown",
            help=data.get("help", ""),
            help_url=data.get("helpUrl", ""),
            targets=targets,
        )


@dataclass
class AxeResults:
    page_name: str
    url: str = ""
    tags: Sequence[str] = ()
    violations: List[AxeViolation] = field(default_factory=list)
    passes: int = 0

    @classmethod
    def from_dict(cls, page_name: str, data: Dict[str, Any], tags: Sequence[str] = ()) -> "AxeResults":
        return cls(
            page_name=page_name,
            url=data.get("url", ""),
            tags=tuple(tags),
            violations=[AxeViolation.from_dict(v) for v in data.get("violations", [])],
            passes=int(data.get("passes", 0)),
        )

    def counts_by_impact(self) -> Dict[str, int]:
        counts = Counter(v.impact for v in self.violations)
        return {impact: counts[impact] for impact in IMPACT_ORDER if counts[impact]}

    def with_impact(self, *impacts: str) -> List[AxeViolation]:
        return [v for v in self.violations if v.impact in impacts]

    def summary(self) -> str:
        lines = [
            f"A11Y SCAN RESULTS: {self.page_name}",
            f"Total violations: {len(self.violations)}",
            f"By impact: {self.counts_by_impact()}",
        ]
        for v in self.violations:
            lines.append(f"- [{v.impact}] {v.id}: {v.help} ({v.node_count} el)")
            lines.append(f"  Help: {v.help_url}")
            lines.append(f"  Targets: {' | '.join(v.targets)}")
        return "\n".join(lines)


async def inject_axe(page: Page, script_url: str = DEFAULT_AXE_SCRIPT_URL) -> None:
    if not await page.evaluate("() => typeof window.axe !== 'undefined'"):
        await page.add_script_tag(url=script_url)


async def run_axe(
    page: Page,
    page_name: str,
    tags: Optional[Sequence[str]] = None,
    script_url: str = DEFAULT_AXE_SCRIPT_URL,
    rules: Optional[Sequence[str]] = None,
) -> AxeResults:
    """Run axe-core on the current page and log the violations.

    ``rules`` restricts the run to specific rule ids and wins over ``tags``.
    """
    await inject_axe(page, script_url)
    raw = await page.evaluate(_RUN_AXE, {"tags": list(tags or []), "rules": list(rules or [])})
    results = AxeResults.from_dict(page_name, raw, tags or ())
    logger.info("\n%s", results.summary())
    return results


# ---- structural checks ----------------------------------------------------------
# These run in the page and return plain data; the helpers below judge it.

REQUIRED_LANDMARKS = ("main", "navigation", "banner")
INTERACTIVE_SELECTOR = 'a[href], button, input, select, textarea, [tabindex]:not([tabindex="-1"])'
LIVE_REGION_SELECTOR = '[aria-live], [role="alert"], [role="status"], [role="log"]'
DIALOG_SELECTOR = '[role="dialog"], [role="alertdialog"], .modal, [class*="dialog"]'

ACTIVE_ELEMENT_SCRIPT = """
() => {
    const el = document.activeElement;
    if (!el || el === document.body) return null;
    return el.tagName.toLowerCase() + (el.id ? '#' + el.id : '');
}
"""

ACTIVE_ELEMENT_WITHIN_SCRIPT = """
(selector) => !!document.activeElement?.closest(selector)
"""

LANDMARKS_SCRIPT = """
() => {
    const found = new Set();
    const implicit = { main: 'main', nav: 'navigation', header: 'banner' };
    for (const [tag, role] of Object.entries(implicit)) {
        if (document.querySelector(tag)) found.add(role);
    }
    document.querySelectorAll('[role]').forEach((el) => found.add(el.getAttribute('role')));
    return Array.from(found);
}
"""

HEADINGS_SCRIPT = """
() => Array.from(document.querySelectorAll('h1, h2, h3, h4, h5, h6')).map((el) => ({
    level: Number(el.tagName[1]),
    text: (el.textContent || '').trim().substring(0, 50) || '(empty)',
}))
"""

SKIP_LINKS_SCRIPT = """
() => Array.from(document.querySelectorAll('a'))
    .map((a) => (a.textContent || '').trim())
    .filter((text) => text.toLowerCase().includes('skip') || text.toLowerCase().includes('main content'))
"""

FORM_FIELDS_SCRIPT = """
() => Array.from(document.querySelectorAll('input, select, textarea')).map((el) => ({
    name: el.getAttribute('name') || el.getAttribute('formcontrolname') || '?',
    type: el.getAttribute('type') || el.tagName.toLowerCase(),
    labeled: (el.id ? !!document.querySelector(`label[for="${el.id}"]`) : false)
        || !!el.getAttribute('aria-label')
        || !!el.getAttribute('aria-labelledby'),
    required: el.hasAttribute('required') || el.getAttribute('aria-required') === 'true',
}))
"""

TAB_STOPS_SCRIPT = """
(selector) => Array.from(document.querySelectorAll(selector))
    .filter((el) => {
        const r = el.getBoundingClientRect();
        return r.width > 0 && r.height > 0;
    })
    .map((el) => ({
        tag: el.tagName.toLowerCase() + (el.id ? '#' + el.id : ''),
        y: Math.round(el.getBoundingClientRect().top),
        tabindex: el.getAttribute('tabindex'),
    }))
    .sort((a, b) => a.y - b.y)
"""

HORIZONTAL_OVERFLOW_SCRIPT = "() => document.body.scrollWidth > window.innerWidth"


def missing_landmarks(found: Iterable[str], required: Sequence[str] = REQUIRED_LANDMARKS) -> List[str]:
    found = set(found)
    return [role for role in required if role not in found]


def heading_level_skips(levels: Sequence[int]) -> List[Tuple[int, int]]:
    """Pairs of consecutive heading levels that jump more than one (h2 -> h4)."""
    return [
        (previous, current)
        for previous, current in zip(levels, levels[1:])
        if current > previous + 1
    ]


def unlabeled_fields(form_fields: Iterable[Dict[str, Any]]) -> List[str]:
    return [f"{f['type']}[{f['name']}]" for f in form_fields if not f.get("labeled")]


def positive_tabindex(stops: Iterable[Dict[str, Any]]) -> List[str]:
    """Elements with tabindex > 0, which override the natural tab order."""
    bad = []
    for stop in stops:
        try:
            if int(stop.get("tabindex") or 0) > 0:
                bad.append(stop["tag"])
        except ValueError:
            continue
    return bad


async def tab_through(page: Page, presses: int) -> List[str]:
    """Press Tab ``presses`` times and return the distinct elements focused, in order."""
    reached: List[str] = []
    for _ in range(presses):
        await page.keyboard.press("Tab")
        tag = await page.evaluate(ACTIVE_ELEMENT_SCRIPT)
        if tag and tag not in reached:
            reached.append(tag)
    return reached
