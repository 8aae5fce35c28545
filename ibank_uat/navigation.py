"""Reusable navigation flows inside the authenticated banking UI."""
from __future__ import annotations

import logging
import re
from typing import Optional, Pattern

from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout

from ibank_uat.config import UatConfig
from ibank_uat.selectors import LoginSelectors

logger = logging.getLogger(__name__)

HOME_ROUTE = re.compile(r"/home")
ACCOUNTS_ROUTE = re.compile(r"/myProducts")
LOGIN_ROUTE = re.compile(r"/login")

OVERLAY = 'div.custom-overlay[data-hidden="false"]'
MENU_OPTION = "a.oldham-panel-link"
MENU_PANEL_TITLE = "span.oldham-panel-title-text"
HAMBURGER_ICON = "i.stream-menu_2"
HAMBURGER_ITEM = "a.tucson-item-header-link"
HAMBURGER_SUBITEM = "a.tucson-subitem-link"
ACCOUNT_SEARCH = 'input[formcontrolname="searchInput"]'
ACCOUNT_ROW = "icb-productrow"
ACCOUNT_RIBBON = ".araure-primary-ribbon-item"
ALL_ACCOUNTS_HEADER = "div.ohio_text"
LOGOUT_LINK = "icb-logout a.derby-link"


async def go_to_login_page(page: Page, config: UatConfig, timeout: int = 180_000) -> Locator:
    """Open the login entry point and wait for the username field."""
    selectors = LoginSelectors.load(config.selectors_file)
    await page.goto(config.login_url, wait_until="domcontentloaded")
    username = selectors.username(page)
    await username.wait_for(state="visible", timeout=timeout)
    return username


async def dismiss_overlay(page: Page, timeout: int = 500) -> bool:
    """Close the promotional overlay if it is showing. Returns True if closed."""
    overlay = page.locator(OVERLAY)
    try:
        await overlay.wait_for(state="visible", timeout=timeout)
    except PlaywrightTimeout:
        return False
    await overlay.click()
    await page.wait_for_timeout(300)
    return True


async def open_sidebar_item(
    page: Page,
    selectors: LoginSelectors,
    text: str,
    url_pattern: Optional[Pattern[str]] = None,
    first_wait: int = 10_000,
    second_wait: int = 30_000,
) -> None:
    """Click a sidebar entry and wait for its route.

    The SPA sometimes swallows the first click while it is still hydrating, so
    one more click is made before giving up.
    """
    item = selectors.sidebar_item(page, text)
    await item.first.wait_for(state="visible")
    await item.first.click()
    if url_pattern is None:
        return
    try:
        await page.wait_for_url(url_pattern, timeout=first_wait)
    except PlaywrightTimeout:
        logger.info("Sidebar click on '%s' did not route, clicking again", text)
        await item.first.click()
        await page.wait_for_url(url_pattern, timeout=second_wait)


async def open_my_accounts(page: Page, selectors: LoginSelectors) -> None:
    await open_sidebar_item(page, selectors, selectors.landmark_text, ACCOUNTS_ROUTE)
    await page.wait_for_load_state("networkidle", timeout=30_000)


async def navigate_to_section(page: Page, selectors: LoginSelectors, section: str) -> None:
    await dismiss_overlay(page)
    await open_sidebar_item(page, selectors, section)
    await page.wait_for_load_state("networkidle", timeout=30_000)


async def click_menu_option(page: Page, option: str, timeout: int = 30_000) -> None:
    link = page.locator(MENU_OPTION).filter(has_text=option)
    await link.first.wait_for(state="visible", timeout=timeout)
    await link.first.click()
    await page.wait_for_load_state("networkidle", timeout=15_000)


async def open_menu_panel(page: Page, selectors: LoginSelectors, section: str, known_option: str) -> None:
    """Open a sidebar section and wait until one of its option tiles shows."""
    await open_sidebar_item(page, selectors, section)
    title = page.locator(MENU_PANEL_TITLE, has_text=known_option)
    await title.first.wait_for(state="visible", timeout=60_000)


async def open_hamburger_item(page: Page, item: str, subitem: Optional[str] = None) -> None:
    icon = page.locator(HAMBURGER_ICON)
    await icon.wait_for(state="visible", timeout=60_000)
    await icon.click()

    header = page.locator(HAMBURGER_ITEM).filter(has_text=item)
    await header.first.wait_for(state="visible", timeout=60_000)
    await header.first.click()

    if subitem:
        link = page.locator(HAMBURGER_SUBITEM).filter(has_text=subitem)
        await link.first.wait_for(state="visible", timeout=60_000)
        await link.first.click()


async def find_account_row(page: Page, number: str) -> Locator:
    """Filter the accounts list by ``number`` and return the matching rows."""
    search = page.locator(ACCOUNT_SEARCH)
    await search.fill("")
    await search.fill(number)
    return page.locator(ACCOUNT_ROW, has_text=number)


async def log_out(page: Page, confirm_text: str = "Confirm") -> None:
    link = page.locator(LOGOUT_LINK)
    await link.wait_for(state="visible")
    await link.click()
    await page.get_by_text("Are you sure you want to exit?").wait_for(state="visible")
    await page.get_by_text(confirm_text).first.click()
