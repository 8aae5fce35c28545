"""Browser history navigation between the dashboard and My Accounts."""
import pytest
from playwright.async_api import expect

from ibank_uat.navigation import (
    ACCOUNTS_ROUTE,
    ALL_ACCOUNTS_HEADER,
    HOME_ROUTE,
    open_my_accounts,
)

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]


class TestHistoryNavigation:

    async def test_back_and_forward_from_home(self, page, login, selectors):
        await login()
        await page.wait_for_url(HOME_ROUTE, timeout=30_000)

        await open_my_accounts(page, selectors)
        landmark = selectors.authenticated_landmark(page).first
        await expect(landmark).to_be_visible(timeout=30_000)

        await page.go_back(timeout=60_000)
        await expect(page).to_have_url(HOME_ROUTE)

        await page.go_forward(timeout=60_000)
        await page.wait_for_load_state("networkidle")
        await expect(page).to_have_url(ACCOUNTS_ROUTE)
        await expect(landmark).to_be_visible()

    async def test_forward_returns_to_same_accounts_url(self, page, login, selectors, test_user):
        await login()

        await open_my_accounts(page, selectors)
        all_accounts = page.locator(ALL_ACCOUNTS_HEADER, has_text="All Accounts")
        await all_accounts.wait_for(state="visible")
        accounts_url = page.url

        await page.go_back()
        await page.get_by_text(f"Welcome, {test_user.display_name.split()[0]}").first.wait_for(state="visible")

        await page.go_forward()
        await all_accounts.wait_for(state="visible")
        assert page.url == accounts_url
