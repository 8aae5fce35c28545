"""
Login ceremony against the UAT host.

Covers:
  • Username → password → MFA method → SMS code → confirm
  • The sidebar landmark as the success signal
  • re_authenticate() on a live session does nothing
"""
import pytest
from playwright.async_api import expect

from ibank_uat.auth_state import ensure_authenticated, get_auth_state_path
from ibank_uat.config import settings
from ibank_uat.navigation import HOME_ROUTE
from ibank_uat.session import AuthState, ReauthAction

pytestmark = [pytest.mark.asyncio, pytest.mark.e2e]


class TestLoginCeremony:

    async def test_steps_lead_to_sms_code_entry(self, page, authenticator, test_user):
        """Walking the first three transitions ends on the SMS code textbox."""
        result = await authenticator.open_login_page(authenticator.login_url)
        state = result.state
        for transition in (
            authenticator.enter_username,
            authenticator.enter_password,
            authenticator.select_mfa_method,
        ):
            result = await transition(state, test_user)
            assert result.ok, str(result.error)
            state = result.state

        assert state is AuthState.MFA_METHOD_SELECTED
        await expect(authenticator.selectors.sms_code(page)).to_be_visible()

    async def test_login_shows_my_accounts(self, page, login, selectors):
        outcome = await login()

        assert outcome.succeeded
        assert [r.step for r in outcome.history] == [
            "navigate", "username", "password", "mfa_method", "sms_code", "landmark",
        ]
        await expect(selectors.authenticated_landmark(page).first).to_be_visible(timeout=120_000)

    async def test_login_lands_on_home_route(self, page, login):
        await login()
        await page.wait_for_url(HOME_ROUTE, timeout=30_000)


class TestReAuthenticate:

    async def test_live_session_is_left_alone(self, page, login, re_authenticate, selectors):
        await login()
        url_before = page.url

        action = await re_authenticate()

        assert action is ReauthAction.NOOP
        assert page.url == url_before, "re_authenticate navigated on a live session"
        assert not await selectors.username(page).is_visible()
        await expect(selectors.authenticated_landmark(page).first).to_be_visible()

    async def test_logged_out_page_triggers_full_login(self, page, authenticator, re_authenticate, selectors):
        await page.goto(authenticator.login_url, wait_until="domcontentloaded")
        await selectors.username(page).wait_for(state="visible", timeout=120_000)

        action = await re_authenticate()

        assert action is ReauthAction.FULL_LOGIN
        await expect(selectors.authenticated_landmark(page).first).to_be_visible()


class TestSavedSession:

    async def test_fresh_login_saves_storage_state(self, authenticator, test_user, tmp_path):
        reused = await ensure_authenticated(authenticator, test_user, settings.home_url, tmp_path)

        assert reused is False
        assert get_auth_state_path(test_user.id, tmp_path).exists()
        assert await authenticator.is_authenticated()

    async def test_force_login_ignores_saved_state(self, authenticator, test_user, tmp_path):
        await ensure_authenticated(authenticator, test_user, settings.home_url, tmp_path)

        reused = await ensure_authenticated(
            authenticator, test_user, settings.home_url, tmp_path, force_login=True
        )

        assert reused is False
        assert authenticator.last_outcome.succeeded
