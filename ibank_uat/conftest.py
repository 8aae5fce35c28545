"""Fixtures shared by the live UAT suites.

Every test gets:
  • ``test_user``: the identity for this test. Pin one with
    ``@pytest.mark.user("kory")``; otherwise each xdist worker gets its own
    user so parallel sessions never kick each other out.
  • ``page``: a fresh page in an isolated, human-like browser context.
  • ``login`` / ``login_as`` / ``re_authenticate``: the login ceremony.

Screenshots of failing tests land in ``test-results/screenshots``.
"""
import logging
import re
from typing import Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from playwright.async_api import expect

from ibank_uat.config import settings
from ibank_uat.parallel_session_manager import ParallelSessionManager
from ibank_uat.playwright_client import PlaywrightClient
from ibank_uat.selectors import LoginSelectors
from ibank_uat.session import LoginOutcome, ReauthAction, SessionAuthenticator
from ibank_uat.users import TestIdentity, UserStore, resolve_identity, worker_index_from_env

logger = logging.getLogger(__name__)


# ============================================================================
# Test identities
# ============================================================================

@pytest.fixture(scope="session")
def user_store() -> UserStore:
    """One store per worker process, loaded up front so a missing file fails fast."""
    store = UserStore(settings.users_file)
    store.load_all()
    return store


@pytest.fixture(scope="session")
def worker_index() -> int:
    return worker_index_from_env()


@pytest.fixture()
def user_id(request) -> Optional[str]:
    """User pinned with ``@pytest.mark.user("<id>")``, or None."""
    marker = request.node.get_closest_marker("user")
    return marker.args[0] if marker else None


@pytest.fixture()
def test_user(user_store, user_id, worker_index) -> TestIdentity:
    identity = resolve_identity(user_store, user_id, worker_index)
    logger.info("Test user: %s (worker %d)", identity.id, worker_index)
    return identity


# ============================================================================
# Browser
# ============================================================================

@pytest.fixture(scope="session")
def selectors() -> LoginSelectors:
    return LoginSelectors.load(settings.selectors_file)


@pytest_asyncio.fixture()
async def playwright_client(user_store):
    """Browser + default context; depends on the user store so it loads first."""
    async with PlaywrightClient() as client:
        yield client


@pytest_asyncio.fixture()
async def page(playwright_client, request):
    pg = playwright_client.page
    yield pg
    await _screenshot_on_failure(pg, request.node)


@pytest_asyncio.fixture()
async def session_manager(playwright_client, selectors):
    """Extra isolated sessions (e.g. an anonymous visitor), closed after the test."""
    async with ParallelSessionManager(playwright_client, selectors=selectors) as manager:
        yield manager


# ============================================================================
# Authentication
# ============================================================================

@pytest.fixture()
def authenticator(page, selectors) -> SessionAuthenticator:
    return SessionAuthenticator.from_settings(page, settings, selectors)


@pytest.fixture()
def login_as(authenticator) -> Callable[[TestIdentity], Awaitable[LoginOutcome]]:
    async def _login_as(identity: TestIdentity) -> LoginOutcome:
        return await authenticator.login(identity)

    return _login_as


@pytest.fixture()
def login(login_as, test_user) -> Callable[[], Awaitable[LoginOutcome]]:
    """Log in as this test's user."""
    async def _login() -> LoginOutcome:
        return await login_as(test_user)

    return _login


@pytest.fixture()
def re_authenticate(authenticator, test_user) -> Callable[[], Awaitable[ReauthAction]]:
    async def _re_authenticate() -> ReauthAction:
        return await authenticator.re_authenticate(test_user)

    return _re_authenticate


# ============================================================================
# Hooks
# ============================================================================

def pytest_configure(config):
    expect.set_options(timeout=settings.expect_timeout_ms)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Keep the call-phase report on the item for fixture teardown."""
    outcome = yield
    rep = outcome.get_result()
    if rep.when == "call":
        item.rep_call = rep


async def _screenshot_on_failure(page, node) -> None:
    rep = getattr(node, "rep_call", None)
    if not settings.screenshot_on_failure or rep is None or not rep.failed or page.is_closed():
        return
    settings.screenshots_dir.mkdir(parents=True, exist_ok=True)
    name = re.sub(r"[^\w.-]+", "_", node.nodeid)
    path = settings.screenshots_dir / f"{name}.png"
    await page.screenshot(path=str(path), full_page=True)
    logger.info("Screenshot saved: %s", path)
