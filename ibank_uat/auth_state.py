"""
Authentication state persistence for reusing sessions across tests.

After a successful login the browser storage state (cookies, localStorage) is
saved per identity; a later test can restore it and skip the SMS ceremony as
long as the bank still honours the session.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from playwright.async_api import BrowserContext

from ibank_uat.config import settings
from ibank_uat.session import SessionAuthenticator, SessionStatus
from ibank_uat.users import TestIdentity

logger = logging.getLogger(__name__)


def get_auth_state_path(identity_id: str, state_dir: Optional[Path] = None) -> Path:
    """Path of the storage-state file for ``identity_id``."""
    state_dir = state_dir or settings.auth_state_dir
    return Path(state_dir) / f"{identity_id}_auth_state.json"


async def save_auth_state(
    context: BrowserContext,
    identity_id: str,
    state_dir: Optional[Path] = None,
) -> Path:
    """Save authentication state (cookies, localStorage, etc.) to file.

    Args:
        context: Playwright browser context after successful login
        identity_id: Test user the state belongs to
        state_dir: Directory override (defaults to UAT_AUTH_STATE_DIR)

    Returns:
        Path to saved state file
    """
    state_file = get_auth_state_path(identity_id, state_dir)
    state_file.parent.mkdir(parents=True, exist_ok=True)
    await context.storage_state(path=str(state_file))
    logger.info("Saved auth state for %s to %s", identity_id, state_file)
    return state_file


async def load_auth_state(
    context: BrowserContext,
    identity_id: str,
    state_dir: Optional[Path] = None,
) -> bool:
    """Load saved cookies into ``context``.

    Returns:
        True if state loaded, False if no state file exists for the identity
    """
    state_file = get_auth_state_path(identity_id, state_dir)
    if not state_file.exists():
        return False

    with open(state_file, encoding="utf-8") as f:
        state = json.load(f)

    cookies = state.get("cookies", [])
    if cookies:
        await context.add_cookies(cookies)
    logger.info("Loaded %d cookies for %s from %s", len(cookies), identity_id, state_file)
    return True


def clear_auth_state(identity_id: str, state_dir: Optional[Path] = None) -> None:
    """Delete saved authentication state."""
    state_file = get_auth_state_path(identity_id, state_dir)
    if state_file.exists():
        state_file.unlink()
        logger.info("Cleared auth state: %s", state_file)


async def ensure_authenticated(
    authenticator: SessionAuthenticator,
    identity: TestIdentity,
    home_url: str,
    state_dir: Optional[Path] = None,
    force_login: bool = False,
) -> bool:
    """Make sure the authenticator's page is logged in as ``identity``.

    1. Restore saved storage state for the identity (unless force_login)
    2. Open the home route and look for the authenticated landmark
    3. Otherwise run the full login ceremony and save the new state

    Returns:
        True when the saved session was reused, False when a fresh login ran
    """
    page = authenticator.page
    context = page.context

    if not force_login and await load_auth_state(context, identity.id, state_dir):
        await page.goto(home_url, wait_until="domcontentloaded")
        if await authenticator.is_authenticated():
            logger.info("Reusing saved session for %s", identity.id)
            authenticator.status = SessionStatus.LOGGED_IN
            return True

        logger.info("Saved auth state for %s is stale, performing fresh login", identity.id)
        clear_auth_state(identity.id, state_dir)

    await authenticator.login(identity)
    await save_auth_state(context, identity.id, state_dir)
    return False
