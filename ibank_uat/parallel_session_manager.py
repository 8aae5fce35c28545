"""
Parallel Session Manager for UAT testing.

Opens several isolated browser contexts side by side, e.g. a logged-in
customer next to an anonymous visitor, so a test can compare what each of them
is allowed to see.
"""
from dataclasses import dataclass
from typing import Dict, Optional
import logging

from playwright.async_api import BrowserContext, Page

from ibank_uat.config import UatConfig, settings as default_settings
from ibank_uat.playwright_client import PlaywrightClient
from ibank_uat.selectors import LoginSelectors
from ibank_uat.session import SessionAuthenticator
from ibank_uat.users import TestIdentity

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    """Handle to a parallel browser session."""
    session_id: str
    context: BrowserContext
    page: Page
    authenticator: SessionAuthenticator
    identity: Optional[TestIdentity] = None

    def __repr__(self) -> str:
        user = self.identity.id if self.identity else None
        return f"SessionHandle(id={self.session_id}, user={user})"


class ParallelSessionManager:
    """
    Manages multiple parallel browser sessions for one test.

    Each session gets its own Playwright BrowserContext, so cookies, storage
    and authentication never leak between them. The bank allows one active
    session per identity; two sessions for the same identity would invalidate
    each other, so identity_session() hands back the existing one.

    Usage:
        async with ParallelSessionManager(client) as manager:
            customer = await manager.identity_session(test_user)
            visitor = await manager.anonymous_session()
    """

    def __init__(
        self,
        client: PlaywrightClient,
        config: Optional[UatConfig] = None,
        selectors: Optional[LoginSelectors] = None,
    ):
        self.client = client
        self.config = config or default_settings
        self.selectors = selectors or LoginSelectors.load(self.config.selectors_file)
        self.sessions: Dict[str, SessionHandle] = {}
        self._counter = 0

    async def __aenter__(self) -> 'ParallelSessionManager':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close_all()

    async def create_session(self, session_id: Optional[str] = None) -> SessionHandle:
        """
        Create a new isolated browser session.

        Args:
            session_id: Custom session ID (auto-generated if not provided)
        """
        if session_id is None:
            self._counter += 1
            session_id = f"session_{self._counter}"

        if session_id in self.sessions:
            raise ValueError(f"Session {session_id} already exists")

        context = await self.client.new_context()
        page = await context.new_page()
        handle = SessionHandle(
            session_id=session_id,
            context=context,
            page=page,
            authenticator=SessionAuthenticator.from_settings(page, self.config, self.selectors),
        )
        self.sessions[session_id] = handle

        logger.debug(f"Created session: {handle}")
        return handle

    async def identity_session(self, identity: TestIdentity, login: bool = True) -> SessionHandle:
        """
        Get or create the session for ``identity``.

        Args:
            identity: Test user owning the session
            login: Whether to run the login ceremony when the session is new
        """
        session_id = f"user_{identity.id}"

        if session_id not in self.sessions:
            handle = await self.create_session(session_id)
            handle.identity = identity
            if login:
                await handle.authenticator.login(identity)

        return self.sessions[session_id]

    async def anonymous_session(self) -> SessionHandle:
        """Get or create an unauthenticated session."""
        if 'anonymous' not in self.sessions:
            await self.create_session('anonymous')
        return self.sessions['anonymous']

    async def get_session(self, session_id: str) -> Optional[SessionHandle]:
        return self.sessions.get(session_id)

    async def close_session(self, session_id: str) -> None:
        """Close and remove a session."""
        if session_id in self.sessions:
            handle = self.sessions.pop(session_id)
            try:
                await handle.context.close()
                logger.debug(f"Closed session: {handle}")
            except Exception as e:
                logger.warning(f"Error closing session {session_id}: {e}")

    async def close_all(self) -> None:
        for session_id in list(self.sessions.keys()):
            await self.close_session(session_id)

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    def list_sessions(self) -> list[str]:
        return list(self.sessions.keys())
