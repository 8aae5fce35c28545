"""Login ceremony and session upkeep for the online-banking UAT host.

The login is an explicit state machine::

    UNAUTHENTICATED -> USERNAME_ENTERED -> PASSWORD_ENTERED
        -> MFA_METHOD_SELECTED -> CODE_ENTERED -> AUTHENTICATED

Each transition is one coroutine that takes the current state and the identity
and returns a :class:`StepResult`. A step whose element never shows up within
its timeout yields ``AUTH_FAILURE`` together with an
:class:`AuthenticationStepTimeout` naming the step, so a failed login report
says exactly where the ceremony stopped. Nothing is retried here.

Usage:
    auth = SessionAuthenticator.from_settings(page, settings)
    await auth.login(identity)
    ...
    await auth.re_authenticate(identity)   # no-op while the session is alive
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

import anyio
from playwright.async_api import Locator, Page, TimeoutError as PlaywrightTimeout

from ibank_uat.config import LOGIN_PATH, SessionTimeouts
from ibank_uat.errors import (
    AmbiguousSessionState,
    AuthenticationStepTimeout,
    MissingConfigurationError,
)
from ibank_uat.pacing import HumanPacing
from ibank_uat.selectors import LoginSelectors
from ibank_uat.users import TestIdentity

logger = logging.getLogger(__name__)


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    USERNAME_ENTERED = "username_entered"
    PASSWORD_ENTERED = "password_entered"
    MFA_METHOD_SELECTED = "mfa_method_selected"
    CODE_ENTERED = "code_entered"
    AUTHENTICATED = "authenticated"
    AUTH_FAILURE = "auth_failure"

    @property
    def terminal(self) -> bool:
        return self in (AuthState.AUTHENTICATED, AuthState.AUTH_FAILURE)


class SessionStatus(Enum):
    """Lifecycle of the session owned by one browser context."""

    LOGGED_OUT = "logged_out"
    AUTHENTICATING = "authenticating"
    LOGGED_IN = "logged_in"
    EXPIRING = "expiring"
    EXPIRED = "expired"


class ReauthAction(Enum):
    """Branch taken by :meth:`SessionAuthenticator.re_authenticate`."""

    FULL_LOGIN = "full_login"
    DISMISSED_WARNING = "dismissed_warning"
    NOOP = "noop"
    FALLBACK_LOGIN = "fallback_login"


@dataclass(frozen=True)
class StepResult:
    step: str
    state: AuthState
    error: Optional[AuthenticationStepTimeout] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class LoginOutcome:
    """Result of one pass through the login ceremony."""

    identity_id: str
    state: AuthState
    history: List[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    @property
    def failed_step(self) -> Optional[str]:
        for result in self.history:
            if not result.ok:
                return result.step
        return None

    @property
    def error(self) -> Optional[AuthenticationStepTimeout]:
        for result in self.history:
            if result.error is not None:
                return result.error
        return None

    def raise_for_failure(self) -> None:
        error = self.error
        if error is not None:
            raise error


Transition = Callable[[AuthState, TestIdentity], Awaitable[StepResult]]


class SessionAuthenticator:
    """Drives the login ceremony on one page and keeps its session alive."""

    def __init__(
        self,
        page: Page,
        *,
        base_url: Optional[str],
        selectors: Optional[LoginSelectors] = None,
        pacing: Optional[HumanPacing] = None,
        timeouts: Optional[SessionTimeouts] = None,
    ) -> None:
        self._page = page
        self._base_url = base_url.rstrip("/") if base_url else None
        self.selectors = selectors or LoginSelectors()
        self.pacing = pacing or HumanPacing()
        self.timeouts = timeouts or SessionTimeouts()
        self.status = SessionStatus.LOGGED_OUT
        self.last_outcome: Optional[LoginOutcome] = None

        self._transitions: Dict[AuthState, Transition] = {
            AuthState.UNAUTHENTICATED: self.enter_username,
            AuthState.USERNAME_ENTERED: self.enter_password,
            AuthState.PASSWORD_ENTERED: self.select_mfa_method,
            AuthState.MFA_METHOD_SELECTED: self.enter_sms_code,
            AuthState.CODE_ENTERED: self.confirm_landmark,
        }

    @classmethod
    def from_settings(
        cls, page: Page, settings, selectors: Optional[LoginSelectors] = None
    ) -> "SessionAuthenticator":
        return cls(
            page,
            base_url=settings.base_url,
            selectors=selectors or LoginSelectors.load(settings.selectors_file),
            pacing=HumanPacing.from_settings(settings),
            timeouts=settings.timeouts,
        )

    @property
    def page(self) -> Page:
        return self._page

    @property
    def login_url(self) -> str:
        if not self._base_url:
            raise MissingConfigurationError(
                "BASE_URL", "Export it or add it to .env (see .env.example)"
            )
        return f"{self._base_url}{LOGIN_PATH}"

    # ---- ceremony -----------------------------------------------------------------
    async def login(self, identity: TestIdentity) -> LoginOutcome:
        """Run the full ceremony; raise :class:`AuthenticationStepTimeout` on failure."""
        outcome = await self.run_ceremony(identity)
        outcome.raise_for_failure()
        return outcome

    async def run_ceremony(self, identity: TestIdentity) -> LoginOutcome:
        """Run the ceremony and report the outcome instead of raising."""
        login_url = self.login_url  # fail fast before touching the browser
        self.status = SessionStatus.AUTHENTICATING
        logger.info("Logging in as %s", identity.id)

        history: List[StepResult] = []
        try:
            result = await self.open_login_page(login_url)
            history.append(result)
            state = result.state

            while not state.terminal:
                transition = self._transitions[state]
                result = await transition(state, identity)
                history.append(result)
                state = result.state
        except Exception:
            self.status = SessionStatus.LOGGED_OUT
            raise

        outcome = LoginOutcome(identity_id=identity.id, state=state, history=history)
        self.last_outcome = outcome
        if outcome.succeeded:
            self.status = SessionStatus.LOGGED_IN
            logger.info("Logged in as %s", identity.id)
        else:
            self.status = SessionStatus.LOGGED_OUT
            logger.warning("Login as %s stopped at step '%s'", identity.id, outcome.failed_step)
        return outcome

    async def open_login_page(self, login_url: str) -> StepResult:
        async def action() -> None:
            await self._page.goto(
                login_url, wait_until="domcontentloaded", timeout=self.timeouts.navigation_ms
            )

        return await self._run_step(
            "navigate", login_url, self.timeouts.navigation_ms, AuthState.UNAUTHENTICATED, action
        )

    async def enter_username(self, state: AuthState, identity: TestIdentity) -> StepResult:
        self._expect_state(state, AuthState.UNAUTHENTICATED)
        return await self._fill_and_advance(
            "username",
            self.selectors.username_input,
            self.selectors.username(self._page),
            identity.username,
            self.selectors.username_next(self._page),
            AuthState.USERNAME_ENTERED,
        )

    async def enter_password(self, state: AuthState, identity: TestIdentity) -> StepResult:
        self._expect_state(state, AuthState.USERNAME_ENTERED)
        return await self._fill_and_advance(
            "password",
            self.selectors.password_input,
            self.selectors.password(self._page),
            identity.password,
            self.selectors.password_next(self._page),
            AuthState.PASSWORD_ENTERED,
        )

    async def select_mfa_method(self, state: AuthState, identity: TestIdentity) -> StepResult:
        self._expect_state(state, AuthState.PASSWORD_ENTERED)
        timeout = self.timeouts.step_ms
        select = self.selectors.mfa_method(self._page)

        async def action() -> None:
            await select.wait_for(state="visible", timeout=timeout)
            await select.select_option(label=self.selectors.mfa_option_label, timeout=timeout)
            await self.pacing.pause(scale=3)
            await self.selectors.mfa_next(self._page).click(timeout=timeout)

        return await self._run_step(
            "mfa_method", self.selectors.mfa_select, timeout, AuthState.MFA_METHOD_SELECTED, action
        )

    async def enter_sms_code(self, state: AuthState, identity: TestIdentity) -> StepResult:
        self._expect_state(state, AuthState.MFA_METHOD_SELECTED)
        return await self._fill_and_advance(
            "sms_code",
            f"textbox[name={self.selectors.sms_code_textbox_name!r}]",
            self.selectors.sms_code(self._page),
            identity.sms_code,
            self.selectors.confirm(self._page),
            AuthState.CODE_ENTERED,
        )

    async def confirm_landmark(self, state: AuthState, identity: TestIdentity) -> StepResult:
        """Wait for the sidebar landmark, the only trusted success signal."""
        self._expect_state(state, AuthState.CODE_ENTERED)
        timeout = self.timeouts.landmark_ms
        landmark = self.selectors.authenticated_landmark(self._page).first

        async def action() -> None:
            await landmark.wait_for(state="visible", timeout=timeout)

        return await self._run_step(
            "landmark",
            f"{self.selectors.landmark} >> text={self.selectors.landmark_text}",
            timeout,
            AuthState.AUTHENTICATED,
            action,
        )

    # ---- session upkeep ---------------------------------------------------------
    async def observe(self) -> SessionStatus:
        """Classify the page: login form > expiry warning > landmark.

        Raises:
            AmbiguousSessionState: If none of them shows up within the probe timeout.
        """
        if await self.is_visible(self.selectors.username(self._page)):
            expired = self.status in (SessionStatus.LOGGED_IN, SessionStatus.EXPIRING)
            self.status = SessionStatus.EXPIRED if expired else SessionStatus.LOGGED_OUT
            return self.status
        if await self.is_visible(self.selectors.expiry_warning(self._page)):
            self.status = SessionStatus.EXPIRING
            return self.status
        if await self.is_visible(self.selectors.authenticated_landmark(self._page)):
            self.status = SessionStatus.LOGGED_IN
            return self.status
        raise AmbiguousSessionState(self._page.url, self.timeouts.probe_ms)

    async def re_authenticate(self, identity: TestIdentity) -> ReauthAction:
        """Restore an authenticated state with the least work possible."""
        try:
            status = await self.observe()
        except AmbiguousSessionState as exc:
            logger.info("%s; falling back to full login", exc)
            await self.login(identity)
            return ReauthAction.FALLBACK_LOGIN

        if status in (SessionStatus.LOGGED_OUT, SessionStatus.EXPIRED):
            await self.login(identity)
            return ReauthAction.FULL_LOGIN
        if status is SessionStatus.EXPIRING:
            await self.dismiss_expiry_warning()
            return ReauthAction.DISMISSED_WARNING
        logger.debug("Session for %s still alive", identity.id)
        return ReauthAction.NOOP

    async def dismiss_expiry_warning(self) -> None:
        """Click "Stay logged in" and wait for the warning to go away."""
        timeout = self.timeouts.warning_dismiss_ms
        warning = self.selectors.expiry_warning(self._page)
        try:
            await self.selectors.stay_logged_in(self._page).click(timeout=timeout)
            await warning.wait_for(state="hidden", timeout=timeout)
        except PlaywrightTimeout as exc:
            raise AuthenticationStepTimeout(
                step="dismiss_expiry_warning",
                selector=self.selectors.expiry_warning_text,
                timeout_ms=timeout,
                message=_first_line(exc),
                payload={"url": self._page.url},
            ) from exc
        self.status = SessionStatus.LOGGED_IN
        logger.info("Session extended via '%s'", self.selectors.stay_logged_in_text)

    async def is_authenticated(self) -> bool:
        return await self.is_visible(self.selectors.authenticated_landmark(self._page))

    async def is_visible(self, locator: Locator) -> bool:
        """Bounded existence check; "not there in time" is an answer, not an error."""
        try:
            await locator.first.wait_for(state="visible", timeout=self.timeouts.probe_ms)
        except PlaywrightTimeout:
            return False
        return True

    # ---- helpers ------------------------------------------------------------------
    async def _fill_and_advance(
        self,
        step: str,
        selector: str,
        field_locator: Locator,
        value: str,
        advance: Locator,
        next_state: AuthState,
    ) -> StepResult:
        timeout = self.timeouts.step_ms

        async def action() -> None:
            await field_locator.wait_for(state="visible", timeout=timeout)
            await self._wait_enabled(field_locator, timeout)
            await self.pacing.type_into(field_locator, value, timeout=timeout)
            await self.pacing.pause(scale=3)
            await advance.click(timeout=timeout)

        return await self._run_step(step, selector, timeout, next_state, action)

    async def _wait_enabled(self, locator: Locator, timeout_ms: int, interval: float = 0.2) -> None:
        deadline = anyio.current_time() + timeout_ms / 1000
        while not await locator.is_enabled():
            if anyio.current_time() >= deadline:
                raise PlaywrightTimeout(f"element did not become enabled within {timeout_ms}ms")
            await anyio.sleep(interval)

    async def _run_step(
        self,
        step: str,
        selector: str,
        timeout_ms: int,
        next_state: AuthState,
        action: Callable[[], Awaitable[None]],
    ) -> StepResult:
        try:
            await action()
        except PlaywrightTimeout as exc:
            error = AuthenticationStepTimeout(
                step=step,
                selector=selector,
                timeout_ms=timeout_ms,
                message=_first_line(exc),
                payload={"url": self._page.url},
            )
            return StepResult(step=step, state=AuthState.AUTH_FAILURE, error=error)
        logger.debug("Login step '%s' done -> %s", step, next_state.value)
        return StepResult(step=step, state=next_state)

    @staticmethod
    def _expect_state(actual: AuthState, expected: AuthState) -> None:
        if actual is not expected:
            raise ValueError(f"transition expects {expected.value}, got {actual.value}")


def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__
