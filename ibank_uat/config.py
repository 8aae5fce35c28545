"""Shared configuration for the online-banking UAT suites.

Values come from the process environment first and the repository `.env`
file second (see ``env_defaults``). Only ``BASE_URL`` is required, and only by
flows that navigate; importing this module never fails because of it.

Set BASE_URL to the UAT host, e.g. ``BASE_URL=https://uat.example-bank.tt``.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ibank_uat.env_defaults import REPO_ROOT, get_env
from ibank_uat.errors import ConfigurationError, MissingConfigurationError

LOGIN_PATH = "/#/administrationGeneral/login"
HOME_PATH = "/#/home"
DEFAULT_AXE_SCRIPT_URL = "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.10.2/axe.min.js"


def _int_setting(key: str, default: int) -> int:
    raw = get_env(key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got {value}")
    return value


def _bool_setting(key: str, default: bool) -> bool:
    raw = get_env(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"true", "1", "yes", "on"}


def _path_setting(key: str, default: Optional[Path]) -> Optional[Path]:
    raw = get_env(key)
    if not raw:
        return default
    path = Path(raw)
    return path if path.is_absolute() else REPO_ROOT / path


@dataclass(frozen=True)
class SessionTimeouts:
    """Wait budgets (milliseconds) for the login ceremony and session checks."""

    step_ms: int = 120_000
    landmark_ms: int = 120_000
    probe_ms: int = 3_000
    warning_dismiss_ms: int = 10_000
    navigation_ms: int = 60_000


class UatConfig:
    """Configuration snapshot taken at construction time."""

    def __init__(self) -> None:
        base_url = get_env("BASE_URL")
        self.base_url: Optional[str] = base_url.rstrip("/") if base_url else None

        self.users_file: Path = _path_setting(
            "UAT_USERS_FILE", REPO_ROOT / "test-data" / "users.local.json"
        )
        self.selectors_file: Optional[Path] = _path_setting("UAT_SELECTORS_FILE", None)

        self.playwright_headless: bool = _bool_setting("PLAYWRIGHT_HEADLESS", True)
        self.browser_type: str = get_env("PLAYWRIGHT_BROWSER", "chromium")
        if self.browser_type not in {"chromium", "firefox", "webkit"}:
            raise ConfigurationError(
                f"PLAYWRIGHT_BROWSER must be chromium, firefox or webkit, got {self.browser_type!r}"
            )

        self.timeouts = SessionTimeouts(
            step_ms=_int_setting("UAT_STEP_TIMEOUT_MS", 120_000),
            landmark_ms=_int_setting("UAT_LANDMARK_TIMEOUT_MS", 120_000),
            probe_ms=_int_setting("UAT_PROBE_TIMEOUT_MS", 3_000),
            warning_dismiss_ms=_int_setting("UAT_WARNING_DISMISS_TIMEOUT_MS", 10_000),
            navigation_ms=_int_setting("UAT_NAVIGATION_TIMEOUT_MS", 60_000),
        )
        self.action_timeout_ms: int = _int_setting("UAT_ACTION_TIMEOUT_MS", 30_000)
        self.expect_timeout_ms: int = _int_setting("UAT_EXPECT_TIMEOUT_MS", 30_000)

        self.human_pacing: bool = _bool_setting("UAT_HUMAN_PACING", True)
        self.typing_delay_min_ms: int = _int_setting("UAT_TYPING_DELAY_MIN_MS", 50)
        self.typing_delay_max_ms: int = _int_setting("UAT_TYPING_DELAY_MAX_MS", 150)
        if self.typing_delay_min_ms > self.typing_delay_max_ms:
            raise ConfigurationError(
                "UAT_TYPING_DELAY_MIN_MS must not exceed UAT_TYPING_DELAY_MAX_MS "
                f"({self.typing_delay_min_ms} > {self.typing_delay_max_ms})"
            )

        # Human-like browser settings
        self.viewport: Dict[str, int] = {
            "width": _int_setting("UAT_VIEWPORT_WIDTH", 1280),
            "height": _int_setting("UAT_VIEWPORT_HEIGHT", 720),
        }
        self.locale: str = get_env("UAT_LOCALE", "en-US")
        self.timezone_id: str = get_env("UAT_TIMEZONE", "America/Port_of_Spain")

        self.screenshots_dir: Path = _path_setting(
            "SCREENSHOT_DIR", REPO_ROOT / "test-results" / "screenshots"
        )
        self.screenshot_on_failure: bool = _bool_setting("SCREENSHOT_ON_FAILURE", True)
        self.auth_state_dir: Path = _path_setting(
            "UAT_AUTH_STATE_DIR", REPO_ROOT / "tmp" / "auth-states"
        )
        self.axe_script_url: str = get_env("UAT_AXE_SCRIPT_URL", DEFAULT_AXE_SCRIPT_URL)

    # ---- url helpers ------------------------------------------------------------
    def require_base_url(self) -> str:
        """Return BASE_URL or fail before any browser interaction."""
        if not self.base_url:
            raise MissingConfigurationError(
                "BASE_URL", "Export it or add it to .env (see .env.example)"
            )
        return self.base_url

    def url(self, path: str) -> str:
        """Return an absolute URL for ``path`` (hash routes included)."""
        return f"{self.require_base_url()}/{path.lstrip('/')}"

    @property
    def login_url(self) -> str:
        return self.url(LOGIN_PATH)

    @property
    def home_url(self) -> str:
        return self.url(HOME_PATH)

    # ---- browser context options -------------------------------------------------
    def context_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``Browser.new_context``."""
        options: Dict[str, Any] = {
            "viewport": dict(self.viewport),
            "locale": self.locale,
            "timezone_id": self.timezone_id,
            # UAT certificates are not publicly trusted
            "ignore_https_errors": True,
            "service_workers": "block",
        }
        if self.base_url:
            options["base_url"] = self.base_url
        return options


# Singleton instance - initialized on first import
settings = UatConfig()
