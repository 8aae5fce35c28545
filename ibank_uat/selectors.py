"""DOM contract of the online-banking application under test.

The selectors are the most fragile part of the suite, so all of them can be
overridden from a JSON file named by ``UAT_SELECTORS_FILE``::

    {"username_input": "#user-id", "landmark_text": "Accounts"}
"""
from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from playwright.async_api import Locator, Page

from ibank_uat.errors import ConfigurationError


@dataclass(frozen=True)
class LoginSelectors:
    # username step
    username_input: str = "#step01"
    username_step: str = "icb-login-step-user"
    # password step
    password_input: str = "#step02"
    password_step: str = "icb-login-step-password"
    # MFA device step
    mfa_select: str = "select"
    mfa_step: str = "icb-login-step-multifactor-device"
    mfa_option_label: str = "SMS Code"
    # SMS code step
    sms_code_textbox_name: str = "Enter your SMS Code"
    confirm_link: str = "a:visible"
    # step controls
    next_text: str = "Next"
    confirm_text: str = "Confirm"
    # authenticated landmark
    landmark: str = "li.leeds_list_item"
    landmark_text: str = "My Accounts"
    # session expiry warning
    expiry_warning_text: str = "Session about to expire"
    expiry_warning_body_text: str = "Your session will expire in"
    stay_logged_in_text: str = "Stay logged in"
    log_out_text: str = "Log out"

    @classmethod
    def load(cls, path: Optional[Path]) -> "LoginSelectors":
        """Defaults, optionally overridden by a JSON file."""
        if path is None:
            return cls()
        if not path.exists():
            raise ConfigurationError(f"Selectors file not found: {path}")
        try:
            overrides = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ConfigurationError(f"{path} must contain a JSON object")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown selector keys in {path}: {', '.join(unknown)}. "
                f"Valid keys: {', '.join(sorted(known))}"
            )
        return replace(cls(), **{key: str(value) for key, value in overrides.items()})

    # ---- locator builders --------------------------------------------------------
    def username(self, page: Page) -> Locator:
        return page.locator(self.username_input)

    def username_next(self, page: Page) -> Locator:
        return page.locator(f"{self.username_step} a").filter(has_text=self.next_text)

    def password(self, page: Page) -> Locator:
        return page.locator(self.password_input)

    def password_next(self, page: Page) -> Locator:
        return page.locator(f"{self.password_step} a").filter(has_text=self.next_text)

    def mfa_method(self, page: Page) -> Locator:
        return page.locator(self.mfa_select)

    def mfa_next(self, page: Page) -> Locator:
        return page.locator(f"{self.mfa_step} a").filter(has_text=self.next_text)

    def sms_code(self, page: Page) -> Locator:
        return page.get_by_role("textbox", name=self.sms_code_textbox_name)

    def confirm(self, page: Page) -> Locator:
        return page.locator(self.confirm_link).filter(has_text=self.confirm_text)

    def sidebar_item(self, page: Page, text: str) -> Locator:
        return page.locator(self.landmark).filter(has_text=text)

    def authenticated_landmark(self, page: Page) -> Locator:
        return self.sidebar_item(page, self.landmark_text)

    def expiry_warning(self, page: Page) -> Locator:
        return page.get_by_text(self.expiry_warning_text)

    def stay_logged_in(self, page: Page) -> Locator:
        return page.get_by_text(self.stay_logged_in_text)

    def log_out(self, page: Page) -> Locator:
        return page.get_by_text(self.log_out_text)
