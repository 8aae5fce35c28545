"""Fixtures for the browserless unit tests."""
from __future__ import annotations

import json
from pathlib import Path

import pytest

from fakes import BASE_URL, USERS, FakePage, wire_login_flow
from ibank_uat.config import SessionTimeouts
from ibank_uat.pacing import HumanPacing
from ibank_uat.selectors import LoginSelectors
from ibank_uat.session import SessionAuthenticator
from ibank_uat.users import UserStore


@pytest.fixture
def users_file(tmp_path) -> Path:
    path = tmp_path / "users.local.json"
    path.write_text(json.dumps(USERS), encoding="utf-8")
    return path


@pytest.fixture
def user_store(users_file) -> UserStore:
    return UserStore(users_file)


@pytest.fixture
def kory(user_store):
    return user_store.get_by_id("kory")


@pytest.fixture
def fast_timeouts() -> SessionTimeouts:
    return SessionTimeouts(step_ms=50, landmark_ms=50, probe_ms=10, warning_dismiss_ms=50, navigation_ms=50)


@pytest.fixture
def fake_page() -> FakePage:
    return wire_login_flow(FakePage())


@pytest.fixture
def authenticator(fake_page, fast_timeouts) -> SessionAuthenticator:
    return SessionAuthenticator(
        fake_page,
        base_url=BASE_URL,
        selectors=LoginSelectors(),
        pacing=HumanPacing.disabled(),
        timeouts=fast_timeouts,
    )
