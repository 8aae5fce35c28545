"""Unit tests for the selector contract and its JSON overrides."""
import json

import pytest

from fakes import CONFIRM, LANDMARK, MFA_NEXT, SMS_CODE, USERNAME_NEXT, WARNING, FakePage
from ibank_uat.errors import ConfigurationError
from ibank_uat.selectors import LoginSelectors


def test_load_without_file_gives_defaults():
    assert LoginSelectors.load(None) == LoginSelectors()


def test_overrides_are_applied(tmp_path):
    path = tmp_path / "selectors.json"
    path.write_text(json.dumps({"username_input": "#user-id", "landmark_text": "Accounts"}), encoding="utf-8")

    selectors = LoginSelectors.load(path)

    assert selectors.username_input == "#user-id"
    assert selectors.landmark_text == "Accounts"
    assert selectors.password_input == "#step02"


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "selectors.json"
    path.write_text(json.dumps({"usernme_input": "#x"}), encoding="utf-8")

    with pytest.raises(ConfigurationError, match="usernme_input"):
        LoginSelectors.load(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        LoginSelectors.load(tmp_path / "nope.json")


def test_non_object_rejected(tmp_path):
    path = tmp_path / "selectors.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        LoginSelectors.load(path)


def test_locator_builders():
    page = FakePage()
    selectors = LoginSelectors()

    assert selectors.username_next(page).key == USERNAME_NEXT
    assert selectors.mfa_next(page).key == MFA_NEXT
    assert selectors.sms_code(page).key == SMS_CODE
    assert selectors.confirm(page).key == CONFIRM
    assert selectors.authenticated_landmark(page).key == LANDMARK
    assert selectors.expiry_warning(page).key == WARNING
    assert selectors.sidebar_item(page, "Pay").key == "li.leeds_list_item|Pay"
