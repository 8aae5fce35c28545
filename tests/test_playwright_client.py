"""Unit tests for the Playwright client lifecycle."""
from types import SimpleNamespace

import pytest

from ibank_uat import playwright_client
from ibank_uat.playwright_client import PlaywrightClient


class FakeLauncher:
    async def launch(self, headless=True):
        raise RuntimeError("Executable doesn't exist")


class FakePlaywright:
    def __init__(self):
        self.chromium = FakeLauncher()
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeDriver:
    def __init__(self, playwright):
        self.playwright = playwright

    async def start(self):
        return self.playwright


@pytest.mark.asyncio
async def test_failed_launch_stops_driver(monkeypatch):
    driver = FakePlaywright()
    monkeypatch.setattr(playwright_client, "async_playwright", lambda: FakeDriver(driver))
    client = PlaywrightClient(config=SimpleNamespace(), browser_type="chromium", headless=True)

    with pytest.raises(RuntimeError, match="Executable"):
        async with client:
            pass

    assert driver.stopped
    with pytest.raises(RuntimeError, match="not connected"):
        client.browser
