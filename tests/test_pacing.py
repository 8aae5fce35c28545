"""Unit tests for human-paced typing."""
import random
from types import SimpleNamespace

import pytest

from fakes import FakePage
from ibank_uat.pacing import HumanPacing


def test_delay_stays_in_range():
    pacing = HumanPacing(min_delay_ms=50, max_delay_ms=150, rng=random.Random(7))

    delays = [pacing.next_delay() for _ in range(200)]

    assert all(0.05 <= d <= 0.15 for d in delays)


def test_disabled_has_no_delay():
    assert HumanPacing.disabled().next_delay() == 0.0


@pytest.mark.parametrize("low,high", [(-1, 10), (100, 50)])
def test_invalid_range(low, high):
    with pytest.raises(ValueError):
        HumanPacing(min_delay_ms=low, max_delay_ms=high)


def test_from_settings():
    settings = SimpleNamespace(typing_delay_min_ms=10, typing_delay_max_ms=20, human_pacing=False)

    pacing = HumanPacing.from_settings(settings)

    assert (pacing.min_delay_ms, pacing.max_delay_ms, pacing.enabled) == (10, 20, False)


@pytest.mark.asyncio
async def test_type_into_one_keystroke_at_a_time():
    page = FakePage()
    page.show("#field")
    pacing = HumanPacing(min_delay_ms=0, max_delay_ms=1)

    await pacing.type_into(page.locator("#field"), "abc")

    assert page.actions == [
        ("click", "#field", None),
        ("fill", "#field", ""),
        ("type", "#field", "a"),
        ("type", "#field", "b"),
        ("type", "#field", "c"),
    ]


@pytest.mark.asyncio
async def test_type_into_disabled_fills_at_once():
    page = FakePage()

    await HumanPacing.disabled().type_into(page.locator("#field"), "abc")

    assert page.actions == [("fill", "#field", "abc")]
