"""Human-paced input for the login form.

The bank's bot mitigation rejects input that arrives all at once, so the login
steps type character by character with a randomised inter-keystroke delay.
The delay range is a policy object so environments without bot mitigation can
turn it off.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Optional

import anyio
from playwright.async_api import Locator

__all__ = ["HumanPacing"]

logger = logging.getLogger(__name__)


@dataclass
class HumanPacing:
    """Randomised keystroke delay range in milliseconds."""

    min_delay_ms: int = 50
    max_delay_ms: int = 150
    enabled: bool = True
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def __post_init__(self) -> None:
        if self.min_delay_ms < 0 or self.max_delay_ms < self.min_delay_ms:
            raise ValueError(
                f"invalid delay range {self.min_delay_ms}..{self.max_delay_ms}ms"
            )

    @classmethod
    def from_settings(cls, settings) -> "HumanPacing":
        return cls(
            min_delay_ms=settings.typing_delay_min_ms,
            max_delay_ms=settings.typing_delay_max_ms,
            enabled=settings.human_pacing,
        )

    @classmethod
    def disabled(cls) -> "HumanPacing":
        return cls(min_delay_ms=0, max_delay_ms=0, enabled=False)

    def next_delay(self) -> float:
        """Next delay in seconds (0 when pacing is off)."""
        if not self.enabled:
            return 0.0
        return self.rng.uniform(self.min_delay_ms, self.max_delay_ms) / 1000

    async def pause(self, scale: float = 1.0) -> None:
        """Short human pause between steps."""
        delay = self.next_delay() * scale
        if delay:
            await anyio.sleep(delay)

    async def type_into(self, locator: Locator, text: str, timeout: Optional[float] = None) -> None:
        """Clear ``locator`` and enter ``text``, one keystroke at a time when enabled."""
        if not self.enabled:
            await locator.fill(text, timeout=timeout)
            return

        await locator.click(timeout=timeout)
        await locator.fill("", timeout=timeout)
        for char in text:
            await locator.press_sequentially(char, timeout=timeout)
            await anyio.sleep(self.next_delay())
        logger.debug("Typed %d characters with human pacing", len(text))
