"""Error taxonomy for the UAT harness.

Every error here propagates to the calling test and fails it. The harness
never retries; retry policy (if any) belongs to the test runner.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable


class UatError(Exception):
    """Base class for harness errors."""


class ConfigurationError(UatError):
    """Required external configuration is missing or malformed."""


class MissingConfigurationError(ConfigurationError):
    """A required configuration value (e.g. BASE_URL) is not set."""

    def __init__(self, name: str, hint: str = "") -> None:
        self.name = name
        message = f"{name} environment variable is required"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class NotFoundError(UatError, KeyError):
    """A requested test identity does not exist in the user store."""

    def __init__(self, identity_id: str, available: Iterable[str]) -> None:
        self.identity_id = identity_id
        self.available = list(available)
        super().__init__(identity_id)

    def __str__(self) -> str:
        return (
            f'Test user "{self.identity_id}" not found. '
            f"Available: {', '.join(self.available)}"
        )


@dataclass(eq=False)
class AuthenticationStepTimeout(UatError):
    """An expected login element did not become visible/actionable in time."""

    step: str
    selector: str
    timeout_ms: int
    message: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def __str__(self) -> str:
        text = (
            f"login step '{self.step}' timed out after {self.timeout_ms}ms "
            f"waiting for {self.selector}"
        )
        if self.message:
            text = f"{text} ({self.message})"
        return text


class AmbiguousSessionState(UatError):
    """None of the login form, expiry warning or landmark could be found."""

    def __init__(self, url: str, probe_timeout_ms: int) -> None:
        self.url = url
        self.probe_timeout_ms = probe_timeout_ms
        super().__init__(
            f"session state on {url} is ambiguous: no login form, expiry warning "
            f"or authenticated landmark visible within {probe_timeout_ms}ms"
        )
