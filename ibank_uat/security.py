"""Data-masking and session-protection probes.

The predicates are pure so they can be checked without a browser; the
``*_SCRIPT`` constants run inside the page via ``page.evaluate``.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Sequence

SESSION_TOKEN_IN_URL = re.compile(r"[?&](token|session|sid|auth|jwt)=", re.IGNORECASE)
SENSITIVE_URL_PARAMS = ("password", "pwd", "secret", "key", "apikey")

SENSITIVE_CONSOLE_PATTERNS: Sequence[re.Pattern] = (
    re.compile(r'token["\s]*[:=]["\s]*[a-zA-Z0-9_-]{20,}', re.IGNORECASE),
    re.compile(r'session["\s]*[:=]["\s]*[a-zA-Z0-9_-]{20,}', re.IGNORECASE),
    re.compile(r'jwt["\s]*[:=]["\s]*[a-zA-Z0-9._-]{50,}', re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9._-]{20,}", re.IGNORECASE),
    re.compile(r'password["\s]*[:=]', re.IGNORECASE),
)

FULL_PAN = re.compile(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b")
CVV_EXPOSURE = re.compile(
    r"cvv[:\s]*\d{3,4}|cvc[:\s]*\d{3,4}|security\s*code[:\s]*\d{3,4}", re.IGNORECASE
)
CVV_INPUTS = (
    'input[name*="cvv" i], input[name*="cvc" i], '
    'input[name*="security" i], input[autocomplete*="cc-csc"]'
)
MASKABLE_ELEMENTS = '[class*="card"], [class*="account"]'

# Long digit runs stashed in data-* attributes of account widgets
SENSITIVE_ATTRIBUTES_SCRIPT = """
() => {
    const findings = [];
    document.querySelectorAll('[data-account], [data-number], [data-card]').forEach((el) => {
        Array.from(el.attributes).forEach((attr) => {
            if (/\\d{10,16}/.test(attr.value)) {
                findings.push(`${attr.name}="${attr.value}"`);
            }
        });
    });
    return findings;
}
"""

# Credential-looking keys or values in localStorage / sessionStorage
WEB_STORAGE_SCRIPT = """
() => {
    const findings = [];
    const criticalKeys = ['password', 'secret', 'apikey', 'credential', 'private'];
    const scan = (storage, label) => {
        for (let i = 0; i < storage.length; i++) {
            const key = storage.key(i);
            if (!key) continue;
            const lowerKey = key.toLowerCase();
            for (const sensitive of criticalKeys) {
                if (lowerKey.includes(sensitive)) findings.push(`${label}: ${key}`);
            }
            const value = storage.getItem(key) || '';
            if (/password|secret/i.test(value)) {
                findings.push(`${label} value contains sensitive data: ${key}`);
            }
        }
    };
    scan(window.localStorage, 'localStorage');
    scan(window.sessionStorage, 'sessionStorage');
    return findings;
}
"""


def has_session_token_in_url(url: str) -> bool:
    return bool(SESSION_TOKEN_IN_URL.search(url))


def sensitive_params_in_url(url: str) -> List[str]:
    lowered = url.lower()
    return [param for param in SENSITIVE_URL_PARAMS if param in lowered]


def sensitive_console_messages(messages: Iterable[str]) -> List[str]:
    """Console lines that look like they leak tokens or passwords."""
    return [
        message
        for message in messages
        if any(pattern.search(message) for pattern in SENSITIVE_CONSOLE_PATTERNS)
    ]


def exposes_full_card_number(text: str) -> bool:
    return bool(FULL_PAN.search(text))


def exposes_cvv(text: str) -> bool:
    return bool(CVV_EXPOSURE.search(text))


def has_session_cookie(cookies: Iterable[dict]) -> bool:
    """True if any cookie looks like it carries the session."""
    return any(
        "session" in cookie.get("name", "").lower() or cookie.get("httpOnly", False)
        for cookie in cookies
    )
