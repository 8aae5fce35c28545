"""Test identities for UAT runs.

Identities are read from ``test-data/users.local.json`` (gitignored). Copy
``users.example.json`` to ``users.local.json`` and fill in real credentials.

File layout (key order is significant, the first entry is the default user)::

    {
      "kory": {
        "name": "Kory Example",
        "username": "demo1",
        "password": "pw123",
        "smsCode": "000000",
        "accounts": [
          {"name": "Chequing Account", "type": "chequing",
           "number": "960202029006", "currency": "TTD"}
        ]
      }
    }

A :class:`UserStore` is constructed once per worker process and handed to the
fixtures; it reads the file on first access and never writes it back.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Literal, Mapping, Optional, Tuple, get_args

from ibank_uat.errors import ConfigurationError, NotFoundError

logger = logging.getLogger(__name__)

AccountType = Literal["chequing", "savings", "credit", "loan", "utility"]
ACCOUNT_TYPES: Tuple[str, ...] = get_args(AccountType)

_REQUIRED_USER_KEYS = ("name", "username", "password", "smsCode")
_REQUIRED_ACCOUNT_KEYS = ("name", "type", "number", "currency")


def _reject_duplicate_keys(pairs):
    seen = {}
    for key, value in pairs:
        if key in seen:
            raise ConfigurationError(f"Duplicate key {key!r} in users file")
        seen[key] = value
    return seen


@dataclass(frozen=True)
class AccountRef:
    """An account the identity is expected to see after login."""

    name: str
    type: AccountType
    number: str
    currency: str

    @classmethod
    def from_dict(cls, data: dict, owner: str) -> "AccountRef":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Account entry for user {owner!r} must be an object, got {data!r}")
        missing = [key for key in _REQUIRED_ACCOUNT_KEYS if key not in data]
        if missing:
            raise ConfigurationError(
                f"Account entry for user {owner!r} is missing {', '.join(missing)}"
            )
        if data["type"] not in ACCOUNT_TYPES:
            raise ConfigurationError(
                f"Account {data['number']!r} of user {owner!r} has unknown type "
                f"{data['type']!r}; expected one of {', '.join(ACCOUNT_TYPES)}"
            )
        return cls(
            name=str(data["name"]),
            type=data["type"],
            number=str(data["number"]),
            currency=str(data["currency"]),
        )


@dataclass(frozen=True)
class TestIdentity:
    """Credentials and account metadata for one UAT login."""

    __test__ = False  # not a pytest test class

    id: str
    display_name: str
    username: str
    password: str
    sms_code: str
    accounts: Tuple[AccountRef, ...] = ()

    @classmethod
    def from_dict(cls, identity_id: str, data: dict) -> "TestIdentity":
        if not isinstance(data, dict):
            raise ConfigurationError(f"Entry for user {identity_id!r} must be an object")
        missing = [key for key in _REQUIRED_USER_KEYS if key not in data]
        if missing:
            raise ConfigurationError(
                f"User {identity_id!r} is missing {', '.join(missing)}"
            )
        entries = data.get("accounts", [])
        if not isinstance(entries, list):
            raise ConfigurationError(f"User {identity_id!r} has accounts that are not a list")
        accounts = tuple(AccountRef.from_dict(entry, identity_id) for entry in entries)
        return cls(
            id=identity_id,
            display_name=str(data["name"]),
            username=str(data["username"]),
            password=str(data["password"]),
            sms_code=str(data["smsCode"]),
            accounts=accounts,
        )

    def __repr__(self) -> str:
        # keep credentials out of assertion output and CI logs
        return f"TestIdentity(id={self.id!r}, display_name={self.display_name!r}, accounts={len(self.accounts)})"


class UserStore:
    """Read-only, file-backed collection of test identities."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._identities: Optional[Dict[str, TestIdentity]] = None

    def load_all(self) -> Dict[str, TestIdentity]:
        """Parse the backing file once and return ``{id: identity}`` in file order.

        Raises:
            ConfigurationError: If the file is absent, not valid JSON, empty,
                or an entry is malformed.
        """
        if self._identities is None:
            self._identities = self._read()
        return dict(self._identities)

    def _read(self) -> Dict[str, TestIdentity]:
        if not self.path.exists():
            raise ConfigurationError(
                f"Missing {self.path.name} ({self.path}). Copy users.example.json to "
                f"{self.path.name} and fill in your credentials."
            )

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f, object_pairs_hook=_reject_duplicate_keys)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{self.path} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict) or not data:
            raise ConfigurationError(
                f"{self.path} must map at least one user id to its credentials"
            )

        identities = {
            identity_id: TestIdentity.from_dict(identity_id, entry)
            for identity_id, entry in data.items()
        }
        logger.info("Loaded %d test users from %s", len(identities), self.path.name)
        return identities

    # ---- lookups --------------------------------------------------------------
    def _all(self) -> Dict[str, TestIdentity]:
        if self._identities is None:
            self.load_all()
        return self._identities

    def ids(self) -> List[str]:
        return list(self._all())

    def get_by_id(self, identity_id: str) -> TestIdentity:
        identities = self._all()
        try:
            return identities[identity_id]
        except KeyError:
            raise NotFoundError(identity_id, identities) from None

    def get_default(self) -> TestIdentity:
        """First user declared in the file."""
        return next(iter(self._all().values()))

    def get_by_worker_index(self, index: int) -> TestIdentity:
        """Pick a user per parallel worker, wrapping when workers outnumber users."""
        if index < 0:
            raise ValueError(f"worker index must be >= 0, got {index}")
        identities = list(self._all().values())
        return identities[index % len(identities)]

    def get_accounts(self, identity_id: str) -> Tuple[AccountRef, ...]:
        return self.get_by_id(identity_id).accounts

    def __len__(self) -> int:
        return len(self._all())

    def __iter__(self) -> Iterator[TestIdentity]:
        return iter(list(self._all().values()))

    def __contains__(self, identity_id: object) -> bool:
        return identity_id in self._all()


def worker_index_from_env(environ: Optional[Mapping[str, str]] = None) -> int:
    """Index of the current pytest-xdist worker (``gw3`` -> 3, controller -> 0)."""
    environ = os.environ if environ is None else environ
    worker = environ.get("PYTEST_XDIST_WORKER", "")
    match = re.fullmatch(r"gw(\d+)", worker)
    return int(match.group(1)) if match else 0


def resolve_identity(
    store: UserStore, identity_id: Optional[str] = None, worker_index: int = 0
) -> TestIdentity:
    """Identity for one test: the pinned id if given, else one per worker.

    A single-process run is worker 0, which is the default (first) user.
    """
    if identity_id:
        return store.get_by_id(identity_id)
    return store.get_by_worker_index(worker_index)
