"""Test doubles and constants shared across the test modules."""

from __future__ import annotations

import asyncio
import time
from typing import Optional

from intake.domain.intake.schemas import AddressLookupResult, ProfileLookup, ProfileUpdate
from intake.services.postal_lookup import PostalLookupError
from intake.services.profile_service import ProfileServiceError

# Short delays keep the async scenarios fast
VALIDATION_DELAY = 0.01
AUTOSAVE_DELAY = 0.05


class FakeRedis:
    """Dict-backed client exposing the Redis calls the snapshot store makes."""

    def __init__(self, write_delay: float = 0.0, fail_writes: bool = False, fail_first: int = 0):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.write_delay = write_delay
        self.fail_writes = fail_writes
        self.fail_first = fail_first
        self.writes: list[str] = []

    def get(self, key):
        return self.data.get(key)

    def setex(self, key, ttl, value):
        if self.write_delay:
            time.sleep(self.write_delay)
        if self.fail_first:
            self.fail_first -= 1
            raise ConnectionError("redis down")
        if self.fail_writes:
            raise ConnectionError("redis down")
        self.data[key] = value
        self.ttls[key] = ttl
        self.writes.append(value)
        return True

    def delete(self, *keys):
        for key in keys:
            self.data.pop(key, None)
        return len(keys)


class FakePostalClient:
    """Postal lookup double; each lookup waits until released by the test."""

    def __init__(self, addresses: Optional[dict[str, AddressLookupResult]] = None, auto: bool = True):
        self.addresses = addresses or {}
        self.auto = auto
        self.calls: list[str] = []
        self.failures: set[str] = set()
        self._gates: dict[str, asyncio.Event] = {}

    def release(self, code: str) -> None:
        self._gates.setdefault(code, asyncio.Event()).set()

    async def lookup(self, postal_code: str) -> Optional[AddressLookupResult]:
        self.calls.append(postal_code)
        if not self.auto:
            await self._gates.setdefault(postal_code, asyncio.Event()).wait()
        if postal_code in self.failures:
            raise PostalLookupError("boom")
        return self.addresses.get(postal_code)


class FakeProfileClient:
    def __init__(self, profiles_by_id=None, profiles_by_email=None, submit_error: Optional[str] = None):
        self.profiles_by_id: dict[str, ProfileLookup] = profiles_by_id or {}
        self.profiles_by_email: dict[str, ProfileLookup] = profiles_by_email or {}
        self.submit_error = submit_error
        self.submitted: list[tuple[object, ProfileUpdate]] = []
        self.email_lookups: list[str] = []

    async def fetch_by_id(self, user_id):
        return self.profiles_by_id.get(str(user_id))

    async def fetch_by_email(self, email):
        self.email_lookups.append(email)
        return self.profiles_by_email.get(email)

    async def submit(self, user_id, payload):
        if self.submit_error:
            raise ProfileServiceError(self.submit_error)
        self.submitted.append((user_id, payload))


PAULISTA = AddressLookupResult(
    postal_code="01310-100",
    street="Avenida Paulista",
    neighborhood="Bela Vista",
    city="São Paulo",
    region="SP",
    complement="de 612 a 1510 - lado par",
)

COPACABANA = AddressLookupResult(
    postal_code="22041-001",
    street="Avenida Atlântica",
    neighborhood="Copacabana",
    city="Rio de Janeiro",
    region="RJ",
)
