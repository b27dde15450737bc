"""Shared fixtures for all tests."""

from __future__ import annotations

import pytest

from intake.snapshot_store import SnapshotStore
from tests.utils import COPACABANA, PAULISTA, FakePostalClient, FakeProfileClient, FakeRedis


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def store(fake_redis) -> SnapshotStore:
    return SnapshotStore(client=fake_redis, ttl=60)


@pytest.fixture()
def postal_client() -> FakePostalClient:
    return FakePostalClient({"01310100": PAULISTA, "22041001": COPACABANA})


@pytest.fixture()
def profile_client() -> FakeProfileClient:
    return FakeProfileClient()


@pytest.fixture()
def complete_form_values() -> dict:
    """Values that pass every rule (already in masked form)."""
    return {
        "full_name": "Maria da Silva",
        "phone": "(11) 94555-5555",
        "email": "maria@example.com",
        "birth_date": "1990-05-15",
        "cpf": "529.982.247-25",
        "gender": "F",
        "salary_bracket": "1-a-2-salarios",
        "profession": "Professor",
        "postal_code": "01310-100",
        "street": "Avenida Paulista",
        "number": "1000",
        "neighborhood": "Bela Vista",
        "city": "São Paulo",
        "state": "SP",
        "orientation_area": "juridica",
        "referral_source": "internet",
        "is_volunteer": False,
    }
