"""Tests for postal code enrichment and its stale-response guard."""

from __future__ import annotations

import asyncio

import pytest

from intake.domain.intake.enrichment import (
    LOOKUP_FAILED_MESSAGE,
    NOT_FOUND_MESSAGE,
    AddressEnrichmentAdapter,
    lookup_token,
)
from intake.domain.intake.fields import empty_form
from intake.domain.intake.schemas import FieldState
from intake.domain.intake.validation_store import ValidationStateStore
from tests.utils import COPACABANA, PAULISTA, VALIDATION_DELAY, FakePostalClient


def make_adapter(client, timeout=1.0):
    form = empty_form()
    validation = ValidationStateStore(delay=VALIDATION_DELAY)
    applied = []
    adapter = AddressEnrichmentAdapter(client, form, validation, timeout=timeout, on_applied=applied.extend)
    return adapter, form, validation, applied


def type_postal_code(adapter, form, value):
    form["postal_code"] = value
    return adapter.maybe_lookup(value)


class TestLookupToken:
    @pytest.mark.parametrize("value", ["01310-100", "01310100", " 01310-100 "])
    def test_complete_codes(self, value):
        assert lookup_token(value) == "01310100"

    @pytest.mark.parametrize("value", ["", None, "01310-10", "0131-0100", "01310-1000", "01.310-100"])
    def test_incomplete_or_malformed_codes(self, value):
        assert lookup_token(value) is None


class TestResolution:
    def test_found_code_fills_and_validates_address(self):
        client = FakePostalClient({"01310100": PAULISTA})

        async def scenario():
            adapter, form, validation, applied = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await adapter.wait_idle()
            return form, validation, applied

        form, validation, applied = asyncio.run(scenario())

        assert form["street"] == "Avenida Paulista"
        assert form["neighborhood"] == "Bela Vista"
        assert form["city"] == "São Paulo"
        assert form["state"] == "SP"
        assert form["complement"] == "de 612 a 1510 - lado par"
        for name in ("street", "neighborhood", "city", "state"):
            assert validation.state(name) is FieldState.VALID
            assert validation.error(name) == ""
        assert applied == ["street", "neighborhood", "city", "state", "complement"]

    def test_existing_complement_is_kept(self):
        client = FakePostalClient({"01310100": PAULISTA})

        async def scenario():
            adapter, form, _, applied = make_adapter(client)
            form["complement"] = "apto 12"
            type_postal_code(adapter, form, "01310-100")
            await adapter.wait_idle()
            return form, applied

        form, applied = asyncio.run(scenario())
        assert form["complement"] == "apto 12"
        assert "complement" not in applied

    def test_unknown_code_marks_postal_code_invalid(self):
        client = FakePostalClient({})

        async def scenario():
            adapter, form, validation, applied = make_adapter(client)
            form["street"] = "Rua que eu digitei"
            type_postal_code(adapter, form, "99999-999")
            await adapter.wait_idle()
            return form, validation, applied

        form, validation, applied = asyncio.run(scenario())

        assert validation.state("postal_code") is FieldState.INVALID
        assert validation.error("postal_code") == NOT_FOUND_MESSAGE
        assert form["street"] == "Rua que eu digitei"
        assert form["city"] == ""
        assert validation.state("street") is FieldState.DEFAULT
        assert applied == []

    def test_lookup_error_marks_postal_code_invalid(self):
        client = FakePostalClient({"01310100": PAULISTA})
        client.failures.add("01310100")

        async def scenario():
            adapter, form, validation, _ = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await adapter.wait_idle()
            return form, validation

        form, validation = asyncio.run(scenario())
        assert validation.error("postal_code") == LOOKUP_FAILED_MESSAGE
        assert form["street"] == ""

    def test_timeout_marks_postal_code_invalid(self):
        client = FakePostalClient({"01310100": PAULISTA}, auto=False)

        async def scenario():
            adapter, form, validation, _ = make_adapter(client, timeout=0.01)
            type_postal_code(adapter, form, "01310-100")
            await adapter.wait_idle()
            return validation

        validation = asyncio.run(scenario())
        assert validation.state("postal_code") is FieldState.INVALID
        assert validation.error("postal_code") == LOOKUP_FAILED_MESSAGE

    def test_incomplete_code_issues_no_lookup(self):
        client = FakePostalClient({"01310100": PAULISTA})

        async def scenario():
            adapter, form, _, _ = make_adapter(client)
            return type_postal_code(adapter, form, "01310-10")

        assert asyncio.run(scenario()) is None
        assert client.calls == []


class TestStaleness:
    def test_late_response_for_older_code_is_discarded(self):
        client = FakePostalClient({"01310100": PAULISTA, "22041001": COPACABANA}, auto=False)

        async def scenario():
            adapter, form, validation, applied = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await asyncio.sleep(0)
            type_postal_code(adapter, form, "22041-001")
            await asyncio.sleep(0)

            client.release("22041001")
            await asyncio.sleep(0.01)
            assert form["city"] == "Rio de Janeiro"

            client.release("01310100")
            await adapter.wait_idle()
            return form, validation, applied

        form, validation, applied = asyncio.run(scenario())

        assert client.calls == ["01310100", "22041001"]
        assert form["postal_code"] == "22041-001"
        assert form["street"] == "Avenida Atlântica"
        assert form["city"] == "Rio de Janeiro"
        assert form["state"] == "RJ"
        assert validation.state("city") is FieldState.VALID
        assert applied == ["street", "neighborhood", "city", "state"]

    def test_response_discarded_when_field_no_longer_matches(self):
        client = FakePostalClient({"01310100": PAULISTA}, auto=False)

        async def scenario():
            adapter, form, validation, _ = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await asyncio.sleep(0)
            form["postal_code"] = "01310-10"
            client.release("01310100")
            await adapter.wait_idle()
            return form, validation

        form, validation = asyncio.run(scenario())
        assert form["street"] == ""
        assert validation.state("street") is FieldState.DEFAULT

    def test_stale_failure_is_discarded(self):
        client = FakePostalClient({"22041001": COPACABANA}, auto=False)
        client.failures.add("01310100")

        async def scenario():
            adapter, form, validation, _ = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await asyncio.sleep(0)
            type_postal_code(adapter, form, "22041-001")
            client.release("22041001")
            client.release("01310100")
            await adapter.wait_idle()
            return validation

        validation = asyncio.run(scenario())
        assert validation.state("postal_code") is FieldState.DEFAULT
        assert validation.error("postal_code") == ""

    def test_cancel_drops_in_flight_lookups(self):
        client = FakePostalClient({"01310100": PAULISTA}, auto=False)

        async def scenario():
            adapter, form, _, _ = make_adapter(client)
            type_postal_code(adapter, form, "01310-100")
            await asyncio.sleep(0)
            adapter.cancel()
            client.release("01310100")
            await asyncio.sleep(0.01)
            return adapter, form

        adapter, form = asyncio.run(scenario())
        assert adapter.in_flight == 0
        assert adapter.latest_token is None
        assert form["street"] == ""
