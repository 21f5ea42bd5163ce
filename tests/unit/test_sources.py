"""Unit tests for invoice sources.

Tests cover:
- Sample data lookup
- Mock source behaviour and not-found errors
- Odoo JSON-RPC source with a mocked transport
- Source factory selection
"""

import json
from typing import Any

import httpx
import pytest

from services.invoices.schema import Organization
from services.shared.config import Settings
from services.sources.base import InvoiceNotFoundError, InvoiceSourceError
from services.sources.factory import fetch_invoice, get_invoice_source
from services.sources.mock_data import (
    all_mock_invoices,
    find_mock_invoice,
    sample_invoice_ids,
)
from services.sources.mock_source import MockInvoiceSource
from services.sources.odoo_source import OdooInvoiceSource, to_invoice


@pytest.fixture
def settings() -> Settings:
    """Settings with no simulated latency and Odoo credentials."""
    return Settings(
        _env_file=None,
        mock_latency_seconds=0,
        odoo_url="https://odoo.example.com/",
        odoo_db="demo",
        odoo_username="admin@example.com",
        odoo_api_key="secret",
    )


ODOO_MOVE = {
    "id": 42,
    "name": "INV/2024/00042",
    "partner_id": [7, "Azure Interior"],
    "invoice_date": "2024-11-30",
    "amount_untaxed": 1000.0,
    "amount_tax": 150.0,
    "amount_total": 1150.0,
    "invoice_line_ids": [101, 102, 103],
}

ODOO_LINES = [
    {"id": 101, "name": "Large Desk", "quantity": 2.0, "price_unit": 400.0, "price_subtotal": 800.0},
    {"id": 102, "name": "Chair", "quantity": 4.0, "price_unit": 50.0, "price_subtotal": 200.0},
    {"id": 103, "name": "Section: Furniture", "quantity": 0.0, "price_unit": 0.0, "price_subtotal": 0.0},
]


class OdooServer:
    """Fake Odoo /jsonrpc endpoint recording calls."""

    def __init__(self, search_result: list[int] | None = None, uid: Any = 2) -> None:
        self.search_result = [42] if search_result is None else search_result
        self.uid = uid
        self.calls: list[dict[str, Any]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        params = payload["params"]
        self.calls.append(params)

        if params["service"] == "common":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": self.uid})

        model, method = params["args"][3], params["args"][4]
        if (model, method) == ("account.move", "search"):
            result: Any = self.search_result
        elif (model, method) == ("account.move", "read"):
            result = [ODOO_MOVE]
        elif (model, method) == ("account.move.line", "read"):
            result = ODOO_LINES
        else:
            result = None
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})


def odoo_source(settings: Settings, handler: Any) -> OdooInvoiceSource:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OdooInvoiceSource(settings, client=client)


class TestMockData:
    """Test sample invoice lookup."""

    def test_find_is_case_insensitive(self) -> None:
        invoice = find_mock_invoice("qb-inv-001", Organization.QUICKBOOK)

        assert invoice is not None
        assert invoice.id == "QB-INV-001"

    def test_find_scoped_to_organization(self) -> None:
        assert find_mock_invoice("QB-INV-001", Organization.SALESFORCE) is None

    def test_sample_ids(self) -> None:
        assert sample_invoice_ids(Organization.QUICKBOOK) == ["QB-INV-001", "QB-INV-002", "QB-INV-003"]
        assert len(sample_invoice_ids(Organization.SALESFORCE)) == 4
        assert len(sample_invoice_ids(Organization.ODOO)) == 4

    def test_all_invoices_match_their_organization(self) -> None:
        invoices = all_mock_invoices()

        assert len(invoices) == 11
        for invoice in invoices:
            assert find_mock_invoice(invoice.id, invoice.organization) is invoice


class TestMockSource:
    """Test the in-memory source."""

    @pytest.mark.asyncio
    async def test_fetch_existing(self, settings: Settings) -> None:
        source = MockInvoiceSource(Organization.SALESFORCE, settings)

        invoice = await source.fetch_invoice("SF-INV-002")

        assert invoice.vendor == "Cloud Services Pro"
        assert source.organization == Organization.SALESFORCE

    @pytest.mark.asyncio
    async def test_fetch_missing_raises_not_found(self, settings: Settings) -> None:
        source = MockInvoiceSource(Organization.QUICKBOOK, settings)

        with pytest.raises(InvoiceNotFoundError, match="not found in QuickBook") as exc_info:
            await source.fetch_invoice("QB-INV-999")

        assert exc_info.value.invoice_id == "QB-INV-999"
        assert exc_info.value.organization == Organization.QUICKBOOK


class TestOdooSource:
    """Test the Odoo JSON-RPC source."""

    @pytest.mark.asyncio
    async def test_demo_id_served_from_mock_data(self, settings: Settings) -> None:
        server = OdooServer()
        source = odoo_source(settings, server.handler)

        invoice = await source.fetch_invoice("odo-inv-002")

        assert invoice.id == "ODO-INV-002"
        assert server.calls == []

    @pytest.mark.asyncio
    async def test_fetch_from_server(self, settings: Settings) -> None:
        server = OdooServer()
        source = odoo_source(settings, server.handler)

        invoice = await source.fetch_invoice("INV/2024/00042")

        assert invoice.id == "INV/2024/00042"
        assert invoice.organization == Organization.ODOO
        assert invoice.vendor == "Azure Interior"
        assert invoice.tax_rate == 0.15
        assert [item.description for item in invoice.line_items] == ["Large Desk", "Chair"]
        assert [item.id for item in invoice.line_items] == ["L1", "L2"]

        services = [(c["service"], c["method"]) for c in server.calls]
        assert services[0] == ("common", "authenticate")
        assert services.count(("common", "authenticate")) == 1
        search_args = server.calls[1]["args"]
        assert search_args[:3] == ["demo", 2, "secret"]
        assert search_args[5] == [
            [["name", "ilike", "INV/2024/00042"], ["move_type", "in", ["out_invoice", "in_invoice"]]]
        ]

    @pytest.mark.asyncio
    async def test_uid_cached_between_fetches(self, settings: Settings) -> None:
        server = OdooServer()
        source = odoo_source(settings, server.handler)

        await source.fetch_invoice("INV/2024/00042")
        await source.fetch_invoice("INV/2024/00042")

        assert [c["method"] for c in server.calls].count("authenticate") == 1

    @pytest.mark.asyncio
    async def test_not_found(self, settings: Settings) -> None:
        source = odoo_source(settings, OdooServer(search_result=[]).handler)

        with pytest.raises(InvoiceNotFoundError):
            await source.fetch_invoice("INV/0000")

    @pytest.mark.asyncio
    async def test_authentication_failure(self, settings: Settings) -> None:
        source = odoo_source(settings, OdooServer(uid=False).handler)

        with pytest.raises(InvoiceSourceError, match="authentication failed"):
            await source.fetch_invoice("INV/2024/00042")
        assert await source.test_connection() is False

    @pytest.mark.asyncio
    async def test_test_connection_success(self, settings: Settings) -> None:
        source = odoo_source(settings, OdooServer().handler)

        assert await source.test_connection() is True

    @pytest.mark.asyncio
    async def test_json_rpc_error_payload(self, settings: Settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": 1,
                    "error": {
                        "code": 200,
                        "message": "Odoo Server Error",
                        "data": {"name": "AccessDenied", "debug": "", "message": "Access Denied"},
                    },
                },
            )

        source = odoo_source(settings, handler)

        with pytest.raises(InvoiceSourceError, match="Access Denied"):
            await source.fetch_invoice("INV/2024/00042")

    @pytest.mark.asyncio
    async def test_http_error(self, settings: Settings) -> None:
        source = odoo_source(settings, lambda request: httpx.Response(503))

        with pytest.raises(InvoiceSourceError, match="Odoo request failed"):
            await source.fetch_invoice("INV/2024/00042")

    @pytest.mark.asyncio
    async def test_unconfigured(self) -> None:
        source = OdooInvoiceSource(Settings(_env_file=None, mock_latency_seconds=0))

        with pytest.raises(InvoiceSourceError, match="not configured"):
            await source.fetch_invoice("INV/2024/00042")
        await source.aclose()

    @pytest.mark.asyncio
    async def test_unknown_demo_id_not_found_without_server(self) -> None:
        source = OdooInvoiceSource(Settings(_env_file=None, mock_latency_seconds=0))

        with pytest.raises(InvoiceNotFoundError, match="ODO-INV-999 not found in Odoo"):
            await source.fetch_invoice("ODO-INV-999")
        await source.aclose()

    @pytest.mark.asyncio
    async def test_unknown_demo_id_not_sent_to_server(self, settings: Settings) -> None:
        server = OdooServer()
        source = odoo_source(settings, server.handler)

        with pytest.raises(InvoiceNotFoundError):
            await source.fetch_invoice("odo-inv-999")
        assert server.calls == []


class TestToInvoice:
    """Test mapping of Odoo records."""

    def test_zero_subtotal_gives_zero_rate(self) -> None:
        record = {**ODOO_MOVE, "amount_untaxed": 0.0, "amount_tax": 0.0, "amount_total": 0.0}

        assert to_invoice(record, []).tax_rate == 0.0

    def test_rate_rounded_to_four_places(self) -> None:
        record = {**ODOO_MOVE, "amount_untaxed": 300.0, "amount_tax": 25.0}

        assert to_invoice(record, []).tax_rate == 0.0833

    def test_missing_partner_and_date(self) -> None:
        record = {**ODOO_MOVE, "partner_id": False, "invoice_date": False}

        invoice = to_invoice(record, [])

        assert invoice.vendor == "Unknown Vendor"
        assert len(invoice.date) == 10
        assert invoice.discounts == 0.0


class TestFactory:
    """Test source selection."""

    def test_odoo_uses_json_rpc_source(self, settings: Settings) -> None:
        assert isinstance(get_invoice_source(Organization.ODOO, settings), OdooInvoiceSource)

    @pytest.mark.parametrize("organization", [Organization.QUICKBOOK, Organization.SALESFORCE])
    def test_others_use_mock_source(self, organization: Organization, settings: Settings) -> None:
        source = get_invoice_source(organization, settings)

        assert isinstance(source, MockInvoiceSource)
        assert source.organization == organization

    @pytest.mark.asyncio
    async def test_fetch_invoice(self, settings: Settings) -> None:
        invoice = await fetch_invoice("SF-INV-004", Organization.SALESFORCE, settings)

        assert invoice.grand_total == 1050.00

    @pytest.mark.asyncio
    async def test_fetch_invoice_not_found(self, settings: Settings) -> None:
        with pytest.raises(InvoiceNotFoundError):
            await fetch_invoice("nope", Organization.QUICKBOOK, settings)
