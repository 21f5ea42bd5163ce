"""Odoo invoice source over JSON-RPC.

Talks to the Odoo external API (``/jsonrpc``) with httpx:
authenticate once via the ``common`` service, then search and read
``account.move`` / ``account.move.line`` through ``object.execute_kw``.

See: https://www.odoo.com/documentation/17.0/developer/reference/external_api.html

Demo ids with the ODO-INV- prefix are served only from mock data so the
service works without an Odoo server.
"""

import itertools
import logging
from datetime import date
from typing import Any

import httpx

from services.invoices.schema import Invoice, LineItem, Organization
from services.shared.config import Settings
from services.sources.base import InvoiceNotFoundError, InvoiceSource, InvoiceSourceError
from services.sources.mock_source import MockInvoiceSource

logger = logging.getLogger(__name__)

MOCK_ID_PREFIX = "ODO-INV-"

INVOICE_FIELDS = [
    "name",
    "partner_id",
    "invoice_date",
    "amount_untaxed",
    "amount_tax",
    "amount_total",
    "invoice_line_ids",
]
LINE_FIELDS = ["name", "quantity", "price_unit", "price_subtotal"]


class OdooInvoiceSource(InvoiceSource):
    """Invoice source backed by a live Odoo instance."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        """Initialize Odoo source.

        Args:
            settings: Application settings (odoo_url, odoo_db, credentials)
            client: Optional preconfigured HTTP client (used by tests)
        """
        super().__init__(settings)
        self._url = settings.odoo_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=settings.odoo_timeout_seconds)
        self._uid: int | None = None
        self._request_ids = itertools.count(1)

    @property
    def organization(self) -> Organization:
        return Organization.ODOO

    def is_configured(self) -> bool:
        return all(
            (
                self._url,
                self.settings.odoo_db,
                self.settings.odoo_username,
                self.settings.odoo_api_key,
            )
        )

    async def fetch_invoice(self, invoice_id: str) -> Invoice:
        # The demo namespace never reaches the server; unknown demo ids are not found
        if invoice_id.strip().upper().startswith(MOCK_ID_PREFIX):
            return await MockInvoiceSource(Organization.ODOO, self.settings).fetch_invoice(
                invoice_id
            )

        if not self.is_configured():
            raise InvoiceSourceError(
                "Odoo connection is not configured (set APP_ODOO_URL, APP_ODOO_DB, "
                "APP_ODOO_USERNAME and APP_ODOO_API_KEY)"
            )

        move_ids = await self._execute_kw(
            "account.move",
            "search",
            [[["name", "ilike", invoice_id], ["move_type", "in", ["out_invoice", "in_invoice"]]]],
            {"limit": 1},
        )
        if not move_ids:
            raise InvoiceNotFoundError(invoice_id, Organization.ODOO)

        records = await self._execute_kw(
            "account.move", "read", [move_ids], {"fields": INVOICE_FIELDS}
        )
        if not records:
            raise InvoiceSourceError(f'Could not read invoice "{invoice_id}" from Odoo')
        record = records[0]

        lines: list[dict[str, Any]] = []
        if record.get("invoice_line_ids"):
            lines = await self._execute_kw(
                "account.move.line",
                "read",
                [record["invoice_line_ids"]],
                {"fields": LINE_FIELDS},
            )

        invoice = to_invoice(record, lines)
        logger.info(f"Fetched Odoo invoice {invoice.id} with {len(invoice.line_items)} line(s)")
        return invoice

    async def aclose(self) -> None:
        await self._client.aclose()

    async def test_connection(self) -> bool:
        """Check that the configured credentials authenticate.

        Returns:
            True if authentication succeeds
        """
        try:
            await self._authenticate()
            return True
        except Exception as e:
            logger.warning(f"Odoo connection test failed: {e}")
            return False

    async def _authenticate(self) -> int:
        if self._uid:
            return self._uid

        uid = await self._json_rpc(
            "common",
            "authenticate",
            [self.settings.odoo_db, self.settings.odoo_username, self.settings.odoo_api_key, {}],
        )
        if not uid:
            raise InvoiceSourceError("Odoo authentication failed. Check your credentials.")

        self._uid = uid
        return uid

    async def _execute_kw(
        self,
        model: str,
        method: str,
        args: list[Any],
        kwargs: dict[str, Any] | None = None,
    ) -> Any:
        uid = await self._authenticate()
        return await self._json_rpc(
            "object",
            "execute_kw",
            [
                self.settings.odoo_db,
                uid,
                self.settings.odoo_api_key,
                model,
                method,
                args,
                kwargs or {},
            ],
        )

    async def _json_rpc(self, service: str, method: str, args: list[Any]) -> Any:
        """Send one JSON-RPC 2.0 call and unwrap its result.

        Raises:
            InvoiceSourceError: On HTTP failure or a JSON-RPC error payload
        """
        payload = {
            "jsonrpc": "2.0",
            "method": "call",
            "params": {"service": service, "method": method, "args": args},
            "id": next(self._request_ids),
        }
        try:
            response = await self._client.post(f"{self._url}/jsonrpc", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise InvoiceSourceError(f"Odoo request failed: {e}") from e

        error = data.get("error")
        if error:
            detail = (error.get("data") or {}).get("message") or error.get("message")
            raise InvoiceSourceError(f"Odoo error: {detail}")

        return data.get("result")


def to_invoice(record: dict[str, Any], lines: list[dict[str, Any]]) -> Invoice:
    """Map Odoo account.move data onto an Invoice.

    Only product lines (positive quantity and price) are kept; section,
    note and tax lines are dropped. The tax rate is derived from the
    amounts, and discounts are not itemised by Odoo so they are 0.

    Args:
        record: account.move record
        lines: account.move.line records for the invoice

    Returns:
        Invoice for the Odoo organization
    """
    product_lines = [
        line
        for line in lines
        if (line.get("quantity") or 0) > 0 and (line.get("price_unit") or 0) > 0
    ]
    line_items = tuple(
        LineItem(
            id=f"L{index}",
            description=line.get("name") or "Item",
            quantity=line["quantity"],
            unit_price=line["price_unit"],
            line_total=line["price_subtotal"],
        )
        for index, line in enumerate(product_lines, start=1)
    )

    subtotal = record["amount_untaxed"]
    tax_amount = record["amount_tax"]
    tax_rate = round(tax_amount / subtotal, 4) if subtotal > 0 else 0.0

    # partner_id is [id, display_name] or False
    partner = record.get("partner_id")
    vendor = partner[1] if partner else "Unknown Vendor"

    return Invoice(
        id=record["name"],
        organization=Organization.ODOO,
        vendor=vendor,
        date=record.get("invoice_date") or date.today().isoformat(),
        line_items=line_items,
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        discounts=0.0,
        grand_total=record["amount_total"],
    )
