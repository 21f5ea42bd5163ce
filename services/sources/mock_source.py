"""Mock invoice source for platforms without a live integration.

Serves the sample invoices from mock_data after a simulated network delay.
"""

import asyncio
import logging

from services.invoices.schema import Invoice, Organization
from services.shared.config import Settings
from services.sources.base import InvoiceNotFoundError, InvoiceSource
from services.sources.mock_data import find_mock_invoice

logger = logging.getLogger(__name__)


class MockInvoiceSource(InvoiceSource):
    """Invoice source backed by in-memory sample data."""

    def __init__(self, organization: Organization, settings: Settings) -> None:
        """Initialize mock source.

        Args:
            organization: Platform whose sample invoices are served
            settings: Application settings (mock_latency_seconds)
        """
        super().__init__(settings)
        self._organization = organization

    @property
    def organization(self) -> Organization:
        return self._organization

    async def fetch_invoice(self, invoice_id: str) -> Invoice:
        if self.settings.mock_latency_seconds > 0:
            await asyncio.sleep(self.settings.mock_latency_seconds)

        invoice = find_mock_invoice(invoice_id, self._organization)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id, self._organization)

        logger.debug(f"Served mock invoice {invoice.id} for {self._organization.value}")
        return invoice
