"""Factory selecting the invoice source for an organization."""

import logging

from services.invoices.schema import Invoice, Organization
from services.shared.config import Settings
from services.sources.base import InvoiceSource
from services.sources.mock_source import MockInvoiceSource
from services.sources.odoo_source import OdooInvoiceSource

logger = logging.getLogger(__name__)


def get_invoice_source(organization: Organization, settings: Settings) -> InvoiceSource:
    """Create the source for an organization.

    QuickBook and Salesforce are served from sample data; Odoo uses the
    JSON-RPC integration (which also knows the Odoo sample ids).

    Args:
        organization: Platform to read from
        settings: Application settings

    Returns:
        InvoiceSource for that platform

    Raises:
        ValueError: If organization is not a known platform
    """
    if organization == Organization.ODOO:
        return OdooInvoiceSource(settings)
    if organization in (Organization.QUICKBOOK, Organization.SALESFORCE):
        return MockInvoiceSource(organization, settings)
    raise ValueError(f"Unknown organization: {organization}")


async def fetch_invoice(
    invoice_id: str, organization: Organization, settings: Settings
) -> Invoice:
    """Fetch an invoice from the platform it belongs to.

    Raises:
        InvoiceNotFoundError: If the platform has no such invoice
        InvoiceSourceError: If the platform could not be reached
    """
    source = get_invoice_source(organization, settings)
    logger.debug(f"Fetching invoice {invoice_id} from {organization.value}")
    try:
        return await source.fetch_invoice(invoice_id)
    finally:
        await source.aclose()
