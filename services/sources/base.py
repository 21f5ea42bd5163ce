"""Abstract base class for invoice sources.

Each platform (QuickBook, Salesforce, Odoo) exposes invoices through one
InvoiceSource implementation. Sources own construction of Invoice models:
a record with missing or non-numeric fields fails here, before validation.
"""

from abc import ABC, abstractmethod

from services.invoices.schema import Invoice, Organization
from services.shared.config import Settings


class InvoiceSourceError(Exception):
    """Transport or remote-side failure while fetching an invoice."""


class InvoiceNotFoundError(InvoiceSourceError):
    """No invoice with the given id exists on the platform."""

    def __init__(self, invoice_id: str, organization: Organization) -> None:
        self.invoice_id = invoice_id
        self.organization = organization
        super().__init__(f"Invoice {invoice_id} not found in {organization.display_name}")


class InvoiceSource(ABC):
    """Interface for fetching invoices from one platform."""

    def __init__(self, settings: Settings) -> None:
        """Initialize source with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @property
    @abstractmethod
    def organization(self) -> Organization:
        """Platform this source reads from."""
        pass

    @abstractmethod
    async def fetch_invoice(self, invoice_id: str) -> Invoice:
        """Fetch one invoice by its platform identifier.

        Args:
            invoice_id: Invoice identifier (case-insensitive for mock data)

        Returns:
            Invoice snapshot

        Raises:
            InvoiceNotFoundError: If no matching invoice exists
            InvoiceSourceError: If the platform could not be reached
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the source."""
        return None
