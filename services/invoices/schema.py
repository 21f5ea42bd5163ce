"""Invoice and validation result models.

Invoices arrive from accounting/CRM platforms (QuickBook, Salesforce, Odoo)
and are validated for arithmetic consistency. Models are immutable; the
arithmetic invariants are checked by the validator, not enforced here.

JSON field names are camelCase to match the platform payloads; Python code
uses the snake_case attribute names.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Organization(str, Enum):
    """Platform an invoice was fetched from."""

    QUICKBOOK = "quickBook"
    SALESFORCE = "salesForce"
    ODOO = "odoo"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Organization.QUICKBOOK: "QuickBook",
    Organization.SALESFORCE: "Salesforce",
    Organization.ODOO: "Odoo",
}


class Severity(str, Enum):
    """Issue severity. Only errors affect validity."""

    ERROR = "error"
    WARNING = "warning"


class LineItem(_FrozenModel):
    """One priced entry on an invoice (quantity x unit price = line total)."""

    id: str = Field(..., description="Line identifier within the invoice")
    description: str = Field(..., description="Item description")
    quantity: float = Field(..., description="Quantity billed")
    unit_price: float = Field(..., description="Price per unit")
    line_total: float = Field(..., description="Stated line total")


class Invoice(_FrozenModel):
    """Invoice snapshot as fetched from a platform.

    Expected identities (checked, not enforced):
    - subtotal = sum of line totals
    - tax_amount = subtotal x tax_rate
    - grand_total = subtotal + tax_amount - discounts
    """

    id: str = Field(..., description="Invoice identifier on the source platform")
    organization: Organization = Field(..., description="Source platform")
    vendor: str = Field(..., description="Vendor/partner name")
    date: str = Field(..., description="Invoice date (ISO 8601 calendar date)")
    line_items: tuple[LineItem, ...] = Field(default=(), description="Ordered line items")
    subtotal: float = Field(..., description="Stated subtotal")
    tax_rate: float = Field(..., description="Tax rate as a fraction, e.g. 0.08 for 8%")
    tax_amount: float = Field(..., description="Stated tax amount")
    discounts: float = Field(0.0, description="Total discounts")
    grand_total: float = Field(..., description="Stated grand total")


class ValidationIssue(_FrozenModel):
    """A single discrepancy found on an invoice.

    Attributes:
        field: Dotted/indexed path of the offending field, e.g. "lineItems[2].lineTotal"
        message: Human-readable explanation
        expected: Value the field should have (or the threshold it crossed)
        actual: Value found on the invoice
        severity: error or warning
    """

    field: str
    message: str
    expected: float
    actual: float
    severity: Severity


class ValidationResult(_FrozenModel):
    """Outcome of validating one invoice.

    is_valid is true iff no issue has error severity. llm_analysis is only
    set by the analysis step, never by the rule engine.
    """

    is_valid: bool
    issues: tuple[ValidationIssue, ...] = ()
    llm_analysis: str | None = None

    @classmethod
    def from_issues(
        cls,
        issues: list[ValidationIssue] | tuple[ValidationIssue, ...],
        llm_analysis: str | None = None,
    ) -> "ValidationResult":
        """Build a result, deriving is_valid from the issue severities."""
        return cls(
            is_valid=not any(issue.severity == Severity.ERROR for issue in issues),
            issues=tuple(issues),
            llm_analysis=llm_analysis,
        )

    @property
    def errors(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.severity == Severity.WARNING]
