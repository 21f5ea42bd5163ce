"""Arithmetic consistency rules for invoices.

Five independent checks run against the same invoice snapshot:

1. Line item totals (quantity x unit price = line total)
2. Subtotal (sum of stated line totals = subtotal)
3. Tax (subtotal x tax rate = tax amount, plus tax rate sanity)
4. Grand total (subtotal + tax - discounts = grand total)
5. Unusual patterns (negative quantities, non-positive prices, odd discounts)

Checks never short-circuit: a wrong line total also surfaces as a wrong
subtotal if the stated subtotal was derived from it, and both are reported.
Expected values are rounded to cents (half away from zero) and compared with
an absolute tolerance of one cent.
"""

import math
from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal

from services.invoices.schema import Invoice, Severity, ValidationIssue, ValidationResult

TOLERANCE = 0.01
MAX_TAX_RATE = 0.25
MIN_UNIT_PRICE = 0.01
EXACT_FLOAT_LIMIT = 2.0**52

Rule = Callable[[Invoice], list[ValidationIssue]]


def round2(value: float) -> float:
    """Round to 2 decimals, ties away from zero.

    Rounds value x 100 to an integer and divides back by 100. The product is
    converted through its shortest repr so 0.285 x 100 = 28.499999999999996
    stays below the tie, as it does in float arithmetic.

    Products at or above 2**52 have no fractional part and are returned as is.
    """
    scaled = value * 100
    if not math.isfinite(scaled) or abs(scaled) >= EXACT_FLOAT_LIMIT:
        return value
    return float(Decimal(repr(scaled)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)) / 100


def is_equal(a: float, b: float) -> bool:
    return abs(a - b) < TOLERANCE


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def check_line_items(invoice: Invoice) -> list[ValidationIssue]:
    """Each line total must equal quantity x unit price."""
    issues = []
    for index, item in enumerate(invoice.line_items):
        expected = round2(item.quantity * item.unit_price)
        if not is_equal(item.line_total, expected):
            issues.append(
                ValidationIssue(
                    field=f"lineItems[{index}].lineTotal",
                    message=(
                        f'Line item "{item.description}": quantity ({item.quantity:g}) x '
                        f"unit price ({_money(item.unit_price)}) should equal "
                        f"{_money(expected)}, but got {_money(item.line_total)}"
                    ),
                    expected=expected,
                    actual=item.line_total,
                    severity=Severity.ERROR,
                )
            )
    return issues


def check_subtotal(invoice: Invoice) -> list[ValidationIssue]:
    """Subtotal must equal the sum of the stated line totals."""
    expected = round2(sum(item.line_total for item in invoice.line_items))
    if is_equal(invoice.subtotal, expected):
        return []
    return [
        ValidationIssue(
            field="subtotal",
            message=(
                f"Subtotal should be the sum of line items ({_money(expected)}), "
                f"but got {_money(invoice.subtotal)}"
            ),
            expected=expected,
            actual=invoice.subtotal,
            severity=Severity.ERROR,
        )
    ]


def check_tax(invoice: Invoice) -> list[ValidationIssue]:
    """Tax amount must equal subtotal x tax rate; tax rate must be sane."""
    issues = []

    expected = round2(invoice.subtotal * invoice.tax_rate)
    if not is_equal(invoice.tax_amount, expected):
        issues.append(
            ValidationIssue(
                field="taxAmount",
                message=(
                    f"Tax amount should be subtotal ({_money(invoice.subtotal)}) x "
                    f"tax rate ({_percent(invoice.tax_rate)}) = {_money(expected)}, "
                    f"but got {_money(invoice.tax_amount)}"
                ),
                expected=expected,
                actual=invoice.tax_amount,
                severity=Severity.ERROR,
            )
        )

    if invoice.tax_rate > MAX_TAX_RATE:
        issues.append(
            ValidationIssue(
                field="taxRate",
                message=f"Tax rate of {_percent(invoice.tax_rate)} seems unusually high",
                expected=MAX_TAX_RATE,
                actual=invoice.tax_rate,
                severity=Severity.WARNING,
            )
        )

    if invoice.tax_rate < 0:
        issues.append(
            ValidationIssue(
                field="taxRate",
                message=f"Tax rate cannot be negative ({_percent(invoice.tax_rate)})",
                expected=0.0,
                actual=invoice.tax_rate,
                severity=Severity.ERROR,
            )
        )

    return issues


def check_grand_total(invoice: Invoice) -> list[ValidationIssue]:
    """Grand total must equal subtotal + tax amount - discounts."""
    expected = round2(invoice.subtotal + invoice.tax_amount - invoice.discounts)
    if is_equal(invoice.grand_total, expected):
        return []
    return [
        ValidationIssue(
            field="grandTotal",
            message=(
                f"Grand total should be subtotal ({_money(invoice.subtotal)}) + "
                f"tax ({_money(invoice.tax_amount)}) - discounts "
                f"({_money(invoice.discounts)}) = {_money(expected)}, "
                f"but got {_money(invoice.grand_total)}"
            ),
            expected=expected,
            actual=invoice.grand_total,
            severity=Severity.ERROR,
        )
    ]


def check_unusual_patterns(invoice: Invoice) -> list[ValidationIssue]:
    """Flag values that are suspicious without breaking an identity."""
    issues = []

    for index, item in enumerate(invoice.line_items):
        if item.quantity < 0:
            issues.append(
                ValidationIssue(
                    field=f"lineItems[{index}].quantity",
                    message=(
                        f'Line item "{item.description}" has negative quantity '
                        f"({item.quantity:g})"
                    ),
                    expected=0.0,
                    actual=item.quantity,
                    severity=Severity.WARNING,
                )
            )

        if item.unit_price <= 0:
            issues.append(
                ValidationIssue(
                    field=f"lineItems[{index}].unitPrice",
                    message=(
                        f'Line item "{item.description}" has zero or negative unit price '
                        f"({_money(item.unit_price)})"
                    ),
                    expected=MIN_UNIT_PRICE,
                    actual=item.unit_price,
                    severity=Severity.WARNING,
                )
            )

    # A negative discount adds to the total
    if invoice.discounts < 0:
        issues.append(
            ValidationIssue(
                field="discounts",
                message=f"Discounts should not be negative ({_money(invoice.discounts)})",
                expected=0.0,
                actual=invoice.discounts,
                severity=Severity.WARNING,
            )
        )

    if invoice.discounts > invoice.subtotal:
        issues.append(
            ValidationIssue(
                field="discounts",
                message=(
                    f"Discount ({_money(invoice.discounts)}) exceeds subtotal "
                    f"({_money(invoice.subtotal)})"
                ),
                expected=invoice.subtotal,
                actual=invoice.discounts,
                severity=Severity.WARNING,
            )
        )

    return issues


# Execution order determines issue order in the result
RULES: tuple[Rule, ...] = (
    check_line_items,
    check_subtotal,
    check_tax,
    check_grand_total,
    check_unusual_patterns,
)


def validate(invoice: Invoice) -> ValidationResult:
    """Run every rule against the invoice.

    Args:
        invoice: Invoice snapshot to check (not modified)

    Returns:
        ValidationResult with issues in rule order; valid iff no error-severity issue
    """
    issues: list[ValidationIssue] = []
    for rule in RULES:
        issues.extend(rule(invoice))
    return ValidationResult.from_issues(issues)
