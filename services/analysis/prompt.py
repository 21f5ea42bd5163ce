"""Prompt text shared by all analysis providers."""

from services.invoices.schema import Invoice

SYSTEM_PROMPT = """You are an expert invoice auditor AI. \
Analyze the provided invoice data and check for:

1. **Mathematical Accuracy**: Verify all calculations are correct
   - Line item totals: quantity x unit_price = line_total
   - Subtotal: sum of all line_totals
   - Tax: subtotal x tax_rate = tax_amount
   - Grand total: subtotal + tax - discounts

2. **Rounding Inconsistencies**: Flag if numbers seem to be rounded differently

3. **Missing or Duplicate Items**: Check for potential data issues

4. **Unusual Patterns**: Flag concerning patterns like:
   - Negative quantities or prices
   - Zero-value items
   - Tax rates above 25% or negative
   - Discounts exceeding the subtotal

5. **Data Integrity**: Check for any inconsistencies in the data

Respond in a structured format with:
- A brief summary of your findings
- Each issue found on its own line, starting with "ERROR:" or "WARNING:"
- Recommendations if issues are found

Be concise but thorough. Focus on actionable insights."""


def format_invoice_for_llm(invoice: Invoice) -> str:
    """Render an invoice as a plain-text block for the model.

    Args:
        invoice: Invoice to describe

    Returns:
        Multi-line text with header, line items and stated calculations
    """
    line_items = "\n".join(
        f"  {number}. {item.description}: qty={item.quantity:g}, "
        f"price=${item.unit_price}, total=${item.line_total}"
        for number, item in enumerate(invoice.line_items, start=1)
    )

    return f"""
INVOICE DETAILS:
================
Invoice ID: {invoice.id}
Organization: {invoice.organization.display_name}
Vendor: {invoice.vendor}
Date: {invoice.date}

LINE ITEMS:
{line_items}

CALCULATIONS:
- Subtotal: ${invoice.subtotal}
- Tax Rate: {invoice.tax_rate * 100:.2f}%
- Tax Amount: ${invoice.tax_amount}
- Discounts: ${invoice.discounts}
- Grand Total: ${invoice.grand_total}
"""


def build_user_prompt(invoice: Invoice) -> str:
    """User message asking for an analysis of the given invoice."""
    return (
        "Please analyze this invoice for any calculation errors or issues:\n"
        f"{format_invoice_for_llm(invoice)}"
    )
