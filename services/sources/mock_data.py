"""Sample invoices used in place of live platform APIs.

Several invoices carry deliberate arithmetic bugs so every rule has
something to find. Comments mark the intended defect.
"""

from services.invoices.schema import Invoice, LineItem, Organization

QUICKBOOK_INVOICES: tuple[Invoice, ...] = (
    Invoice(
        id="QB-INV-001",
        organization=Organization.QUICKBOOK,
        vendor="Acme Corporation",
        date="2024-12-15",
        line_items=(
            LineItem(id="L1", description="Widget A - Standard", quantity=10, unit_price=25.00, line_total=250.00),
            LineItem(id="L2", description="Widget B - Premium", quantity=5, unit_price=50.00, line_total=250.00),
            LineItem(id="L3", description="Shipping & Handling", quantity=1, unit_price=15.00, line_total=15.00),
        ),
        subtotal=515.00,
        tax_rate=0.08,
        tax_amount=41.20,
        discounts=0,
        grand_total=556.20,
    ),
    # Wrong line total, and the subtotal was summed from it
    Invoice(
        id="QB-INV-002",
        organization=Organization.QUICKBOOK,
        vendor="Tech Solutions Ltd",
        date="2024-12-18",
        line_items=(
            LineItem(id="L1", description="Consulting Services", quantity=3, unit_price=100.00, line_total=290.00),
            LineItem(id="L2", description="Software License", quantity=2, unit_price=150.00, line_total=300.00),
        ),
        subtotal=590.00,
        tax_rate=0.10,
        tax_amount=59.00,
        discounts=50.00,
        grand_total=599.00,
    ),
    # Tax should be 37.10; grand total follows the wrong tax
    Invoice(
        id="QB-INV-003",
        organization=Organization.QUICKBOOK,
        vendor="Office Supplies Inc",
        date="2024-12-20",
        line_items=(
            LineItem(id="L1", description="Printer Paper (Box)", quantity=10, unit_price=35.00, line_total=350.00),
            LineItem(id="L2", description="Ink Cartridges", quantity=4, unit_price=45.00, line_total=180.00),
        ),
        subtotal=530.00,
        tax_rate=0.07,
        tax_amount=40.00,
        discounts=20.00,
        grand_total=550.00,
    ),
)

SALESFORCE_INVOICES: tuple[Invoice, ...] = (
    Invoice(
        id="SF-INV-001",
        organization=Organization.SALESFORCE,
        vendor="Global Marketing Agency",
        date="2024-12-10",
        line_items=(
            LineItem(id="L1", description="Digital Marketing Campaign", quantity=1, unit_price=2500.00, line_total=2500.00),
            LineItem(id="L2", description="Social Media Management", quantity=3, unit_price=500.00, line_total=1500.00),
            LineItem(id="L3", description="Content Creation", quantity=10, unit_price=75.00, line_total=750.00),
        ),
        subtotal=4750.00,
        tax_rate=0.085,
        tax_amount=403.75,
        discounts=250.00,
        grand_total=4903.75,
    ),
    # Subtotal should be 2000; tax and grand total were computed from it
    Invoice(
        id="SF-INV-002",
        organization=Organization.SALESFORCE,
        vendor="Cloud Services Pro",
        date="2024-12-12",
        line_items=(
            LineItem(id="L1", description="Cloud Hosting (Annual)", quantity=1, unit_price=1200.00, line_total=1200.00),
            LineItem(id="L2", description="SSL Certificate", quantity=2, unit_price=100.00, line_total=200.00),
            LineItem(id="L3", description="Technical Support", quantity=12, unit_price=50.00, line_total=600.00),
        ),
        subtotal=1900.00,
        tax_rate=0.06,
        tax_amount=114.00,
        discounts=0,
        grand_total=2014.00,
    ),
    # Grand total should be 2080
    Invoice(
        id="SF-INV-003",
        organization=Organization.SALESFORCE,
        vendor="Enterprise Solutions",
        date="2024-12-19",
        line_items=(
            LineItem(id="L1", description="Enterprise License", quantity=5, unit_price=300.00, line_total=1500.00),
            LineItem(id="L2", description="Training Sessions", quantity=2, unit_price=250.00, line_total=500.00),
        ),
        subtotal=2000.00,
        tax_rate=0.09,
        tax_amount=180.00,
        discounts=100.00,
        grand_total=2100.00,
    ),
    Invoice(
        id="SF-INV-004",
        organization=Organization.SALESFORCE,
        vendor="Data Analytics Corp",
        date="2024-12-21",
        line_items=(
            LineItem(id="L1", description="Data Analysis Package", quantity=1, unit_price=800.00, line_total=800.00),
            LineItem(id="L2", description="Report Generation", quantity=5, unit_price=40.00, line_total=200.00),
        ),
        subtotal=1000.00,
        tax_rate=0.05,
        tax_amount=50.00,
        discounts=0,
        grand_total=1050.00,
    ),
)

# Demo records served before falling through to a live Odoo server
ODOO_INVOICES: tuple[Invoice, ...] = (
    Invoice(
        id="ODO-INV-001",
        organization=Organization.ODOO,
        vendor="Nordic Furniture AB",
        date="2024-12-02",
        line_items=(
            LineItem(id="L1", description="Office Chair", quantity=4, unit_price=120.00, line_total=480.00),
            LineItem(id="L2", description="Desk Lamp", quantity=6, unit_price=35.50, line_total=213.00),
        ),
        subtotal=693.00,
        tax_rate=0.15,
        tax_amount=103.95,
        discounts=0,
        grand_total=796.95,
    ),
    # Tax rate above the 25% sanity threshold
    Invoice(
        id="ODO-INV-002",
        organization=Organization.ODOO,
        vendor="Harbor Legal Partners",
        date="2024-12-05",
        line_items=(
            LineItem(id="L1", description="Contract Review (hours)", quantity=8, unit_price=95.00, line_total=760.00),
        ),
        subtotal=760.00,
        tax_rate=0.30,
        tax_amount=228.00,
        discounts=0,
        grand_total=988.00,
    ),
    # Returned item with negative quantity and a free setup line
    Invoice(
        id="ODO-INV-003",
        organization=Organization.ODOO,
        vendor="Peripheral World",
        date="2024-12-09",
        line_items=(
            LineItem(id="L1", description="Mechanical Keyboard", quantity=10, unit_price=45.00, line_total=450.00),
            LineItem(id="L2", description="Returned Monitor", quantity=-1, unit_price=250.00, line_total=-250.00),
            LineItem(id="L3", description="Setup Fee", quantity=1, unit_price=0.00, line_total=0.00),
        ),
        subtotal=200.00,
        tax_rate=0.10,
        tax_amount=20.00,
        discounts=0,
        grand_total=220.00,
    ),
    # Discount larger than the subtotal
    Invoice(
        id="ODO-INV-004",
        organization=Organization.ODOO,
        vendor="Trade Show Samples Co",
        date="2024-12-11",
        line_items=(
            LineItem(id="L1", description="Sample Pack", quantity=2, unit_price=15.00, line_total=30.00),
        ),
        subtotal=30.00,
        tax_rate=0.05,
        tax_amount=1.50,
        discounts=50.00,
        grand_total=-18.50,
    ),
)

MOCK_INVOICES: dict[Organization, tuple[Invoice, ...]] = {
    Organization.QUICKBOOK: QUICKBOOK_INVOICES,
    Organization.SALESFORCE: SALESFORCE_INVOICES,
    Organization.ODOO: ODOO_INVOICES,
}


def all_mock_invoices() -> list[Invoice]:
    return [invoice for invoices in MOCK_INVOICES.values() for invoice in invoices]


def sample_invoice_ids(organization: Organization) -> list[str]:
    return [invoice.id for invoice in MOCK_INVOICES[organization]]


def find_mock_invoice(invoice_id: str, organization: Organization) -> Invoice | None:
    """Look up a sample invoice, ignoring case of the id.

    Args:
        invoice_id: Invoice identifier, e.g. "qb-inv-001"
        organization: Platform to search

    Returns:
        Matching invoice or None
    """
    wanted = invoice_id.strip().lower()
    for invoice in MOCK_INVOICES[organization]:
        if invoice.id.lower() == wanted:
            return invoice
    return None
