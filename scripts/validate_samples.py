#!/usr/bin/env python3
"""Run every sample invoice through the validator and print a report.

Shows, per invoice, whether it is valid and each issue found. With
--analyze, the configured LLM provider is asked for a narrative analysis
as well (requires its API key or a running Ollama server).

Usage:
    python scripts/validate_samples.py
    python scripts/validate_samples.py --analyze
"""

import argparse
import asyncio

from services.analysis.factory import create_analysis_provider
from services.analysis.service import augment
from services.invoices.schema import Invoice, ValidationResult
from services.shared.config import Settings
from services.shared.logging_config import configure_logging
from services.sources.mock_data import all_mock_invoices
from services.validation.rules import validate


async def run(analyze: bool) -> int:
    """Validate all sample invoices.

    Args:
        analyze: Also request an LLM analysis for each invoice

    Returns:
        Number of invalid invoices
    """
    settings = Settings(_env_file=None)
    provider = create_analysis_provider(settings) if analyze else None

    print("=" * 80)
    print("SAMPLE INVOICE VALIDATION")
    print("=" * 80)

    invalid = 0
    for invoice in all_mock_invoices():
        result = validate(invoice)
        if provider is not None:
            result = await augment(invoice, result, provider)
        print_result(invoice, result)
        if not result.is_valid:
            invalid += 1

    print("\n" + "=" * 80)
    print(f"{invalid} invalid invoice(s) out of {len(all_mock_invoices())}")
    return invalid


def print_result(invoice: Invoice, result: ValidationResult) -> None:
    """Print one invoice's validation outcome."""
    status = "✓ VALID" if result.is_valid else "✗ INVALID"
    print(f"\n{invoice.id} ({invoice.organization.display_name}, {invoice.vendor}): {status}")
    print("-" * 80)

    if not result.issues:
        print("  No issues found")
    for issue in result.issues:
        print(f"  [{issue.severity.value.upper():7}] {issue.field}: {issue.message}")

    if result.llm_analysis:
        print("\n  LLM analysis:")
        for line in result.llm_analysis.splitlines():
            print(f"    {line}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--analyze", action="store_true", help="Request an LLM analysis for each invoice"
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    args = parser.parse_args()

    configure_logging(args.log_level.upper())
    asyncio.run(run(args.analyze))


if __name__ == "__main__":
    main()
