"""Augmentation of rule-based validation results with LLM analysis.

The rule-based result is always computed first and is returned untouched
unless the provider produces text. Issues parsed from that text are appended
after the rule issues and take part in the validity recomputation.
"""

import logging

from services.analysis.base import AnalysisProvider
from services.analysis.parser import parse_llm_response
from services.invoices.schema import Invoice, ValidationResult

logger = logging.getLogger(__name__)


async def augment(
    invoice: Invoice,
    result: ValidationResult,
    provider: AnalysisProvider | None,
) -> ValidationResult:
    """Append a narrative analysis and any issues it names.

    Args:
        invoice: Invoice that was validated
        result: Rule-based validation result for that invoice
        provider: Analysis provider, or None to skip

    Returns:
        The original result if no analysis is available, otherwise a new
        result with llm_analysis set and LLM issues appended
    """
    if provider is None or not provider.is_available():
        logger.debug(f"Skipping analysis for invoice {invoice.id}: no provider available")
        return result

    try:
        analysis = await provider.analyze(invoice)
    except Exception as e:
        logger.error(f"Analysis provider '{provider.provider_name}' raised: {e}")
        return result

    if not analysis:
        logger.info(f"No analysis returned for invoice {invoice.id}")
        return result

    llm_issues = parse_llm_response(analysis)
    logger.info(
        f"Analysis for invoice {invoice.id} by '{provider.provider_name}' "
        f"added {len(llm_issues)} issue(s)"
    )
    return ValidationResult.from_issues(
        [*result.issues, *llm_issues],
        llm_analysis=analysis,
    )
