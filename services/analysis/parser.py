"""Best-effort extraction of issues from free-form analysis text.

Models are asked to prefix findings with "ERROR:" or "WARNING:", but nothing
guarantees the format. Each line is scanned for one of those prefixes
(case-insensitive), tolerating list markers and markdown emphasis in front of
it. Matches become low-confidence issues on the synthetic "llm_detected" field.
"""

import re

from services.invoices.schema import Severity, ValidationIssue

LLM_FIELD = "llm_detected"

_PREFIX_PATTERN = re.compile(
    r"""^\s*
    (?:[-*•]\s*|\d+[.)]\s*)?   # optional bullet or numbered list marker
    (?:\*\*|__)?                    # optional bold opener
    (?P<severity>ERROR|WARNING)
    (?:\*\*|__)?\s*:(?:\*\*|__)?    # colon, possibly inside or outside the bold
    \s*(?P<message>.*)$
    """,
    re.IGNORECASE | re.VERBOSE,
)


def parse_llm_response(text: str) -> list[ValidationIssue]:
    """Turn ERROR:/WARNING: lines of an analysis into issues.

    Args:
        text: Raw analysis text returned by a model

    Returns:
        Issues in the order their lines appear; lines with an empty message are skipped
    """
    issues = []
    for line in text.splitlines():
        match = _PREFIX_PATTERN.match(line)
        if match is None:
            continue
        message = match.group("message").strip().strip("*_").strip()
        if not message:
            continue
        severity = (
            Severity.ERROR if match.group("severity").upper() == "ERROR" else Severity.WARNING
        )
        issues.append(
            ValidationIssue(
                field=LLM_FIELD,
                message=message,
                expected=0.0,
                actual=0.0,
                severity=severity,
            )
        )
    return issues
