"""FastAPI application for invoice validation.

Production-ready API with:
- Health and readiness checks for Kubernetes
- Invoice fetch from QuickBook, Salesforce and Odoo
- Rule-based arithmetic validation
- Optional LLM narrative analysis (best-effort)
- Prometheus metrics for monitoring

Based on FastAPI best practices:
https://fastapi.tiangolo.com/
"""

import logging
import time

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from pydantic import BaseModel

from services.analysis.factory import create_analysis_provider
from services.analysis.service import augment
from services.api import metrics
from services.invoices.schema import Invoice, Organization, ValidationResult
from services.shared.config import get_settings
from services.shared.logging_config import configure_logging
from services.sources.base import InvoiceNotFoundError, InvoiceSourceError
from services.sources.factory import get_invoice_source
from services.sources.mock_data import sample_invoice_ids
from services.validation.rules import validate

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

UNMATCHED_ENDPOINT = "unmatched"

app = FastAPI(
    title="Invoice Validation Service",
    description="Arithmetic validation of platform invoices with optional LLM analysis",
    version=settings.service_version,
)

analysis_provider = create_analysis_provider(settings)
invoice_sources = {
    organization: get_invoice_source(organization, settings) for organization in Organization
}


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Middleware to collect request metrics.

    Tracks:
    - Request count by method, route template, and status
    - Request duration by method and route template

    Paths that match no route share a single "unmatched" label.
    """
    # Skip metrics for /metrics endpoint itself
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Route template, not the raw path
    route = request.scope.get("route")
    endpoint = getattr(route, "path", UNMATCHED_ENDPOINT)

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=endpoint,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool


class OrganizationInfo(BaseModel):
    """Platform description with its sample invoice ids."""

    key: Organization
    display_name: str
    sample_invoice_ids: list[str]


class ValidationResponse(BaseModel):
    """Invoice together with its validation result."""

    invoice: Invoice
    result: ValidationResult


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    """Health check endpoint for liveness probe."""
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    """Readiness check endpoint for Kubernetes readiness probe."""
    return ReadinessResponse(ready=True)


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint.

    Returns:
        Prometheus metrics in text format
    """
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.get("/api/v1/organizations", response_model=list[OrganizationInfo], tags=["Invoices"])
def list_organizations() -> list[OrganizationInfo]:
    """List supported platforms and their sample invoice ids."""
    return [
        OrganizationInfo(
            key=organization,
            display_name=organization.display_name,
            sample_invoice_ids=sample_invoice_ids(organization),
        )
        for organization in Organization
    ]


@app.get(
    "/api/v1/invoices/{organization}/{invoice_id}",
    response_model=Invoice,
    tags=["Invoices"],
)
async def get_invoice(organization: Organization, invoice_id: str) -> Invoice:
    """Fetch an invoice without validating it.

    Returns 404 if the platform has no such invoice and 502 if the platform
    could not be reached.
    """
    return await _fetch(organization, invoice_id)


@app.post(
    "/api/v1/invoices/{organization}/{invoice_id}/validate",
    response_model=ValidationResponse,
    tags=["Validation"],
)
async def validate_stored_invoice(
    organization: Organization,
    invoice_id: str,
    analyze: bool = Query(
        False,
        description="Append an LLM narrative analysis (requires a configured provider)",
    ),
) -> ValidationResponse:
    """Fetch an invoice from its platform and validate it.

    ## Usage Examples

    ```bash
    curl -X POST "http://localhost:8000/api/v1/invoices/quickBook/QB-INV-002/validate"
    curl -X POST "http://localhost:8000/api/v1/invoices/odoo/ODO-INV-001/validate?analyze=true"
    ```

    ## Error Handling

    - Returns 404 if the invoice does not exist on the platform
    - Returns 422 for an unknown organization
    - Returns 502 if the platform could not be reached
    - Returns 200 without `llmAnalysis` if the LLM analysis fails
    """
    invoice = await _fetch(organization, invoice_id)
    result = await _validate(invoice, analyze)
    return ValidationResponse(invoice=invoice, result=result)


@app.post("/api/v1/validate", response_model=ValidationResponse, tags=["Validation"])
async def validate_invoice_body(
    invoice: Invoice,
    analyze: bool = Query(
        False,
        description="Append an LLM narrative analysis (requires a configured provider)",
    ),
) -> ValidationResponse:
    """Validate an invoice supplied in the request body."""
    result = await _validate(invoice, analyze)
    return ValidationResponse(invoice=invoice, result=result)


async def _fetch(organization: Organization, invoice_id: str) -> Invoice:
    fetch_start = time.time()
    try:
        invoice = await invoice_sources[organization].fetch_invoice(invoice_id)
    except InvoiceNotFoundError as e:
        metrics.invoice_fetch_total.labels(
            organization=organization.value, status="not_found"
        ).inc()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except InvoiceSourceError as e:
        metrics.invoice_fetch_total.labels(organization=organization.value, status="failed").inc()
        logger.error(f"Fetching {invoice_id} from {organization.value} failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    finally:
        metrics.invoice_fetch_duration_seconds.labels(organization=organization.value).observe(
            time.time() - fetch_start
        )

    metrics.invoice_fetch_total.labels(organization=organization.value, status="success").inc()
    return invoice


async def _validate(invoice: Invoice, analyze: bool) -> ValidationResult:
    result = validate(invoice)

    if analyze:
        result = await _analyze(invoice, result)

    metrics.invoice_validations_total.labels(
        outcome="valid" if result.is_valid else "invalid"
    ).inc()
    for issue in result.issues:
        metrics.validation_issues_total.labels(severity=issue.severity.value).inc()

    logger.info(
        f"Validated invoice {invoice.id}: valid={result.is_valid}, "
        f"errors={len(result.errors)}, warnings={len(result.warnings)}"
    )
    return result


async def _analyze(invoice: Invoice, result: ValidationResult) -> ValidationResult:
    if analysis_provider is None or not analysis_provider.is_available():
        metrics.analysis_requests_total.labels(status="skipped").inc()
        return result

    analysis_start = time.time()
    augmented = await augment(invoice, result, analysis_provider)
    metrics.analysis_duration_seconds.observe(time.time() - analysis_start)

    # Graceful degradation: a failed analysis leaves the rule-based result as is
    if augmented.llm_analysis is None:
        metrics.analysis_requests_total.labels(status="failed").inc()
    else:
        metrics.analysis_requests_total.labels(status="success").inc()
    return augmented
