"""Unit tests for the invoice validation API.

Tests cover:
- Health check endpoints
- Organization listing and invoice fetch
- Validation of fetched and posted invoices
- Optional LLM analysis and graceful degradation
- Prometheus metrics endpoint
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from services.analysis.base import AnalysisProvider
from services.api import main
from services.api.main import app
from services.sources.base import InvoiceSourceError


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    """Create test client with no simulated source latency."""
    monkeypatch.setattr(main.settings, "mock_latency_seconds", 0)
    return TestClient(app)


@pytest.fixture
def mock_provider(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace the analysis provider with an available mock."""
    provider = MagicMock(spec=AnalysisProvider)
    provider.provider_name = "mock"
    provider.is_available.return_value = True
    provider.analyze = AsyncMock(return_value="Summary.\nWARNING: Unusual vendor")
    monkeypatch.setattr(main, "analysis_provider", provider)
    return provider


@pytest.fixture
def invoice_body() -> dict[str, object]:
    return {
        "id": "EXT-1",
        "organization": "salesForce",
        "vendor": "Posted Vendor",
        "date": "2024-12-01",
        "lineItems": [
            {"id": "L1", "description": "Service", "quantity": 3, "unitPrice": 100, "lineTotal": 290}
        ],
        "subtotal": 290,
        "taxRate": 0.1,
        "taxAmount": 29,
        "discounts": 0,
        "grandTotal": 319,
    }


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "invoice-validation-service"


def test_readiness_check(client: TestClient) -> None:
    response = client.get("/ready")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ready"] is True


def test_list_organizations(client: TestClient) -> None:
    response = client.get("/api/v1/organizations")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [org["key"] for org in data] == ["quickBook", "salesForce", "odoo"]
    assert data[0]["display_name"] == "QuickBook"
    assert "QB-INV-001" in data[0]["sample_invoice_ids"]


def test_get_invoice(client: TestClient) -> None:
    response = client.get("/api/v1/invoices/quickBook/qb-inv-001")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["id"] == "QB-INV-001"
    assert data["grandTotal"] == 556.2
    assert data["lineItems"][0]["unitPrice"] == 25.0


def test_get_invoice_not_found(client: TestClient) -> None:
    response = client.get("/api/v1/invoices/salesForce/SF-INV-999")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "not found" in response.json()["detail"]


def test_get_unknown_odoo_demo_invoice(client: TestClient) -> None:
    response = client.get("/api/v1/invoices/odoo/ODO-INV-999")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Invoice ODO-INV-999 not found in Odoo"


def test_get_invoice_unknown_organization(client: TestClient) -> None:
    response = client.get("/api/v1/invoices/sap/INV-1")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_get_invoice_source_failure(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that platform errors map to 502."""
    failing = MagicMock()
    failing.fetch_invoice = AsyncMock(side_effect=InvoiceSourceError("Odoo request failed"))
    monkeypatch.setitem(main.invoice_sources, main.Organization.ODOO, failing)

    response = client.get("/api/v1/invoices/odoo/INV-2024-0001")

    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert "Odoo request failed" in response.json()["detail"]


def test_validate_stored_invoice_with_errors(client: TestClient) -> None:
    response = client.post("/api/v1/invoices/quickBook/QB-INV-003/validate")

    assert response.status_code == status.HTTP_200_OK
    result = response.json()["result"]
    assert result["isValid"] is False
    assert result["issues"] == [
        {
            "field": "taxAmount",
            "message": result["issues"][0]["message"],
            "expected": 37.1,
            "actual": 40.0,
            "severity": "error",
        }
    ]
    assert result["llmAnalysis"] is None


def test_validate_stored_valid_invoice(client: TestClient) -> None:
    response = client.post("/api/v1/invoices/salesForce/SF-INV-004/validate")

    result = response.json()["result"]
    assert result["isValid"] is True
    assert result["issues"] == []


def test_validate_posted_invoice(client: TestClient, invoice_body: dict[str, object]) -> None:
    response = client.post("/api/v1/validate", json=invoice_body)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["invoice"]["vendor"] == "Posted Vendor"
    assert data["result"]["isValid"] is False
    assert [i["field"] for i in data["result"]["issues"]] == ["lineItems[0].lineTotal"]


def test_validate_posted_invoice_malformed(
    client: TestClient, invoice_body: dict[str, object]
) -> None:
    invoice_body["taxAmount"] = "lots"

    response = client.post("/api/v1/validate", json=invoice_body)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_validate_with_analysis(client: TestClient, mock_provider: MagicMock) -> None:
    response = client.post("/api/v1/invoices/salesForce/SF-INV-004/validate?analyze=true")

    assert response.status_code == status.HTTP_200_OK
    result = response.json()["result"]
    assert result["llmAnalysis"] == "Summary.\nWARNING: Unusual vendor"
    assert result["issues"][-1]["field"] == "llm_detected"
    assert result["issues"][-1]["severity"] == "warning"
    assert result["isValid"] is True
    mock_provider.analyze.assert_awaited_once()


def test_analysis_not_requested(client: TestClient, mock_provider: MagicMock) -> None:
    client.post("/api/v1/invoices/salesForce/SF-INV-004/validate")

    mock_provider.analyze.assert_not_called()


def test_analysis_failure_graceful_degradation(
    client: TestClient, mock_provider: MagicMock
) -> None:
    """Test that a failed analysis still returns the rule-based result."""
    mock_provider.analyze.return_value = None

    response = client.post("/api/v1/invoices/salesForce/SF-INV-003/validate?analyze=true")

    assert response.status_code == status.HTTP_200_OK
    result = response.json()["result"]
    assert result["llmAnalysis"] is None
    assert [i["field"] for i in result["issues"]] == ["grandTotal"]


def test_analysis_requested_without_provider(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test that analysis=true is ignored when no provider was built."""
    from services.api import metrics

    monkeypatch.setattr(main, "analysis_provider", None)
    initial_skipped = metrics.analysis_requests_total.labels(status="skipped")._value.get()

    response = client.post("/api/v1/invoices/salesForce/SF-INV-004/validate?analyze=true")

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["result"]["llmAnalysis"] is None
    assert metrics.analysis_requests_total.labels(status="skipped")._value.get() == (
        initial_skipped + 1
    )


def test_analysis_metrics_recorded(client: TestClient, mock_provider: MagicMock) -> None:
    from services.api import metrics

    initial_success = metrics.analysis_requests_total.labels(status="success")._value.get()
    initial_failed = metrics.analysis_requests_total.labels(status="failed")._value.get()

    client.post("/api/v1/invoices/salesForce/SF-INV-004/validate?analyze=true")
    assert metrics.analysis_requests_total.labels(status="success")._value.get() == (
        initial_success + 1
    )

    mock_provider.analyze.return_value = None
    client.post("/api/v1/invoices/salesForce/SF-INV-004/validate?analyze=true")
    assert metrics.analysis_requests_total.labels(status="failed")._value.get() == (
        initial_failed + 1
    )


def test_validation_metrics_recorded(client: TestClient) -> None:
    from services.api import metrics

    initial_invalid = metrics.invoice_validations_total.labels(outcome="invalid")._value.get()
    initial_errors = metrics.validation_issues_total.labels(severity="error")._value.get()

    client.post("/api/v1/invoices/quickBook/QB-INV-002/validate")

    assert metrics.invoice_validations_total.labels(outcome="invalid")._value.get() == (
        initial_invalid + 1
    )
    assert metrics.validation_issues_total.labels(severity="error")._value.get() == (
        initial_errors + 1
    )


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/health")

    response = client.get("/metrics")

    assert response.status_code == status.HTTP_200_OK
    content_type = response.headers["content-type"]
    assert "openmetrics-text" in content_type or "text/plain" in content_type
    assert "http_requests_total" in response.text


def test_metrics_labelled_by_route_template(client: TestClient) -> None:
    """Test that different invoice ids share one request series."""
    from services.api import metrics

    template = "/api/v1/invoices/{organization}/{invoice_id}"
    series = metrics.http_requests_total.labels(method="GET", endpoint=template, status=404)
    initial = series._value.get()

    client.get("/api/v1/invoices/quickBook/MISSING-1")
    client.get("/api/v1/invoices/quickBook/MISSING-2")

    assert series._value.get() == initial + 2
    text = client.get("/metrics").text
    assert "MISSING-1" not in text
    assert "MISSING-2" not in text


def test_metrics_unmatched_paths_share_label(client: TestClient) -> None:
    from services.api import metrics

    series = metrics.http_requests_total.labels(method="GET", endpoint="unmatched", status=404)
    initial = series._value.get()

    client.get("/no/such/path-1")
    client.get("/no/such/path-2")

    assert series._value.get() == initial + 2
    assert "path-1" not in client.get("/metrics").text
