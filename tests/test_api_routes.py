try:
    from . import _bootstrap  # noqa: F401
    from ._archives import PNG_BYTES, build_archive, full_report_entries
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _archives import PNG_BYTES, build_archive, full_report_entries  # type: ignore

import httpx
import pytest
from fastapi.testclient import TestClient

from pharma_forecast.core.config import ForecastApiSettings
from pharma_forecast.dependencies import get_forecast_session
from pharma_forecast.main import app
from pharma_forecast.services import ForecastSession


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/products/":
        return httpx.Response(200, json=["AMOXIL"])
    if path == "/available-dates/":
        return httpx.Response(
            200,
            json={"min_available_date": "2014-01-02", "max_available_date": "2019-10-08"},
        )
    if path == "/forecast/":
        return httpx.Response(200, content=build_archive(full_report_entries("AMOXIL")))
    if path == "/ask-ai/":
        return httpx.Response(200, json={"gemini_answer": "Up and to the right."})
    return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture()
def client():
    session = ForecastSession.from_settings(
        ForecastApiSettings(), transport=httpx.MockTransport(_handler)
    )
    app.dependency_overrides.clear()
    app.dependency_overrides[get_forecast_session] = lambda: session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def test_healthcheck(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert "environment" in response.json()


def test_catalog_loads_products_and_dates(client):
    response = client.get("/api/catalog")

    body = response.json()
    assert body["products"] == ["AMOXIL"]
    assert body["selected_product"] == "AMOXIL"
    assert body["available_dates"] == {
        "min_available_date": "2014-01-02",
        "max_available_date": "2019-10-08",
    }
    assert body["banner"] is None


def test_generate_report_and_read_artifacts(client):
    response = client.post(
        "/api/reports",
        json={
            "product_name": "AMOXIL",
            "forecast_range": {"start": "2027-01-01", "end": "2027-03-31"},
        },
    )

    body = response.json()
    assert response.status_code == 200
    assert body["generation"] == 1
    assert body["context_ready"] is True
    assert body["has_archive"] is True
    kinds = {item["key"]: item["kind"] for item in body["artifacts"]}
    assert kinds["forecast_chart_AMOXIL"] == "image"
    assert kinds["custom_forecast_data"] == "table"
    assert kinds["custom_forecast_csv_text"] == "text"

    image = client.get("/api/reports/current/images/product_analysis_AMOXIL/sales_by_month.png")
    assert image.status_code == 200
    assert image.content == PNG_BYTES
    assert image.headers["content-type"] == "image/png"

    table = client.get("/api/reports/current/tables/custom_forecast_data")
    assert table.json()[0]["ds"] == "2027-01-01"

    archive = client.get("/api/reports/current/archive")
    assert archive.headers["content-type"] == "application/zip"
    assert "analysis_report_AMOXIL.zip" in archive.headers["content-disposition"]

    csv = client.get("/api/reports/current/custom-forecast.csv")
    assert csv.text.startswith("ds,yhat")
    assert "custom_forecast_AMOXIL.csv" in csv.headers["content-disposition"]


def test_missing_product_is_reported_on_banner(client):
    response = client.post("/api/reports", json={"product_name": ""})

    body = response.json()
    assert body["banner"] == "Please select a product."
    assert body["artifacts"] == []


def test_missing_artifacts_return_404(client):
    assert client.get("/api/reports/current/archive").status_code == 404
    assert client.get("/api/reports/current/images/nothing").status_code == 404
    assert client.get("/api/reports/current/tables/nothing").status_code == 404
    assert client.get("/api/reports/current/custom-forecast.csv").status_code == 404


def test_chat_requires_a_report_then_answers(client):
    early = client.post("/api/chat", json={"question": "Hello?"}).json()
    assert early["state"] == "no_context"
    assert early["messages"] == []
    assert early["banner"].startswith("The AI context is not ready yet.")

    client.post("/api/reports", json={"product_name": "AMOXIL"})
    answered = client.post("/api/chat", json={"question": "Trend?"}).json()

    assert answered["state"] == "ready"
    assert answered["banner"] is None
    assert answered["messages"] == [
        {"sender": "user", "text": "Trend?"},
        {"sender": "assistant", "text": "Up and to the right."},
    ]
    assert client.get("/api/chat").json()["messages"] == answered["messages"]
