"""HTTP surface tests using FastAPI's TestClient with dependency overrides."""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import (
    get_cms_client,
    get_fda_client,
    get_market_settings,
    get_rate_service,
    get_trials_client,
)
from app.api.fastapi_app import app
from app.common.exceptions import RateComputationError
from app.market.cms_claims import CmsClaimsClient
from app.market.fda import Competitor, FdaClient, FdaEndpoint
from app.market.trials import TrialsClient
from app.rates.service import RateService


@pytest.fixture
def service(rate_settings):
    return RateService(rate_settings)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_rate_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _mock_http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_health_and_root(client):
    assert client.get("/health").json() == {"ok": True}
    assert "combined_rates" in client.get("/").json()["endpoints"]


def test_reimbursement_endpoints(client):
    body = client.get("/api/reimbursement").json()
    assert body["618"]["rates"]["2023"]["61885"] == 538.82
    assert client.get("/api/reimbursement/618").json()["changes"]["61888"] == {"2023 to 2024A": 20.0}
    assert client.get("/api/reimbursement/999").status_code == 404


def test_combined_endpoints(client):
    body = client.get("/api/combined-rates").json()
    assert body["by_group"]["618"]["2024A"]["61888"] == {
        "reimbursement": 192.0,
        "payment": 0.0,
        "combined": 192.0,
    }
    code = client.get("/api/combined-rates/code/61885").json()
    assert code["2023"]["group"] == "618"
    group = client.get("/api/combined-rates/group/618?refresh=true").json()
    assert group["changes"]["61888"]["2023 to 2024A"]["payment"] is None
    assert client.get("/api/combined-rates/code/00000").status_code == 404
    assert client.get("/api/combined-rates/group/999").status_code == 404


def test_analytics_endpoints(client):
    assert client.get("/api/data/history/61885").json()["payment"]["2024"] == 1200.0
    assert client.get("/api/data/history/00000").status_code == 404
    trends = client.get("/api/data/trends").json()
    assert trends["code_groups"]["618"]["average_by_year"]["2024A"] == 394.6
    assert client.get("/api/hcpcs-data/618").status_code == 200
    assert client.get("/api/hcpcs-data/999").status_code == 404



def test_directory_aliases_match_group_routes(client):
    assert client.get("/api/combined-rates/directory/618").json() == client.get(
        "/api/combined-rates/group/618"
    ).json()
    assert client.get("/api/combined-rates/directory/999").status_code == 404
    html = client.get("/combined-report/directory/618")
    assert html.status_code == 200
    assert "text/html" in html.headers["content-type"]
    assert client.get("/combined-report/directory/999").status_code == 404


def test_code_and_group_data_slices(client):
    code = client.get("/api/data/code/61885").json()
    assert code["reimbursement"] == {"2023": 538.82, "2024A": 597.2}
    assert code["payment"] == {"2023": 1000.0, "2024": 1200.0}
    assert code["combined"]["2024A"]["combined"] == 1797.2
    assert client.get("/api/data/code/00000").status_code == 404

    group = client.get("/api/data/directory/618").json()
    assert group["reimbursement"]["rates"]["2023"]["61885"] == 538.82
    assert group["combined"]["2024A"]["61888"]["combined"] == 192.0
    assert len(group["rows"]["2023"]) == 2
    assert client.get("/api/data/directory/999").status_code == 404


def test_calculate_huge_conversion_factor(client):
    resp = client.post(
        "/api/calculate",
        json={"workRVU": 1, "peRVU": 0, "mpRVU": 0, "conversionFactor": 1e27},
    )
    assert resp.status_code == 200
    assert resp.json()["result"] == 1e27

def test_calculate(client):
    resp = client.post(
        "/api/calculate",
        json={"workRVU": 6.05, "peRVU": 6.76, "mpRVU": 2.12, "conversionFactor": 36.0896},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["reimbursement"] == 538.82
    assert body["result"] == 538.82
    assert body["inputs"]["workGPCI"] == 1.0


def test_calculate_missing_input_is_422(client):
    resp = client.post("/api/calculate", json={"workRVU": 6.05, "peRVU": 6.76, "mpRVU": 2.12})
    assert resp.status_code == 422


def test_html_reports(client):
    resp = client.get("/reimbursement-report")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert "538.82" in resp.text
    assert "HCPCS Code 61885" in client.get("/combined-report/code/61885").text
    assert client.get("/combined-report/group/618").status_code == 200
    assert client.get("/reimbursement-report/999").status_code == 404
    assert client.get("/combined-report/code/00000").status_code == 404


def test_computation_failure_is_500(client, service, monkeypatch):
    def boom():
        raise RateComputationError("permission denied", stage="reimbursement")

    monkeypatch.setattr(service, "compute_reimbursement", boom)
    resp = client.get("/api/reimbursement?refresh=true")
    assert resp.status_code == 500
    assert "permission denied" in resp.json()["detail"]

    html = client.get("/reimbursement-report?refresh=true")
    assert html.status_code == 500
    assert html.headers["content-type"].startswith("text/plain")


def test_market_values_for_unknown_code_is_404(client):
    http = _mock_http(lambda request: httpx.Response(200, json=[]))
    app.dependency_overrides[get_cms_client] = lambda: CmsClaimsClient(http, get_market_settings())
    assert client.get("/market-values/00000").status_code == 404


def test_market_values_upstream_failure_is_502(client):
    settings = get_market_settings().model_copy(update={"retry_delay_s": 0, "max_retries": 1})
    http = _mock_http(lambda request: httpx.Response(503))
    app.dependency_overrides[get_cms_client] = lambda: CmsClaimsClient(http, settings)
    assert client.get("/market-values/61889").status_code == 502


def test_fda_data_placeholders(client):
    http = _mock_http(lambda request: httpx.Response(404))
    competitors = (Competitor("Acme", "device", (FdaEndpoint("k510", "/device/510k.json", {}),)),)
    app.dependency_overrides[get_fda_client] = lambda: FdaClient(
        http, get_market_settings(), competitors=competitors
    )
    body = client.get("/api/fda-data").json()
    assert body["status"] == "success"
    assert body["data"]["Acme"]["combined_results"][0]["source"] == "placeholder"


def test_fetch_trials_validation_and_empty(client):
    assert client.post("/fetch-trials", json={"companies": "LivaNova"}).status_code == 422

    settings = get_market_settings().model_copy(update={"retry_delay_s": 0})
    http = _mock_http(lambda request: httpx.Response(200, json={"studies": []}))
    app.dependency_overrides[get_trials_client] = lambda: TrialsClient(http, settings)
    assert client.post("/fetch-trials", json={"companies": ["Nobody Inc"]}).json() == []


def test_metrics_endpoint(client):
    body = client.get("/metrics").json()
    assert "enabled" in body
