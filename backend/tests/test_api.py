"""
Integration tests for API endpoints.
"""
import json
import uuid
from io import BytesIO

import pytest

from conftest import SAMPLE_RESULT
from test_parser import xlsx_bytes
from filesense.core import config
from main import app


@pytest.mark.integration
def test_health_check(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "message" in response.json()


# /api/analyze

@pytest.mark.integration
def test_analyze_returns_model_result(client, use_provider, sample_rows):
    provider = use_provider(content=json.dumps(SAMPLE_RESULT))

    response = client.post("/api/analyze", json={"data": sample_rows, "fileName": "ventas.csv", "language": "English"})

    assert response.status_code == 200
    assert response.json() == SAMPLE_RESULT
    prompt = provider.last_payload["messages"][1]["content"]
    assert 'File: "ventas.csv"' in prompt
    assert "IN ENGLISH" in prompt
    assert '"rowCount": 3' in prompt


@pytest.mark.integration
def test_analyze_passes_through_unvalidated_reply(client, use_provider, sample_rows):
    use_provider(content='{"unexpected": true}')

    response = client.post("/api/analyze", json={"data": sample_rows, "fileName": "a.csv"})

    assert response.status_code == 200
    assert response.json() == {"unexpected": True}


@pytest.mark.integration
@pytest.mark.parametrize("body", [{"data": []}, {"data": None}, {}, {"data": {"a": 1}}, {"data": [1, 2]}])
def test_analyze_invalid_dataset(client, use_provider, body):
    provider = use_provider(content="{}")

    response = client.post("/api/analyze", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Dataset vacío o inválido."}
    assert provider.requests == []


@pytest.mark.integration
def test_analyze_invalid_dataset_localized(client):
    response = client.post("/api/analyze", json={"data": [], "language": "English"})

    assert response.status_code == 400
    assert response.json() == {"error": "Empty or invalid dataset."}


@pytest.mark.integration
def test_analyze_malformed_body(client):
    response = client.post("/api/analyze", content=b"[1, 2", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.integration
def test_analyze_without_api_key(client, sample_rows):
    response = client.post("/api/analyze", json={"data": sample_rows, "fileName": "a.csv"})

    assert response.status_code == 500
    assert response.json() == {"error": "OPENROUTER_API_KEY no configurada."}


@pytest.mark.integration
def test_analyze_invalid_dataset_checked_before_api_key(client):
    response = client.post("/api/analyze", json={"data": []})
    assert response.status_code == 400


@pytest.mark.integration
def test_analyze_upstream_status_passthrough(client, use_provider, sample_rows):
    use_provider(status_code=402, body={"error": {"message": "Insufficient credits", "code": 402}})

    response = client.post("/api/analyze", json={"data": sample_rows})

    assert response.status_code == 402
    assert response.json() == {"error": "Insufficient credits"}


@pytest.mark.integration
def test_analyze_empty_model_reply(client, use_provider, sample_rows):
    use_provider(body={"choices": [{"message": {"content": ""}}]})

    response = client.post("/api/analyze", json={"data": sample_rows})

    assert response.status_code == 500
    assert response.json() == {"error": "Respuesta vacía del modelo."}


@pytest.mark.integration
def test_analyze_non_json_model_reply(client, use_provider, sample_rows):
    use_provider(content="Here is your report: ...")

    response = client.post("/api/analyze", json={"data": sample_rows, "language": "English"})

    assert response.status_code == 500
    assert response.json() == {"error": "Error analyzing data."}


@pytest.mark.integration
def test_analyze_unexpected_error(client, use_provider, sample_rows, monkeypatch):
    use_provider(content="{}")

    async def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr("filesense.api.routes.run_analysis", broken)
    response = client.post("/api/analyze", json={"data": sample_rows})

    assert response.status_code == 500
    assert response.json() == {"error": "Ocurrió un error inesperado."}


@pytest.mark.integration
def test_analyze_rate_limited(client, monkeypatch):
    monkeypatch.setattr(config, "_settings", config.Settings(rate_limit_per_minute=2))

    statuses = [client.post("/api/analyze", json={"data": []}).status_code for _ in range(3)]

    assert statuses == [400, 400, 429]


# /api/upload

@pytest.mark.integration
def test_upload_csv_file(client, use_provider):
    provider = use_provider(content=json.dumps(SAMPLE_RESULT))
    csv_content = b"name,age,score\nAlice,25,85.5\nBob,30,90.0\nCharlie,,88.5"

    response = client.post(
        "/api/upload",
        files={"file": ("test.csv", BytesIO(csv_content), "text/csv")},
        data={"language": "English"},
    )

    assert response.status_code == 200
    assert response.json() == SAMPLE_RESULT
    prompt = provider.last_payload["messages"][1]["content"]
    assert 'File: "test.csv"' in prompt
    assert '"rowCount": 3' in prompt
    assert '"missing": 1' in prompt


@pytest.mark.integration
def test_upload_xlsx_with_duplicate_headers(client, use_provider):
    provider = use_provider(content=json.dumps(SAMPLE_RESULT))
    content = xlsx_bytes([["city", "city", "sales"], ["Lima", "Cusco", 10], ["Quito", "Loja", 20]])

    response = client.post(
        "/api/upload",
        files={"file": ("dup.xlsx", BytesIO(content), "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")},
    )

    assert response.status_code == 200
    prompt = provider.last_payload["messages"][1]["content"]
    assert '"city":' in prompt
    assert '"city_1":' in prompt


@pytest.mark.integration
def test_upload_invalid_file_type(client):
    response = client.post(
        "/api/upload",
        files={"file": ("test.txt", BytesIO(b"hello"), "text/plain")},
        data={"language": "English"},
    )

    assert response.status_code == 400
    assert "Unsupported file format" in response.json()["error"]


@pytest.mark.integration
def test_upload_empty_file(client):
    response = client.post("/api/upload", files={"file": ("test.csv", BytesIO(b""), "text/csv")})

    assert response.status_code == 400
    assert response.json() == {"error": "El archivo parece estar vacío."}


@pytest.mark.integration
def test_upload_header_only_file(client):
    response = client.post("/api/upload", files={"file": ("test.csv", BytesIO(b"a,b\n,\n"), "text/csv")})

    assert response.status_code == 400
    assert response.json() == {"error": "El archivo parece estar vacío."}


@pytest.mark.integration
def test_upload_file_too_large(client, monkeypatch):
    monkeypatch.setattr(config, "_settings", config.Settings(max_file_size_mb=1, rate_limit_per_minute=1000))
    csv_content = b"name,value\n" + b"x,1\n" * 300_000

    response = client.post("/api/upload", files={"file": ("large.csv", BytesIO(csv_content), "text/csv")})

    assert response.status_code == 413
    assert "error" in response.json()


@pytest.mark.integration
def test_upload_without_api_key(client):
    response = client.post(
        "/api/upload",
        files={"file": ("test.csv", BytesIO(b"a,b\n1,2\n"), "text/csv")},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "OPENROUTER_API_KEY no configurada."}


# /api/profile

@pytest.mark.integration
def test_profile_endpoint(client, sample_rows):
    response = client.post("/api/profile", json={"data": sample_rows})

    assert response.status_code == 200
    data = response.json()
    assert data["rowCount"] == 3
    assert data["columns"]["city"]["topValues"] == ["Lima (67%)", "Cusco (33%)"]
    assert data["columns"]["age"]["type"] == "numeric"


@pytest.mark.integration
def test_profile_endpoint_invalid(client):
    response = client.post("/api/profile", json={"data": [], "language": "English"})

    assert response.status_code == 400
    assert response.json() == {"error": "Empty or invalid dataset."}


# /api/report

@pytest.mark.integration
def test_report_html(client):
    response = client.post(
        "/api/report",
        json={"result": SAMPLE_RESULT, "fileName": "ventas.xlsx", "language": "English"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<h1>Ventas por ciudad</h1>" in response.text
    assert "High Impact" in response.text


@pytest.mark.integration
def test_report_html_dark_theme(client):
    response = client.post("/api/report?theme=dark", json={"result": SAMPLE_RESULT})

    assert response.status_code == 200
    assert 'class="theme-dark"' in response.text


@pytest.mark.integration
def test_report_pdf(client):
    response = client.post(
        "/api/report?format=pdf",
        json={"result": SAMPLE_RESULT, "fileName": "ventas.xlsx"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="ventas_report.pdf"'
    assert response.content.startswith(b"%PDF")


@pytest.mark.integration
def test_report_rejects_malformed_result(client):
    bad = dict(SAMPLE_RESULT, kpis=[{"title": "x", "value": 1, "subValue": "y", "trend": "sideways"}])

    response = client.post("/api/report", json={"result": bad})

    assert response.status_code == 422


@pytest.mark.integration
def test_report_rejects_unknown_format(client):
    response = client.post("/api/report?format=docx", json={"result": SAMPLE_RESULT})
    assert response.status_code == 422


# Cross-cutting

@pytest.mark.integration
def test_correlation_id_header(client):
    correlation_id = str(uuid.uuid4())

    response = client.get("/api/health", headers={"X-Correlation-ID": correlation_id})

    assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.integration
def test_correlation_id_generated(client):
    response = client.get("/api/health")

    correlation_id = response.headers["X-Correlation-ID"]
    assert uuid.UUID(correlation_id)


@pytest.mark.integration
def test_error_with_correlation_id(client):
    correlation_id = str(uuid.uuid4())

    response = client.post("/api/analyze", json={"data": []}, headers={"X-Correlation-ID": correlation_id})

    assert response.status_code == 400
    assert response.headers["X-Correlation-ID"] == correlation_id


@pytest.mark.integration
def test_security_headers(client):
    response = client.get("/api/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "script-src 'none'" in response.headers["Content-Security-Policy"]


@pytest.mark.integration
def test_metrics_endpoint(client, sample_rows):
    client.post("/api/profile", json={"data": sample_rows})

    response = client.get("/api/metrics")

    assert response.status_code == 200
    performance = response.json()["performance"]
    assert "profile_dataset" in performance
    assert "request_duration" in performance


@pytest.mark.integration
def test_app_state_has_settings_and_limiter():
    assert app.state.settings.rate_limit_per_minute == 1000
    assert app.state.limiter is not None
