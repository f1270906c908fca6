import csv
import io

import pytest
from fastapi.testclient import TestClient

from hooksheet.app import app
from hooksheet import app as app_module
import hooksheet.processors.transformer as tr

store = app_module.store  # the single instance created in hooksheet.app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture(autouse=True)
def fresh_store(monkeypatch):
    store.clear()
    monkeypatch.setattr(tr, "_call_llm", lambda user_prompt: '{"a_b": 1, "name": "Bob"}')
    yield
    store.clear()


def submit(client, payload, instructions=""):
    return client.post("/api/webhooks", json={"payload": payload, "instructions": instructions})


def test_submit_success(client):
    r = submit(client, '{"a": {"b": 1}, "name": "Bob"}', "flatten everything")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "success"
    assert j["row"]["data"] == {"a_b": 1, "name": "Bob"}
    assert j["row"]["originalPayload"] == '{"a": {"b": 1}, "name": "Bob"}'
    assert j["row"]["timestamp"].endswith("Z")


def test_submit_input_error(client):
    r = submit(client, "not json")
    assert r.status_code == 200
    j = r.json()
    assert j["status"] == "input_error"
    assert j["error_code"] == "E_INPUT_INVALID"


def test_submit_processing_error_keeps_rows(client, monkeypatch):
    submit(client, "{}")
    monkeypatch.setattr(tr, "_call_llm", lambda user_prompt: '{"items": [1, 2, 3]}')
    r = submit(client, "{}")
    j = r.json()
    assert j["status"] == "processing_error"
    assert j["error_code"] == "E_SHAPE"
    assert client.get("/api/rows").json()["count"] == 1


def test_unexpected_error_returns_500(client, monkeypatch):
    def broken(raw, instructions):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(app_module.orchestrator, "submit", broken)
    r = submit(client, "{}")
    assert r.status_code == 500
    assert r.json()["error_code"] == "E_INTERNAL"


def test_rows_and_columns(client, monkeypatch):
    submit(client, "{}")
    monkeypatch.setattr(tr, "_call_llm", lambda user_prompt: '{"city": "Rio"}')
    submit(client, "{}")

    j = client.get("/api/rows").json()
    assert j["count"] == 2
    assert j["columns"] == ["a_b", "city", "name"]
    assert j["rows"][0]["data"] == {"city": "Rio"}

    oldest = client.get("/api/rows", params={"order": "oldest"}).json()
    assert oldest["rows"][0]["data"] == {"a_b": 1, "name": "Bob"}

    assert client.get("/api/columns").json() == {"columns": ["a_b", "city", "name"]}


def test_export_csv_download(client):
    submit(client, "{}")
    r = client.get("/api/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    disposition = r.headers["content-disposition"]
    assert 'filename="webhook_data_export_' in disposition
    parsed = list(csv.reader(io.StringIO(r.text)))
    assert parsed[0] == ["Timestamp", "ID", "a_b", "name"]
    assert parsed[1][2:] == ["1", "Bob"]


def test_export_empty_store_is_no_content(client):
    r = client.get("/api/export")
    assert r.status_code == 204
    assert r.content == b""


def test_clear_is_idempotent(client):
    submit(client, "{}")
    r = client.delete("/api/rows")
    assert r.json() == {"status": "success", "cleared": 1}
    assert client.get("/api/rows").json()["count"] == 0
    r2 = client.delete("/api/rows")
    assert r2.json() == {"status": "success", "cleared": 0}


def test_invalid_order_rejected(client):
    r = client.get("/api/export", params={"order": "sideways"})
    assert r.status_code == 422


def test_overflowing_oracle_number_keeps_sheet_readable(client, monkeypatch):
    submit(client, "{}")
    monkeypatch.setattr(tr, "_call_llm", lambda user_prompt: '{"amount": 1e999}')
    r = submit(client, '{"amount": 1}')
    assert r.status_code == 200
    assert r.json()["status"] == "processing_error"
    assert r.json()["error_code"] == "E_PARSE"

    rows = client.get("/api/rows")
    assert rows.status_code == 200
    assert rows.json()["count"] == 1
    assert "Infinity" not in client.get("/api/export").text
