import json
import random
import re

import pytest
from fastapi.testclient import TestClient

from hooksheet.app import app
from hooksheet import app as app_module
from hooksheet import samples

client = TestClient(app)


@pytest.fixture(autouse=True)
def mock_oracle(monkeypatch):
    monkeypatch.setenv("MOCK_OPENAI", "true")
    app_module.store.clear()
    yield
    app_module.store.clear()


def test_samples_are_valid_json():
    assert len(samples.SAMPLE_WEBHOOKS) == 3
    for s in samples.SAMPLE_WEBHOOKS:
        assert isinstance(json.loads(s.payload), dict)
        assert s.instructions


def test_endpoint_url_shape():
    url = samples.make_endpoint_url("https://hooks.example.com", rng=random.Random(1))
    assert re.fullmatch(r"https://hooks\.example\.com/v1/hooks/[0-9a-z]{8}", url)
    r = client.get("/api/endpoint")
    assert r.json() == {"url": samples.ENDPOINT_URL, "simulated": True}


def test_list_samples_endpoint():
    r = client.get("/api/samples")
    names = [s["name"] for s in r.json()["samples"]]
    assert names[0] == "Stripe: Payment Succeeded"


def test_simulate_without_processing_leaves_store_alone():
    r = client.post("/api/samples/1/simulate")
    assert r.status_code == 200
    j = r.json()
    assert j["result"] is None
    assert j["log"][0].startswith("POST ")
    assert len(app_module.store) == 0


def test_simulate_with_processing_appends_row():
    r = client.post("/api/samples/2/simulate", params={"process": "true"})
    j = r.json()
    assert j["result"]["status"] == "success"
    data = j["result"]["row"]["data"]
    assert data["repository_full_name"] == "octocat/Hello-World"
    assert j["result"]["row"]["originalPayload"] == samples.SAMPLE_WEBHOOKS[2].payload
    assert len(app_module.store) == 1


def test_simulate_unknown_sample_is_404():
    r = client.post("/api/samples/99/simulate")
    assert r.status_code == 404
    assert r.json()["error_code"] == "E_NOT_FOUND"
    with pytest.raises(IndexError):
        samples.get_sample(-1)
