import json
import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

import src.server.main as main
from src.integrations.crm.webhooks import SIGNATURE_HEADER, TIMESTAMP_HEADER, compute_signature_v3
from src.server.main import app


pytestmark = [pytest.mark.hubspot, pytest.mark.integration]

WEBHOOK_URL = "http://testserver/hubspot/webhook"

PRIMARY_EVENT = {
    "eventId": 1,
    "subscriptionType": "object.propertyChange",
    "propertyName": "owner_role",
    "propertyValue": "Primary",
    "objectId": "A",
}
TASK_EVENT = {"eventId": 2, "subscriptionType": "object.creation", "objectId": "T1", "objectTypeId": "0-27"}


@pytest.fixture()
def client():
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def run_workflows():
    mock = AsyncMock(return_value=None)
    with patch("src.server.routers.hubspot.run_workflows", mock):
        yield mock


def test_root_liveness(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "OK"


def test_health_lists_workflows(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "workflows": ["primary_secondary_owner_role", "task_mirror_to_associated_contacts"],
        "hubspot_configured": True,
    }


def test_webhook_acknowledges_and_schedules_workflows(client, run_workflows):
    response = client.post("/hubspot/webhook", json=[PRIMARY_EVENT, TASK_EVENT])

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "received": 2}

    run_workflows.assert_awaited_once()
    events = run_workflows.await_args.args[0]
    assert [e.object_id for e in events] == ["A", "T1"]
    assert events[0].property_value == "Primary"


def test_webhook_empty_batch_schedules_nothing(client, run_workflows):
    response = client.post("/hubspot/webhook", json=[])

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "received": 0}
    run_workflows.assert_not_awaited()


def test_webhook_non_array_body_is_acknowledged(client, run_workflows):
    response = client.post("/hubspot/webhook", json={"objectId": "A"})

    assert response.status_code == 200
    assert response.json()["received"] == 0
    run_workflows.assert_not_awaited()


def test_webhook_rejects_invalid_json(client, run_workflows):
    response = client.post(
        "/hubspot/webhook",
        content=b"[{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON payload"
    run_workflows.assert_not_awaited()


def test_webhook_rejects_oversized_body(client, run_workflows, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main.settings, "WEBHOOK_MAX_BODY_BYTES", 16)

    response = client.post("/hubspot/webhook", json=[PRIMARY_EVENT])

    assert response.status_code == 413
    run_workflows.assert_not_awaited()


def test_webhook_rejects_bad_signature(client, run_workflows, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main.settings, "HUBSPOT_CLIENT_SECRET", SecretStr("client-secret"))

    response = client.post(
        "/hubspot/webhook",
        json=[PRIMARY_EVENT],
        headers={
            SIGNATURE_HEADER: "bm90LWEtc2lnbmF0dXJl",
            TIMESTAMP_HEADER: str(int(time.time() * 1000)),
        },
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid HubSpot signature"
    run_workflows.assert_not_awaited()


def test_webhook_accepts_valid_signature(client, run_workflows, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(main.settings, "HUBSPOT_CLIENT_SECRET", SecretStr("client-secret"))

    body = json.dumps([TASK_EVENT]).encode()
    timestamp = str(int(time.time() * 1000))
    signature = compute_signature_v3("client-secret", "POST", WEBHOOK_URL, body, timestamp)

    response = client.post(
        "/hubspot/webhook",
        content=body,
        headers={
            "Content-Type": "application/json",
            SIGNATURE_HEADER: signature,
            TIMESTAMP_HEADER: timestamp,
        },
    )

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "received": 1}
    run_workflows.assert_awaited_once()


def test_request_id_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"


def test_unknown_path_is_404(client):
    response = client.get("/nope")

    assert response.status_code == 404
    assert response.headers["X-Request-ID"]
