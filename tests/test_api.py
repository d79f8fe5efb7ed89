from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from whatjsx.app import convert as convert_routes
from whatjsx.app.main import app


@pytest.fixture
def client():
    return TestClient(app)


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_convert_endpoint(client):
    resp = client.post("/convert", json={"source": 'React.createElement("br");'})
    assert resp.status_code == 200
    assert resp.json() == {"converted": "<br />;"}


def test_convert_endpoint_reports_syntax_error(client):
    resp = client.post("/convert", json={"source": "React.createElement("})
    assert resp.status_code == 200
    assert "error" in resp.json()
    assert "converted" not in resp.json()


def test_convert_endpoint_with_settings(client):
    resp = client.post("/convert", json={"source": 'h.createElement("br");', "settings": {"receivers": None}})
    assert resp.json() == {"converted": "<br />;"}


def test_convert_endpoint_rejects_bad_settings(client):
    resp = client.post("/convert", json={"source": "x;", "settings": {"prettier": {"tabWidth": "wide"}}})
    assert resp.status_code == 422


def test_transform_requires_files(client):
    resp = client.post("/transform", json={"files": []})
    assert resp.status_code == 422


def test_transform_queues_task(client, monkeypatch, streamed):
    sent = []

    def fake_send_task(name, args=None, **kwargs):
        sent.append((name, args))
        return SimpleNamespace(id="task-1")

    monkeypatch.setattr(convert_routes.celery_app, "send_task", fake_send_task)
    resp = client.post("/transform", json={"files": [streamed("a.js", "x;")]})
    assert resp.status_code == 200
    assert resp.json() == {"task_id": "task-1"}
    name, args = sent[0]
    assert name == "whatjsx.tasks.convert.transform_files"
    assert args[0][0]["path"] == "a.js"


@pytest.mark.parametrize(
    "state,result,expected",
    [
        ("PENDING", None, {"status": "PENDING"}),
        ("FAILURE", RuntimeError("nope"), {"status": "FAILURE", "error": "nope"}),
        ("SUCCESS", {"files": [], "rootFileId": None}, {"status": "SUCCESS", "files": []}),
    ],
)
def test_transform_status(client, monkeypatch, state, result, expected):
    monkeypatch.setattr(convert_routes, "AsyncResult", lambda task_id, app=None: SimpleNamespace(state=state, result=result))
    body = client.get("/transform/task-1").json()
    for key, value in expected.items():
        assert body[key] == value
