import base64
from datetime import date

import pytest
from fastapi.testclient import TestClient

import main
from cache import EnrichmentCache
from ledger import AnswerLedger
from study_material import LookupFailure

D1 = date(2024, 3, 1)
D2 = date(2024, 3, 2)


def basic(user, password):
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


AUTH = basic("quizmaster", "s3cret:pass")


class Day:
    value = D1

    def __call__(self):
        return self.value


class ScriptedLookup:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def __call__(self, text):
        self.calls.append(text)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def day():
    return Day()


@pytest.fixture
def lookup():
    return ScriptedLookup(
        LookupFailure("HTTP error! status: 500", status=500, body="boom"),
        "Key Points: ...",
    )


@pytest.fixture
def client(monkeypatch, day, lookup):
    monkeypatch.setenv("AUTH_USER", "quizmaster")
    monkeypatch.setenv("AUTH_PASS", "s3cret:pass")
    ledger = AnswerLedger(today=day)
    monkeypatch.setattr(main, "ledger", ledger)
    monkeypatch.setattr(main, "study_cache", EnrichmentCache(ledger, lookup))
    return TestClient(main.app)


class TestAccessGate:
    def test_missing_header_is_challenged(self, client):
        response = client.get("/")
        assert response.status_code == 401
        assert response.text == "Unauthorized"
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Secure Area"'

    def test_wrong_password_is_rejected(self, client):
        response = client.get("/answers", headers=basic("quizmaster", "nope"))
        assert response.status_code == 401

    def test_malformed_header_is_rejected(self, client):
        response = client.get("/", headers={"Authorization": "Basic not-base64!!"})
        assert response.status_code == 401

    def test_unconfigured_credentials_reject_everyone(self, client, monkeypatch):
        monkeypatch.delenv("AUTH_USER")
        monkeypatch.delenv("AUTH_PASS")
        assert client.get("/", headers=AUTH).status_code == 401

    def test_cors_preflight_is_answered_without_credentials(self, client):
        response = client.options("/answers/missed", headers={
            "Origin": "https://quiz.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        })
        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers

    def test_rejection_carries_cors_headers(self, client):
        response = client.post("/answers/missed", json={"text": "x"},
                               headers={"Origin": "https://quiz.example.com"})
        assert response.status_code == 401
        assert response.headers["access-control-allow-origin"] == "*"
        assert client.get("/answers", headers=AUTH).json() == []

    def test_valid_credentials_pass(self, client):
        response = client.get("/", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


def test_add_and_list_answers(client):
    client.post("/answers/correct", headers=AUTH)
    response = client.post("/answers/missed", json={"text": "  Who is Abraham Lincoln?  "}, headers=AUTH)

    assert response.status_code == 200
    missed = response.json()
    assert missed["text"] == "Who is Abraham Lincoln?"
    assert missed["correct"] is False
    assert missed["visible"] is False
    assert missed["study_material"] is None
    assert missed["created_on"] == "2024-03-01"
    assert missed["status"] == "idle"

    listed = client.get("/answers", headers=AUTH).json()
    assert [a["correct"] for a in listed] == [True, False]


def test_empty_missed_answer_is_declined(client):
    response = client.post("/answers/missed", json={"text": "   "}, headers=AUTH)

    assert response.status_code == 400
    assert client.get("/answers", headers=AUTH).json() == []


def test_filter_by_date(client, day):
    first = client.post("/answers/missed", json={"text": "Who is Abraham Lincoln?"}, headers=AUTH).json()
    day.value = D2
    second = client.post("/answers/missed", json={"text": "What is the Nile?"}, headers=AUTH).json()

    on_d1 = client.get("/answers", params={"date": "2024-03-01"}, headers=AUTH).json()
    assert [a["id"] for a in on_d1] == [first["id"]]
    everything = client.get("/answers", headers=AUTH).json()
    assert [a["id"] for a in everything] == [first["id"], second["id"]]


def test_toggle_visibility(client):
    answer = client.post("/answers/missed", json={"text": "Who is Abraham Lincoln?"}, headers=AUTH).json()

    toggled = client.post(f"/answers/{answer['id']}/visibility", headers=AUTH)
    assert toggled.json()["visible"] is True
    assert client.post("/answers/1/visibility", headers=AUTH).status_code == 404


def test_additional_info(client):
    answer = client.post("/answers/missed", json={"text": "Abraham Lincoln"}, headers=AUTH).json()

    response = client.get(f"/answers/{answer['id']}/info", headers=AUTH)
    assert response.json()["info"] == "This is additional info about Abraham Lincoln."


def test_reveal_failure_then_success(client, lookup):
    answer = client.post("/answers/missed", json={"text": "Who is Abraham Lincoln?"}, headers=AUTH).json()
    path = f"/answers/{answer['id']}/study-material"

    failed = client.post(path, headers=AUTH)
    assert failed.status_code == 502
    assert failed.json()["detail"] == "Failed to fetch study material. Please try again."
    status = client.get(f"/answers/{answer['id']}/status", headers=AUTH).json()
    assert status["status"] == "error"
    record = client.get("/answers", headers=AUTH).json()[0]
    assert record["study_material"] is None
    assert record["visible"] is False

    revealed = client.post(path, headers=AUTH)
    assert revealed.status_code == 200
    assert revealed.json()["study_material"] == "Key Points: ..."
    assert revealed.json()["visible"] is True

    cached = client.post(path, headers=AUTH)
    assert cached.json()["study_material"] == "Key Points: ..."
    assert cached.json()["visible"] is False
    assert len(lookup.calls) == 2


def test_reveal_unknown_and_correct(client, lookup):
    correct = client.post("/answers/correct", headers=AUTH).json()

    assert client.post("/answers/7/study-material", headers=AUTH).status_code == 404
    assert client.post(f"/answers/{correct['id']}/study-material", headers=AUTH).status_code == 400
    assert client.get("/answers/7/status", headers=AUTH).status_code == 404
    assert lookup.calls == []
