"""Shared fixtures: a fake Prometheus backend behind requests.get."""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def json(self):
        if self.text is not None:
            raise ValueError(f"Expecting value: {self.text[:20]!r}")
        return self.payload


class FakeBackend:
    """Records every call and answers with a queued response or error."""

    def __init__(self):
        self.calls = []
        self.response = FakeResponse(success_payload([]))
        self.error = None

    def respond(self, payload=None, status_code=200, text=None):
        self.response = FakeResponse(payload, status_code, text)

    def fail(self, error):
        self.error = error

    def get(self, url, params=None, auth=None, timeout=None):
        self.calls.append({"url": url, "params": params, "auth": auth, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def success_payload(result):
    return {"status": "success", "data": {"resultType": "vector", "result": result}}


def vector_entry(labels, value, timestamp=1700000000.123):
    return {"metric": labels, "value": [timestamp, value]}


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr("check_prometheus.fetcher.requests.get", fake.get)
    return fake


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("PROMETHEUS_HOST", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
