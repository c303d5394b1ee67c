"""Shared fixtures for the csvcurl test suite."""

import json

import pytest

from csvcurl.errors import RequestError


CONFIG_VARS = (
    "CSV_CURL_TIMEOUT_SEC",
    "CSV_CURL_LOG_LEVEL",
    "CSV_CURL_STREAM",
    "CSV_CURL_CHUNK_SIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test without CSV_CURL_* variables and outside any .env."""
    for name in CONFIG_VARS:
        # setenv first so monkeypatch restores the variable to "unset" even
        # if load_dotenv() writes it during the test
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def write_file(tmp_path):
    """Write text (or bytes) to a file under tmp_path and return its path."""

    def _write(name, content):
        path = tmp_path / name
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_template(write_file):
    def _write(document, name="template.json"):
        return write_file(name, json.dumps(document))

    return _write


class FakeClient:
    """
    Stands in for HttpClient.

    ``responses`` is consumed one entry per request: a (status, text) tuple
    is returned, an Exception instance is raised as a RequestError.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []
        self.closed = False

    def post_json(self, url, body):
        self.requests.append((url, json.loads(body)))
        outcome = self.responses.pop(0) if self.responses else (200, "ok")
        if isinstance(outcome, Exception):
            raise RequestError(f"{type(outcome).__name__}: {outcome}", url=url)
        return outcome

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def fake_client_factory():
    """Build FakeClient instances and remember the last one."""

    def _make(responses=None):
        client = FakeClient(responses)
        _make.last = client
        return client

    _make.last = None
    return _make
