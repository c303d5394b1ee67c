"""End-to-end tests for the command line entry point (no network)."""

import logging

import pytest

from csvcurl import run_csvcurl
from csvcurl.run_csvcurl import main


URL = "https://api.example.com/items"


@pytest.fixture
def client(monkeypatch, fake_client_factory):
    """Replace HttpClient in the CLI with a FakeClient; returns a setter for responses."""
    state = {"responses": None}

    def _factory(settings):
        return fake_client_factory(state["responses"])

    monkeypatch.setattr(run_csvcurl, "HttpClient", _factory)

    def _configure(responses=None):
        state["responses"] = responses
        return fake_client_factory

    return _configure


@pytest.fixture
def inputs(write_file, write_template):
    def _make(csv_text, template=None):
        csv_path = write_file("data.csv", csv_text)
        template_path = write_template(template or {"id": "{{id}}", "msg": "hi {{name}}"})
        return [str(csv_path), str(template_path), URL]

    return _make


# =============================================================================
# Usage errors
# =============================================================================


@pytest.mark.parametrize("argv", [[], ["a.csv"], ["a.csv", "t.json"]])
def test_missing_arguments(argv, capsys):
    assert main(argv) == 1
    err = capsys.readouterr().err
    assert "usage: csv-curl" in err
    assert "csv_file template_file url" in err


def test_too_many_arguments(capsys):
    assert main(["a.csv", "t.json", URL, "extra"]) == 1
    assert "unrecognized arguments" in capsys.readouterr().err


@pytest.mark.parametrize("flag", ["-h", "--help"])
def test_no_flags_accepted(flag, capsys):
    assert main([flag]) == 1
    assert "usage: csv-curl csv_file template_file url" in capsys.readouterr().err


def test_help_flag_with_positionals_is_rejected(capsys):
    assert main(["a.csv", "t.json", URL, "-h"]) == 1
    assert "unrecognized arguments: -h" in capsys.readouterr().err


@pytest.mark.parametrize(
    "argv",
    [["a.csv", "t.json", ""], ["", "t.json", URL], ["a.csv", "  ", URL]],
)
def test_empty_arguments_are_missing(argv, client, capsys):
    factory = client()

    assert main(argv) == 1
    assert "empty argument" in capsys.readouterr().err
    assert factory.last is None


def test_invalid_configuration(monkeypatch, inputs, client, caplog):
    factory = client()
    monkeypatch.setenv("CSV_CURL_CHUNK_SIZE", "-1")

    assert main(inputs("id\n1\n")) == 1
    assert factory.last is None
    assert "Invalid configuration" in caplog.text


# =============================================================================
# File errors
# =============================================================================


def test_unreadable_csv(tmp_path, write_template, client, caplog):
    factory = client()
    template = write_template({"id": "{{id}}"})

    assert main([str(tmp_path / "missing.csv"), str(template), URL]) == 1
    assert "Error reading CSV file" in caplog.text
    assert factory.last is None


def test_malformed_csv(inputs, client, caplog):
    factory = client()

    assert main(inputs('id,name\n1,"open\n')) == 1
    assert "Error reading CSV file" in caplog.text
    assert factory.last is None


def test_malformed_template(write_file, client, caplog):
    factory = client()
    csv_path = write_file("data.csv", "id\n1\n")
    template_path = write_file("template.json", "{not json")

    assert main([str(csv_path), str(template_path), URL]) == 1
    assert "Error reading template file" in caplog.text
    assert factory.last is None


def test_missing_template(write_file, tmp_path, client, caplog):
    csv_path = write_file("data.csv", "id\n1\n")

    assert main([str(csv_path), str(tmp_path / "none.json"), URL]) == 1
    assert "Error reading template file" in caplog.text


# =============================================================================
# Runs
# =============================================================================


def test_zero_rows_sends_nothing(inputs, client, caplog):
    caplog.set_level(logging.INFO)
    factory = client()

    assert main(inputs("id,name\n")) == 0
    assert factory.last is None
    assert "No data rows found in CSV." in caplog.text


def test_all_rows_succeed(inputs, client, caplog):
    caplog.set_level(logging.INFO)
    factory = client()

    assert main(inputs("id,name\n1,Ada\n2,Grace\n")) == 0

    assert factory.last.requests == [
        (URL, {"id": "1", "msg": "hi Ada"}),
        (URL, {"id": "2", "msg": "hi Grace"}),
    ]
    assert factory.last.closed
    assert f"Sending 2 request(s) to {URL}" in caplog.text


def test_failed_rows_give_exit_code_one(inputs, client):
    responses = [(200, ""), (400, "bad"), (200, ""), (200, ""), (502, "gateway"), (200, "")]
    factory = client(responses)
    csv_text = "id,name\n" + "".join(f"{i},n{i}\n" for i in range(1, 7))

    assert main(inputs(csv_text)) == 1
    assert [body["id"] for _, body in factory.last.requests] == ["1", "2", "3", "4", "5", "6"]


def test_transport_failure_gives_exit_code_one(inputs, client):
    factory = client([ConnectionError("refused"), (200, "")])

    assert main(inputs("id,name\n1,a\n2,b\n")) == 1
    assert len(factory.last.requests) == 2


def test_unknown_placeholder_warning(inputs, client, caplog):
    client()

    assert main(inputs("id\n1\n", {"id": "{{id}}", "who": "{{name}}"})) == 0
    assert "no matching CSV column" in caplog.text
    assert "name" in caplog.text


# =============================================================================
# Streaming mode
# =============================================================================


def test_streaming_run(monkeypatch, inputs, client, caplog):
    caplog.set_level(logging.INFO)
    monkeypatch.setenv("CSV_CURL_STREAM", "true")
    monkeypatch.setenv("CSV_CURL_CHUNK_SIZE", "2")
    factory = client()
    csv_text = "id,name\n" + "".join(f"{i},n{i}\n" for i in range(1, 6))

    assert main(inputs(csv_text)) == 0
    assert [body["id"] for _, body in factory.last.requests] == ["1", "2", "3", "4", "5"]
    assert "streaming rows" in caplog.text


def test_streaming_zero_rows(monkeypatch, inputs, client):
    monkeypatch.setenv("CSV_CURL_STREAM", "true")
    factory = client()

    assert main(inputs("id,name\n")) == 0
    assert factory.last is None


def test_streaming_stops_at_malformed_row(monkeypatch, inputs, client, caplog):
    monkeypatch.setenv("CSV_CURL_STREAM", "true")
    monkeypatch.setenv("CSV_CURL_CHUNK_SIZE", "2")
    factory = client()

    assert main(inputs("id,name\n1,a\n2,b\n3\n4,d\n")) == 1
    assert [body["id"] for _, body in factory.last.requests] == ["1", "2"]
    assert "Error reading CSV file" in caplog.text
    assert factory.last.closed


def test_streaming_stops_at_overlong_row(monkeypatch, inputs, client, caplog):
    monkeypatch.setenv("CSV_CURL_STREAM", "true")
    monkeypatch.setenv("CSV_CURL_CHUNK_SIZE", "2")
    factory = client()

    assert main(inputs("id,name\n1,a\n2,b\n3,c,EXTRA\n")) == 1
    assert [body["id"] for _, body in factory.last.requests] == ["1", "2"]
    assert "more fields than the header" in caplog.text


def test_template_with_nan_is_rejected(write_file, client, caplog):
    factory = client()
    csv_path = write_file("data.csv", "id\n1\n")
    template_path = write_file("template.json", '{"a": NaN, "c": "{{id}}"}')

    assert main([str(csv_path), str(template_path), URL]) == 1
    assert "Error reading template file" in caplog.text
    assert factory.last is None
