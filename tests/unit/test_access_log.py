"""
Unit tests for access logging.
"""

import json
import logging

from fileserver.access_log import AccessLog
from fileserver.http.request import HTTPRequest
from fileserver.http.response import accepted, not_found


def make_request() -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        target="/data",
        headers={"user-agent": "pytest"},
        client_address=("10.0.0.7", 5555),
    )


def test_started_logs_timestamp(caplog):
    with caplog.at_level(logging.INFO, logger="fileserver.access"):
        started_at = AccessLog().started(make_request(), "abc123")

    assert started_at > 0
    assert f"start handling {started_at:.9f}s: GET /data from 10.0.0.7 [abc123]" in caplog.text


def test_finished_text_record(caplog):
    access = AccessLog()
    request = make_request()

    with caplog.at_level(logging.INFO, logger="fileserver.access"):
        entry = access.finished(request, accepted(b"12345"), access.started(request))

    assert entry.status_code == 202
    assert entry.content_length == 5
    assert entry.user_agent == "pytest"
    assert '"GET /data" 202 5' in caplog.text


def test_finished_json_record(caplog):
    access = AccessLog(log_format="json")
    request = make_request()

    with caplog.at_level(logging.INFO, logger="fileserver.access"):
        access.finished(request, not_found(), 0.0, "id1")

    record = json.loads(caplog.records[-1].getMessage())
    assert record["status_code"] == 404
    assert record["request_id"] == "id1"
    assert record["client_ip"] == "10.0.0.7"


def test_unsent_response_logged_as_warning(caplog):
    access = AccessLog()
    request = make_request()

    with caplog.at_level(logging.INFO, logger="fileserver.access"):
        access.finished(request, accepted(), 0.0, sent=False)

    assert caplog.records[-1].levelno == logging.WARNING
