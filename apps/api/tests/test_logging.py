import logging

from fastapi.testclient import TestClient

from apps.api.app.logging_setup import RequestIdFilter, get_request_id, set_request_id
from apps.api.app.main import app
from apps.api.app.routers.utils import get_candidate_source, get_rating_source
from apps.api.app.sources import InMemoryCandidateSource, InMemoryRatingSource


client = TestClient(app)


def test_request_id_propagates(caplog):
    caplog.set_level(logging.INFO)
    app.dependency_overrides[get_rating_source] = lambda: InMemoryRatingSource()
    app.dependency_overrides[get_candidate_source] = lambda: InMemoryCandidateSource()
    try:
        r = client.post("/tonight", json={"memberIds": ["alex"]}, headers={"X-Request-ID": "test-req-id"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 200
    records = [rec for rec in caplog.records if rec.getMessage() == "tonight_pick"]
    assert records
    assert records[-1].members == 1
    assert records[-1].returned == 0


def test_filter_stamps_current_request_id():
    set_request_id("abc")
    try:
        rec = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestIdFilter().filter(rec)
        assert rec.request_id == "abc"
        assert get_request_id() == "abc"
    finally:
        set_request_id(None)
