"""
Tests for error handling: structured error responses, HTTP status codes,
and the custom exception classes.
"""
import asyncio
import json
import warnings
from datetime import date

from fastapi.exceptions import RequestValidationError
from starlette.requests import Request

from ramadan_tracker.core.errors import (
    ConfigurationError,
    ConflictError,
    InvalidKultumVideoError,
    ReportValidationError,
    TrackerException,
    UserNotFoundError,
    tracker_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)


def _request(path="/users/x/reports", method="POST"):
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "query_string": b"",
        "scheme": "http",
        "server": ("testserver", 80),
    })


# ---------------------------------------------------------------------------
# Unit tests on exception classes
# ---------------------------------------------------------------------------

class TestExceptionClasses:
    def test_report_validation_error(self):
        err = ReportValidationError("Mission REFLEKSI_DIRI requires a narration.", field="narration")
        assert err.http_status == 422
        assert err.code == "REPORT_VALIDATION_ERROR"
        assert err.to_dict()["details"] == {"field": "narration"}

    def test_invalid_kultum_video(self):
        err = InvalidKultumVideoError(42)
        assert isinstance(err, ReportValidationError)
        assert err.http_status == 422
        assert err.code == "INVALID_KULTUM_VIDEO"
        assert err.details["teacher_video_id"] == 42
        assert err.details["field"] == "kultum_report.teacher_video_id"

    def test_user_not_found(self):
        err = UserNotFoundError("u-1")
        assert err.http_status == 404
        assert "u-1" in err.message

    def test_conflict_error(self):
        err = ConflictError("u-1", date(2026, 3, 1))
        assert err.http_status == 409
        assert err.code == "CONCURRENT_MODIFICATION"
        assert err.details == {"user_id": "u-1", "report_date": "2026-03-01"}

    def test_configuration_error_sorts_codes(self):
        err = ConfigurationError({"ZAKAT_FITRAH", "TADARUS_RAMADAN"})
        assert err.http_status == 500
        assert err.details["missing_codes"] == ["TADARUS_RAMADAN", "ZAKAT_FITRAH"]
        assert "TADARUS_RAMADAN, ZAKAT_FITRAH" in err.message

    def test_to_dict_without_details(self):
        d = TrackerException("plain").to_dict()
        assert d == {"code": "INTERNAL_ERROR", "message": "plain"}


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

class TestHandlers:
    def test_tracker_handler_envelope(self):
        response = asyncio.run(tracker_exception_handler(_request(), UserNotFoundError("u-9")))
        assert response.status_code == 404
        body = json.loads(response.body)
        assert body["code"] == "USER_NOT_FOUND"
        assert body["details"]["user_id"] == "u-9"

    def test_validation_handler_envelope_without_warnings(self):
        exc = RequestValidationError([
            {"loc": ("body", "fasting"), "msg": "Field required", "type": "missing"},
        ])
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            response = asyncio.run(validation_exception_handler(_request(), exc))
        assert response.status_code == 422
        body = json.loads(response.body)
        assert body["code"] == "VALIDATION_ERROR"
        assert body["details"]["errors"] == [
            {"field": "fasting", "message": "Field required", "type": "missing"},
        ]

    def test_server_errors_are_logged(self, caplog):
        with caplog.at_level("ERROR", logger="ramadan_tracker.core.errors"):
            response = asyncio.run(
                tracker_exception_handler(_request(), ConfigurationError(["X"]))
            )
        assert response.status_code == 500
        assert "CATALOG_MISCONFIGURED" in caplog.text

    def test_unhandled_exception_hides_details(self, caplog):
        with caplog.at_level("ERROR", logger="ramadan_tracker.core.errors"):
            response = asyncio.run(
                unhandled_exception_handler(_request(), RuntimeError("secret stack"))
            )
        assert response.status_code == 500
        body = json.loads(response.body)
        assert body == {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred."}
        assert "secret stack" not in response.body.decode()
        assert "Unhandled error" in caplog.text


class TestErrorResponsesOverHttp:
    def test_404_envelope(self, client):
        r = client.get("/users/missing-user/badges")
        assert r.status_code == 404
        body = r.json()
        assert set(body) == {"code", "message", "details"}

    def test_conflict_surfaces_as_409(self, client, make_user, monkeypatch):
        from ramadan_tracker.routers import reports as reports_router

        def conflict(**kwargs):
            raise ConflictError(kwargs["user_id"], kwargs["report_date"])

        monkeypatch.setattr(reports_router, "submit_daily_report", conflict)
        user = make_user()
        r = client.post(f"/users/{user.id}/reports", json={"fasting": True},
                        params={"report_date": "2026-03-03"})
        assert r.status_code == 409
        assert r.json()["code"] == "CONCURRENT_MODIFICATION"
        assert r.json()["details"]["report_date"] == "2026-03-03"
