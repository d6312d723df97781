"""
HTTP-level tests for every route: status codes, response shapes and the
error envelope.
"""
from datetime import date, timedelta
import uuid

import pytest

from ramadan_tracker.core.config import EngineConfig, get_engine_config
from ramadan_tracker.main import app

FESTIVAL = date(2026, 3, 20)


@pytest.fixture()
def festival_config():
    app.dependency_overrides[get_engine_config] = lambda: EngineConfig(festival_dates=(FESTIVAL,))
    yield
    app.dependency_overrides.pop(get_engine_config, None)


def _post(client, user_id, body, report_date=None):
    params = {"report_date": str(report_date)} if report_date else None
    return client.post(f"/users/{user_id}/reports", json=body, params=params)


# ---------------------------------------------------------------------------
# Health / catalog
# ---------------------------------------------------------------------------

class TestHealth:
    def test_health_ok(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"
        assert r.json()["db"] == "ok"
        assert r.json()["active_missions"] == 15


class TestMissions:
    def test_lists_active_catalog(self, client):
        r = client.get("/missions")
        assert r.status_code == 200
        missions = r.json()["missions"]
        codes = {m["code"] for m in missions}
        assert "TADARUS_RAMADAN" in codes
        assert len(missions) == 15
        categories = [m["category"] for m in missions]
        assert categories == sorted(categories)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class TestSubmitReport:
    def test_submit_scores_and_reports_rejections(self, client, make_user, festival_config):
        user = make_user()
        r = _post(client, user.id, {
            "fasting": True,
            "selected_codes": ["CATATAN_PUASA_DAN_JAMAAH", "SHALAT_IDULFITRI"],
        }, report_date=date(2026, 3, 19))
        assert r.status_code == 200
        data = r.json()
        assert data["xp_gained"] == 35
        assert data["rejections"] == [
            {"code": "SHALAT_IDULFITRI", "reason": "only active on festival day"}
        ]
        assert data["breakdown"]["per_code"] == {"CATATAN_PUASA_DAN_JAMAAH": 35}
        assert data["progress"]["total_xp"] == 35
        assert data["progress"]["level"] == 1

    def test_festival_day_counts_prayer(self, client, make_user, festival_config):
        user = make_user()
        r = _post(client, user.id, {"fasting": False, "selected_codes": ["SHALAT_IDULFITRI"]},
                  report_date=FESTIVAL)
        assert r.status_code == 200
        assert r.json()["xp_gained"] == 15
        assert r.json()["rejections"] == []

    def test_defaults_to_today(self, client, make_user):
        user = make_user()
        r = _post(client, user.id, {"fasting": True, "selected_codes": ["SHALAT_TARAWIH"]})
        assert r.status_code == 200
        assert r.json()["progress"]["current_streak"] == 1

        today = client.get(f"/users/{user.id}/reports/today")
        assert today.status_code == 200
        body = today.json()
        assert body["report_date"] == r.json()["report_date"]
        assert body["report"]["xp_gained"] == 10
        assert body["report"]["answers"]["selected_codes"] == ["SHALAT_TARAWIH"]

    def test_future_date_rejected(self, client, make_user):
        user = make_user()
        future = date.today() + timedelta(days=200)
        r = _post(client, user.id, {"fasting": True, "selected_codes": ["CATATAN_PUASA_DAN_JAMAAH"]},
                  report_date=future)
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "REPORT_VALIDATION_ERROR"
        assert body["details"]["field"] == "report_date"

        progress = client.get(f"/users/{user.id}/progress").json()
        assert progress["total_xp"] == 0
        assert progress["last_report_date"] is None

    def test_unknown_user(self, client):
        r = _post(client, f"ghost-{uuid.uuid4().hex[:6]}", {"fasting": True})
        assert r.status_code == 404
        assert r.json()["code"] == "USER_NOT_FOUND"

    def test_missing_fasting_flag(self, client, make_user):
        user = make_user()
        r = _post(client, user.id, {"selected_codes": []})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert any(e["field"] == "fasting" for e in body["details"]["errors"])

    @pytest.mark.parametrize("bad", [
        {"fasting": True, "sunnah_boost": 101},
        {"fasting": True, "murajaah_xp_bonus": -1},
        {"fasting": True, "prayer_reports": {"Subuh": "Sendiri"}},
        {"fasting": True, "tadarus_report": {
            "surah_name": "Al-Mulk", "ayat_from": 10, "ayat_to": 5, "total_ayat_read": 5,
        }},
        {"fasting": True, "kultum_report": {
            "teacher_video_id": 1, "ringkasan": "terlalu pendek", "poin_pelajaran": ["a b c"],
        }},
    ])
    def test_shape_errors(self, client, make_user, bad):
        user = make_user()
        r = _post(client, user.id, bad)
        assert r.status_code == 422
        assert r.json()["code"] == "VALIDATION_ERROR"

    def test_narration_required(self, client, make_user):
        user = make_user()
        r = _post(client, user.id, {"fasting": True, "selected_codes": ["REFLEKSI_DIRI"]})
        assert r.status_code == 422
        body = r.json()
        assert body["code"] == "REPORT_VALIDATION_ERROR"
        assert body["details"]["field"] == "narration"

    def test_catalog_misconfigured(self, client, make_user):
        app.dependency_overrides[get_engine_config] = lambda: EngineConfig(
            one_time_codes=("SHALAT_IDULFITRI", "MISI_TIDAK_ADA"),
        )
        try:
            user = make_user()
            r = _post(client, user.id, {"fasting": True})
        finally:
            app.dependency_overrides.pop(get_engine_config, None)
        assert r.status_code == 500
        body = r.json()
        assert body["code"] == "CATALOG_MISCONFIGURED"
        assert body["details"]["missing_codes"] == ["MISI_TIDAK_ADA"]


class TestReportQueries:
    def test_today_without_report(self, client, make_user):
        user = make_user()
        r = client.get(f"/users/{user.id}/reports/today")
        assert r.status_code == 200
        assert r.json()["report"] is None

    def test_month_history(self, client, make_user):
        user = make_user()
        for day in ("2026-03-02", "2026-03-05", "2026-04-01"):
            assert _post(client, user.id, {"fasting": True}, report_date=day).status_code == 200
        r = client.get(f"/users/{user.id}/reports", params={"month": "2026-03"})
        assert r.status_code == 200
        dates = [rep["report_date"] for rep in r.json()["reports"]]
        assert dates == ["2026-03-05", "2026-03-02"]

    def test_month_format(self, client, make_user):
        user = make_user()
        r = client.get(f"/users/{user.id}/reports", params={"month": "2026-13"})
        assert r.status_code == 422


# ---------------------------------------------------------------------------
# Progress / badges / leaderboard
# ---------------------------------------------------------------------------

class TestProgress:
    def test_progress_after_submission(self, client, make_user):
        user = make_user()
        _post(client, user.id, {
            "fasting": True,
            "selected_codes": ["SHALAT_TARAWIH"],
            "murajaah_xp_bonus": 100,
        })
        r = client.get(f"/users/{user.id}/progress")
        assert r.status_code == 200
        data = r.json()
        assert data["total_xp"] == 110
        assert data["level"] == 2
        assert data["next_level_xp"] == 200

    def test_progress_unknown_user(self, client):
        r = client.get("/users/nobody-here/progress")
        assert r.status_code == 404


class TestBadges:
    def test_user_badges(self, client, make_user):
        user = make_user()
        _post(client, user.id, {"fasting": True, "selected_codes": ["SHALAT_TARAWIH"]})
        r = client.get(f"/users/{user.id}/badges")
        assert r.status_code == 200
        data = r.json()
        assert data["total"] == 18
        assert len(data["badges"]) == 18
        assert data["stats"]["total_reports"] == 1
        assert data["badges"][-1]["id"] == "legenda_ibadah"
        assert data["badges"][-1]["target"] == 17

    def test_evaluate_snapshot(self, client):
        r = client.post("/badges/evaluate", json={"total_reports": 7, "fasting_days": 9})
        assert r.status_code == 200
        badges = {b["id"]: b for b in r.json()["badges"]}
        assert badges["bintang_subuh"]["unlocked"] is True
        assert badges["penjaga_dzuhur"]["progress"] == 90
        assert badges["penjaga_dzuhur"]["unlocked"] is False
        assert r.json()["unlocked"] == 1

    def test_evaluate_rejects_negative(self, client):
        r = client.post("/badges/evaluate", json={"total_xp": -1})
        assert r.status_code == 422


class TestLeaderboard:
    def test_classroom_scope(self, client, make_user):
        classroom = f"kelas-{uuid.uuid4().hex[:6]}"
        low = make_user(classroom=classroom, name="Rendah")
        high = make_user(classroom=classroom, name="Tinggi")
        teacher = make_user(classroom=classroom, role="guru", name="Guru")
        _post(client, low.id, {"fasting": True, "selected_codes": ["SHALAT_TARAWIH"]})
        _post(client, high.id, {"fasting": True, "selected_codes": ["CATATAN_PUASA_DAN_JAMAAH"]})
        _post(client, teacher.id, {"fasting": True, "selected_codes": ["ZAKAT_FITRAH"]})

        r = client.get("/leaderboard", params={"scope": "classroom", "user_id": low.id})
        assert r.status_code == 200
        data = r.json()
        assert data["scope"] == "classroom"
        assert [e["id"] for e in data["ranking"]] == [high.id, low.id]
        assert [e["rank"] for e in data["ranking"]] == [1, 2]

    def test_classroom_falls_back_to_school(self, client, make_user):
        user = make_user()
        r = client.get("/leaderboard", params={"scope": "classroom", "user_id": user.id})
        assert r.status_code == 200
        assert r.json()["scope"] == "school"
