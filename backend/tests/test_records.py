from datetime import datetime, timedelta

from eiken_app.cleanup import purge_older_than_one_week
from eiken_app.models import SpeechAttempt
from eiken_app.pronunciation import Segment, evaluate
from eiken_app.routers.records import range_start, record_attempt


def _store(db, transcript="Hello there.", client_id="browser-1"):
    evaluation = evaluate(transcript, [Segment(start=0.0, end=2.0, avg_logprob=-0.4, no_speech_prob=0.1)])
    return record_attempt(db, transcript=transcript, evaluation=evaluation, client_id=client_id)


def _store_scored(db, created_at, fluency, client_id="browser-1"):
    record_id = _store(db, client_id=client_id)
    row = db.get(SpeechAttempt, record_id)
    row.created_at = created_at
    row.fluency = fluency
    db.commit()
    return record_id


def test_list_records_newest_first(api_client, db_session):
    first = _store(db_session, "first answer")
    second = _store(db_session, "second answer")
    db_session.get(SpeechAttempt, first).created_at = datetime.utcnow() - timedelta(minutes=5)
    db_session.commit()

    res = api_client.get("/records", params={"client_id": "browser-1"})

    assert res.status_code == 200
    assert [r["id"] for r in res.json()] == [second, first]


def test_list_records_filters_by_client(api_client, db_session):
    _store(db_session, client_id="browser-1")
    other = _store(db_session, client_id="browser-2")

    res = api_client.get("/records", params={"client_id": "browser-2"})

    assert [r["id"] for r in res.json()] == [other]


def test_list_records_limit_is_validated(api_client, db_session):
    assert api_client.get("/records", params={"limit": 0}).status_code == 422
    assert api_client.get("/records", params={"limit": 101}).status_code == 422


def test_get_record_returns_full_result(api_client, db_session):
    record_id = _store(db_session)

    body = api_client.get(f"/records/{record_id}").json()

    assert body["transcript"] == "Hello there."
    assert body["pronunciation"]["method"] == "audio"
    assert "durationSec" in body["pronunciation"]["metrics"]


def test_get_unknown_record_is_404(api_client, db_session):
    assert api_client.get("/records/does-not-exist").status_code == 404


def test_clear_records_only_for_client(api_client, db_session):
    _store(db_session, client_id="browser-1")
    _store(db_session, client_id="browser-1")
    keep = _store(db_session, client_id="browser-2")

    res = api_client.delete("/records", params={"client_id": "browser-1"})

    assert res.json() == {"ok": True, "removed": 2}
    assert [r["id"] for r in api_client.get("/records").json()] == [keep]


def test_purge_removes_only_stale_attempts(db_session):
    stale = _store(db_session)
    fresh = _store(db_session)
    db_session.get(SpeechAttempt, stale).created_at = datetime.utcnow() - timedelta(days=8)
    db_session.commit()

    removed = purge_older_than_one_week(db_session)

    assert removed == 1
    assert db_session.get(SpeechAttempt, stale) is None
    assert db_session.get(SpeechAttempt, fresh) is not None


def test_info_reports_configuration(api_client):
    body = api_client.get("/info").json()

    assert body == {"status": "ok", "stt_configured": True, "tts_configured": True}


def test_get_record_with_infinite_pace_returns_null_wpm(api_client, db_session):
    evaluation = evaluate("hello world", [Segment(start=0.0, end=1e-310)])
    record_id = record_attempt(db_session, transcript="hello world", evaluation=evaluation)

    res = api_client.get(f"/records/{record_id}")

    assert res.status_code == 200
    assert res.json()["pronunciation"]["metrics"]["wpm"] is None


def test_dashboard_keeps_earliest_attempt_per_day(api_client, db_session):
    today = datetime.utcnow().replace(hour=12, minute=0, second=0, microsecond=0)
    _store_scored(db_session, today - timedelta(days=1, hours=2), fluency=4)
    _store_scored(db_session, today - timedelta(days=1), fluency=9)
    _store_scored(db_session, today, fluency=7)

    res = api_client.get("/records/dashboard/fluency", params={"client_id": "browser-1"})

    assert res.status_code == 200
    body = res.json()
    assert body["metric"] == "fluency"
    assert body["range"] == "all"
    assert [p["score"] for p in body["points"]] == [4, 7]
    assert [p["date"] for p in body["points"]] == [
        (today - timedelta(days=1)).date().isoformat(),
        today.date().isoformat(),
    ]
    assert body["average"] == 5.5


def test_dashboard_range_excludes_older_days(api_client, db_session):
    now = datetime.utcnow()
    _store_scored(db_session, now - timedelta(days=60), fluency=2)
    _store_scored(db_session, now - timedelta(days=10), fluency=8)

    one_month = api_client.get("/records/dashboard/fluency", params={"range": "1m"}).json()
    all_time = api_client.get("/records/dashboard/fluency", params={"range": "all"}).json()

    assert [p["score"] for p in one_month["points"]] == [8]
    assert [p["score"] for p in all_time["points"]] == [2, 8]


def test_dashboard_average_rounds_half_up_to_one_decimal(api_client, db_session):
    now = datetime.utcnow().replace(hour=12)
    for days_ago, score in ((3, 7), (2, 7), (1, 8)):
        _store_scored(db_session, now - timedelta(days=days_ago), fluency=score)

    body = api_client.get("/records/dashboard/fluency").json()

    # 22 / 3 = 7.333...
    assert body["average"] == 7.3


def test_dashboard_filters_by_client(api_client, db_session):
    now = datetime.utcnow()
    _store_scored(db_session, now, fluency=3, client_id="browser-1")
    _store_scored(db_session, now, fluency=9, client_id="browser-2")

    body = api_client.get("/records/dashboard/fluency", params={"client_id": "browser-2"}).json()

    assert [p["score"] for p in body["points"]] == [9]


def test_dashboard_empty_has_zero_average(api_client, db_session):
    body = api_client.get("/records/dashboard/overall", params={"range": "3m"}).json()

    assert body == {"metric": "overall", "range": "3m", "points": [], "average": 0.0}


def test_dashboard_rejects_unknown_metric_and_range(api_client, db_session):
    assert api_client.get("/records/dashboard/total").status_code == 422
    assert api_client.get("/records/dashboard/overall", params={"range": "2y"}).status_code == 422


def test_range_start_rolls_over_short_months():
    # March 31 minus one month lands past February's end and rolls into March
    assert range_start("1m", datetime(2025, 3, 31, 15, 30)) == datetime(2025, 3, 3)
    assert range_start("6m", datetime(2025, 3, 15, 9, 0)) == datetime(2024, 9, 15)
    assert range_start("all", datetime(2025, 3, 15)) is None


def test_startup_keeps_cleanup_watcher_until_shutdown(db_session):
    from fastapi.testclient import TestClient
    from eiken_app import main

    with TestClient(main.app):
        task = main._cleanup_task
        assert task is not None
        assert not task.done()

    assert main._cleanup_task is None
