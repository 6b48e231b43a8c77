import pytest
from datetime import datetime, timedelta
from focus_timer.models.session import CompletedSessionRecord
from focus_timer.services.database import DatabaseConnectionError, DatabaseManager
from focus_timer.services.errors import DatabaseError

BASE = datetime(2024, 1, 1, 9, 0, 0)

def make_record(minutes=25, offset_hours=0, intent_id=None):
    return CompletedSessionRecord(
        duration_minutes=minutes,
        started_at=BASE + timedelta(hours=offset_hours),
        intent_id=intent_id
    )

def test_create_and_get_session(db):
    session_id = db.create_session(make_record(intent_id=4))
    assert session_id is not None

    stored = db.get_session(session_id)
    assert stored.id == session_id
    assert stored.duration_minutes == 25
    assert stored.started_at == BASE
    assert stored.intent_id == 4
    assert stored.created_at is not None

def test_get_missing_session(db):
    assert db.get_session(999) is None

def test_get_sessions_newest_first(db):
    for hour in range(3):
        db.create_session(make_record(offset_hours=hour))

    sessions = db.get_sessions()
    assert [s.started_at for s in sessions] == [BASE + timedelta(hours=h) for h in (2, 1, 0)]

def test_get_sessions_filters(db):
    db.create_session(make_record(offset_hours=0, intent_id=1))
    db.create_session(make_record(offset_hours=5, intent_id=2))
    db.create_session(make_record(offset_hours=30, intent_id=1))

    assert len(db.get_sessions(intent_id=1)) == 2
    assert len(db.get_sessions(start=BASE + timedelta(hours=1))) == 2
    assert len(db.get_sessions(end=BASE + timedelta(hours=1))) == 1
    assert len(db.get_sessions(limit=1)) == 1

def test_stats(db):
    db.create_session(make_record(minutes=25, intent_id=1))
    db.create_session(make_record(minutes=15, intent_id=1))
    db.create_session(make_record(minutes=20))

    stats = db.get_stats()
    assert stats["session_count"] == 3
    assert stats["total_minutes"] == 60
    assert stats["average_minutes"] == 20.0
    assert stats["by_intent"][0] == {"intent_id": 1, "session_count": 2, "total_minutes": 40}

def test_stats_empty(db):
    stats = db.get_stats()
    assert stats["session_count"] == 0
    assert stats["total_minutes"] == 0
    assert stats["average_minutes"] == 0.0
    assert stats["by_intent"] == []

def test_database_integrity(db):
    assert db.verify_database_integrity() is True

def test_rejects_non_record(db):
    with pytest.raises(DatabaseError):
        db.create_session(None)

def test_closed_database_raises(db):
    db.close()
    with pytest.raises(DatabaseConnectionError):
        db.create_session(make_record())

def test_file_database_persists(tmp_path):
    path = tmp_path / "nested" / "sessions.db"
    db = DatabaseManager(path)
    db.create_session(make_record())
    db.close()

    reopened = DatabaseManager(path)
    try:
        assert len(reopened.get_sessions()) == 1
    finally:
        reopened.close()
