"""
Shared pytest fixtures.

Uses a SQLite file database so no Postgres is required for tests. The URL is
exported before the app is imported so the startup catalog check and the
request sessions all see the same seeded tables.
"""
import os
import uuid
from datetime import datetime, timezone

SQLITE_URL = "sqlite:///./test_ramadan.db"
os.environ.setdefault("DATABASE_URL", SQLITE_URL)
os.environ.setdefault("IDULFITRI_DATES", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ramadan_tracker.db.base import Base, get_db
from ramadan_tracker.main import app
from ramadan_tracker.models.mission import Mission
from ramadan_tracker.models.teacher_video import TeacherVideo
from ramadan_tracker.models.user import User

engine = create_engine(os.environ["DATABASE_URL"], connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# (code, title, category, xp, requires_narration)
_DEFAULT_MISSIONS = [
    ("HAFALAN_SURAT_PENDEK",     "Hafalan Surat-Surat Pendek",             "RAMADAN_INTI",    30, False),
    ("CATATAN_PUASA_DAN_JAMAAH", "Shalat Lima Waktu",                      "RAMADAN_INTI",    35, False),
    ("SHALAT_TARAWIH",           "Shalat Tarawih",                         "IBADAH_SUNNAH",   10, False),
    ("SHALAT_TAHAJJUD",          "Shalat Tahajjud",                        "IBADAH_SUNNAH",   10, False),
    ("SHALAT_DHUHA",             "Shalat Dhuha",                           "IBADAH_SUNNAH",   10, False),
    ("INFAQ_SHADAQAH",           "Infaq/ Shadaqah",                        "IBADAH_SUNNAH",   10, False),
    ("SILATURAHIM",              "Silaturahim",                            "IBADAH_SUNNAH",   20, False),
    ("TAKZIAH_ZIARAH",           "Takziah/Ziarah",                         "IBADAH_SUNNAH",   10, False),
    ("SUNNAH_LAINNYA",           "Lainnya (bisa diisi sendiri)",           "IBADAH_SUNNAH",   10, False),
    ("TADARUS_RAMADAN",          "Catatan Kegiatan Tadarus",               "RAMADAN_INTI",    25, False),
    ("KULTUM_CERAMAH",           "Catatan Ceramah Agama / Kultum Ramadan", "LITERASI_DAKWAH", 15, False),
    ("SHALAT_IDULFITRI",         "Catatan Shalat Idulfitri",               "MOMEN_PUNCAK",    15, False),
    ("ZAKAT_FITRAH",             "Catatan Menunaikan Zakat Fitrah",        "MOMEN_PUNCAK",    20, False),
    ("SILATURRAHIM_RAMADAN",     "Catatan Kegiatan Silaturrahim",          "AKHLAK_SOSIAL",   20, False),
    ("REFLEKSI_DIRI",            "Lembar Penilaian Diri (Refleksi)",       "REFLEKSI",        20, True),
]


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def create_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    # Seed catalog + reference videos (normally done by Alembic migration)
    db = TestingSessionLocal()
    try:
        for code, title, category, xp, narration in _DEFAULT_MISSIONS:
            db.add(Mission(
                code=code,
                title=title,
                category=category,
                xp=xp,
                requires_narration=narration,
                active=True,
            ))
        db.add(TeacherVideo(
            title="Keutamaan Menjaga Lisan di Bulan Ramadan",
            youtube_url="https://www.youtube.com/watch?v=YQHsXMglC9A",
            video_id="YQHsXMglC9A",
            ustadz="Ustadz Ahmad",
            active=True,
            published_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
        ))
        db.add(TeacherVideo(
            title="Video lama",
            youtube_url="https://www.youtube.com/watch?v=retired0001",
            video_id="retired0001",
            active=False,
            published_at=datetime(2024, 3, 1, tzinfo=timezone.utc),
        ))
        db.commit()
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    """Create a fresh student; every test gets users nobody else touches."""
    def _make(classroom: str | None = None, role: str = "siswa", name: str = "Siswa") -> User:
        uid = f"u-{uuid.uuid4().hex[:12]}"
        user = User(
            id=uid,
            email=f"{uid}@example.sch.id",
            name=name,
            classroom=classroom,
            role=role,
        )
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture()
def active_video_id(db) -> int:
    return (
        db.query(TeacherVideo.id)
        .filter(TeacherVideo.video_id == "YQHsXMglC9A")
        .scalar()
    )


@pytest.fixture()
def retired_video_id(db) -> int:
    return (
        db.query(TeacherVideo.id)
        .filter(TeacherVideo.video_id == "retired0001")
        .scalar()
    )


@pytest.fixture()
def session_factory():
    """Independent sessions, e.g. to act as a concurrent writer."""
    return TestingSessionLocal
