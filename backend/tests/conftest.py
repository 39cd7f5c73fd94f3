import os
import sys
import tempfile
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Must be set before eiken_app.settings is imported
_DB_DIR = tempfile.mkdtemp(prefix="eiken-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    from eiken_app.settings import settings

    monkeypatch.setattr(settings, "openai_api_key", "test-key")
    monkeypatch.setattr(settings, "elevenlabs_api_key", "test-eleven-key")
    monkeypatch.setattr(settings, "elevenlabs_voice_female_id", "voice-f")
    monkeypatch.setattr(settings, "elevenlabs_voice_male_id", "voice-m")


@pytest.fixture
def db_session():
    from eiken_app.db import SessionLocal, init_db
    from eiken_app.models import SpeechAttempt

    init_db()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.query(SpeechAttempt).delete()
        session.commit()
        session.close()


@pytest.fixture
def api_client(db_session):
    from fastapi.testclient import TestClient
    from eiken_app.main import app

    return TestClient(app)
