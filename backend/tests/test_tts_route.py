import pytest

from eiken_app.routers import tts as tts_router
from eiken_app.tts_client import SynthesisError


class _FakeTtsClient:
    error = None
    calls = []

    def __init__(self, settings=None, **kwargs):
        pass

    async def synthesize(self, text, *, gender="female"):
        type(self).calls.append((text, gender))
        if self.error is not None:
            raise self.error
        return b"mp3-bytes"

    async def aclose(self):
        return None


@pytest.fixture
def fake_tts(monkeypatch: pytest.MonkeyPatch):
    class _Client(_FakeTtsClient):
        calls = []

    monkeypatch.setattr(tts_router, "ElevenLabsClient", _Client)
    return _Client


def test_tts_returns_mpeg(api_client, fake_tts):
    res = api_client.post("/tts", json={"text": "  Good morning.  ", "gender": "male"})

    assert res.status_code == 200
    assert res.content == b"mp3-bytes"
    assert res.headers["content-type"] == "audio/mpeg"
    assert res.headers["cache-control"] == "no-store"
    assert fake_tts.calls == [("Good morning.", "male")]


def test_tts_requires_text(api_client, fake_tts):
    res = api_client.post("/tts", json={"text": "   "})

    assert res.status_code == 400
    assert fake_tts.calls == []


def test_tts_provider_failure(api_client, fake_tts):
    fake_tts.error = SynthesisError("ElevenLabs TTS failed", detail="quota exceeded")

    res = api_client.post("/tts", json={"text": "hello"})

    assert res.status_code == 502
    assert res.json()["detail"] == {"error": "ElevenLabs TTS failed", "detail": "quota exceeded"}


def test_tts_missing_configuration(api_client, monkeypatch: pytest.MonkeyPatch):
    from eiken_app.settings import settings

    monkeypatch.setattr(settings, "elevenlabs_voice_male_id", None)

    res = api_client.post("/tts", json={"text": "hello"})

    assert res.status_code == 500
