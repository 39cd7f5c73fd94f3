from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, Optional
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

OUTPUT_FORMAT = "mp3_44100_128"
VOICE_SETTINGS: Dict[str, Any] = {
	"stability": 0.75,
	"similarity_boost": 0.85,
	"style": 0.15,
	"use_speaker_boost": True,
}


class SynthesisError(RuntimeError):
	def __init__(self, message: str, detail: str = "") -> None:
		super().__init__(message)
		self.detail = detail


class ElevenLabsClient:
	def __init__(
		self,
		settings: Optional[Settings] = None,
		*,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		cfg = settings or default_settings
		self.api_key = cfg.elevenlabs_api_key
		if not self.api_key:
			raise ValueError("ELEVENLABS_API_KEY is not configured")
		self.female_voice_id = cfg.elevenlabs_voice_female_id
		self.male_voice_id = cfg.elevenlabs_voice_male_id
		if not self.female_voice_id or not self.male_voice_id:
			raise ValueError("ELEVENLABS_VOICE_FEMALE_ID / ELEVENLABS_VOICE_MALE_ID is not configured")
		self.model_id = cfg.elevenlabs_model_id
		self.base_url = cfg.elevenlabs_base_url.rstrip("/")
		self._client = httpx.AsyncClient(timeout=cfg.http_timeout_seconds, transport=transport)

	def voice_for(self, gender: Optional[str]) -> str:
		# Anything but an explicit "male" gets the female examiner
		if str(gender or "female").strip().lower() == "male":
			return self.male_voice_id
		return self.female_voice_id

	async def synthesize(self, text: str, *, gender: Optional[str] = "female") -> bytes:
		voice_id = self.voice_for(gender)
		url = f"{self.base_url}/text-to-speech/{voice_id}"
		headers = {
			"xi-api-key": self.api_key,
			"Content-Type": "application/json",
			"Accept": "audio/mpeg",
		}
		payload: Dict[str, Any] = {
			"text": text,
			"model_id": self.model_id,
			"output_format": OUTPUT_FORMAT,
			"voice_settings": VOICE_SETTINGS,
		}
		try:
			r = await self._client.post(url, headers=headers, json=payload)
		except httpx.RequestError as net_err:
			logger.warning("TTS request error | voice=%s err=%s", voice_id, net_err)
			raise SynthesisError("ElevenLabs TTS failed", detail=str(net_err)[:400]) from net_err
		if r.is_error:
			logger.warning("TTS failed | voice=%s status=%s", voice_id, r.status_code)
			raise SynthesisError("ElevenLabs TTS failed", detail=r.text[:400])
		return r.content

	async def aclose(self) -> None:
		await self._client.aclose()
