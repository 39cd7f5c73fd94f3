from __future__ import annotations
import logging
import httpx
from typing import Any, Dict, Optional
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class TranscriptionError(RuntimeError):
	pass


class WhisperClient:
	def __init__(
		self,
		settings: Optional[Settings] = None,
		*,
		model: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		cfg = settings or default_settings
		self.api_key = cfg.openai_api_key
		if not self.api_key:
			raise ValueError("OPENAI_API_KEY is not configured")
		self.model = model or cfg.transcription_model
		self.default_language = cfg.transcription_language
		self.base_url = cfg.openai_base_url.rstrip("/") + "/audio/transcriptions"
		self._client = httpx.AsyncClient(timeout=cfg.http_timeout_seconds, transport=transport)

	async def transcribe(
		self,
		audio: bytes,
		*,
		filename: str = "speech.webm",
		content_type: Optional[str] = None,
		language: Optional[str] = None,
	) -> Dict[str, Any]:
		"""Transcribe one recording and return the verbose_json body (text + segments)."""
		files = {"file": (filename, audio, content_type or "audio/webm")}
		data = {
			"model": self.model,
			"language": language or self.default_language,
			"temperature": "0",
			"response_format": "verbose_json",
		}
		headers = {"Authorization": f"Bearer {self.api_key}"}
		try:
			r = await self._client.post(self.base_url, headers=headers, data=data, files=files)
			r.raise_for_status()
		except httpx.HTTPStatusError as http_err:
			logger.warning("Transcription failed | model=%s status=%s", self.model, http_err.response.status_code)
			raise TranscriptionError(f"Transcription failed with status {http_err.response.status_code}") from http_err
		except httpx.RequestError as net_err:
			logger.warning("Transcription request error | model=%s err=%s", self.model, net_err)
			raise TranscriptionError(f"Transcription request failed: {net_err}") from net_err
		try:
			body = r.json()
		except ValueError as err:
			raise TranscriptionError(f"Unexpected transcription response: {r.text[:200]}") from err
		if not isinstance(body, dict):
			raise TranscriptionError("Unexpected transcription response shape")
		return body

	async def aclose(self) -> None:
		await self._client.aclose()
