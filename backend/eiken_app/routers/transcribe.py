"""
Transcription Endpoint
======================

Receives one recorded interview answer, sends it to the speech-to-text
provider (verbose_json, so segment timing and confidence come back), scores
pronunciation and fluency from the segment metadata, and stores the attempt.

API Endpoints:
- POST /transcribe: multipart upload (file, language, client_id)
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..pronunciation import PronunciationEval, evaluate, parse_segments
from ..settings import settings
from ..whisper_client import TranscriptionError, WhisperClient
from .records import record_attempt


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transcribe", tags=["transcribe"])


class TranscribeResponse(BaseModel):
	id: Optional[str] = None
	text: str
	segments: List[Any] = []
	pronunciation: PronunciationEval


@router.post("", response_model=TranscribeResponse)
async def transcribe(
	file: Optional[UploadFile] = File(default=None),
	language: Optional[str] = Form(default=None),
	client_id: Optional[str] = Form(default=None),
	db: Session = Depends(get_db),
):
	if not settings.openai_api_key:
		raise HTTPException(status_code=500, detail="OPENAI_API_KEY is missing")
	if file is None:
		raise HTTPException(status_code=400, detail="file is required")
	audio = await file.read()
	if not audio:
		raise HTTPException(status_code=400, detail="file is required")
	lang = (language or "").strip() or settings.transcription_language

	client = WhisperClient(settings)
	try:
		result = await client.transcribe(
			audio,
			filename=file.filename or "speech.webm",
			content_type=file.content_type,
			language=lang,
		)
	except TranscriptionError as e:
		raise HTTPException(status_code=502, detail=str(e))
	finally:
		await client.aclose()

	text = str(result.get("text") or "").strip()
	raw_segments = result.get("segments")
	segments = raw_segments if isinstance(raw_segments, list) else []

	pronunciation = evaluate(text, parse_segments(segments))
	logger.info(
		"Scored attempt | chars=%s segments=%s overall=%s",
		len(text),
		len(segments),
		pronunciation.overall,
	)

	# Storage is best effort; the learner still gets the score
	record_id: Optional[str] = None
	try:
		record_id = record_attempt(
			db,
			transcript=text,
			evaluation=pronunciation,
			language=lang,
			client_id=(client_id or "").strip() or None,
		)
	except SQLAlchemyError as e:
		db.rollback()
		logger.warning("Failed to store attempt: %s", e)

	return TranscribeResponse(id=record_id, text=text, segments=segments, pronunciation=pronunciation)
