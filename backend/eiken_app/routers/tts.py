from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from ..settings import settings
from ..tts_client import ElevenLabsClient, SynthesisError


router = APIRouter(prefix="/tts", tags=["tts"])


class TtsRequest(BaseModel):
	text: Optional[str] = None
	# "male" or "female"; examiner voice
	gender: Optional[str] = "female"


@router.post("")
async def tts(req: TtsRequest):
	text = (req.text or "").strip()
	if not text:
		raise HTTPException(status_code=400, detail="text is required")
	try:
		client = ElevenLabsClient(settings)
	except ValueError as e:
		raise HTTPException(status_code=500, detail=str(e))
	try:
		audio = await client.synthesize(text, gender=req.gender)
	except SynthesisError as e:
		raise HTTPException(status_code=502, detail={"error": str(e), "detail": e.detail})
	finally:
		await client.aclose()
	return Response(
		content=audio,
		media_type="audio/mpeg",
		headers={"Cache-Control": "no-store"},
	)
