import asyncio
import logging
from typing import Optional

from fastapi import FastAPI

from .db import init_db, session_scope
from .cleanup import purge_older_than_one_week
from .settings import settings
from .routers import transcribe
from .routers import tts
from .routers import records

logging.basicConfig(
	level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
	format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="EIKEN Interview Practice API")
app.include_router(transcribe.router)
app.include_router(tts.router)
app.include_router(records.router)


@app.get("/info")
def root():
	return {
		"status": "ok",
		"stt_configured": bool(settings.openai_api_key),
		"tts_configured": bool(
			settings.elevenlabs_api_key
			and settings.elevenlabs_voice_female_id
			and settings.elevenlabs_voice_male_id
		),
	}


def _purge_once() -> None:
	with session_scope() as db:
		try:
			removed = purge_older_than_one_week(db)
			if removed:
				logger.info("Purged %s stale attempts", removed)
		except Exception as e:
			logger.warning("Attempt cleanup failed: %s", e)


async def _cleanup_watcher():
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_once()


# Held so the watcher is not garbage collected mid-sleep
_cleanup_task: Optional[asyncio.Task] = None


@app.on_event("startup")
async def startup_event():
	global _cleanup_task
	init_db()
	_purge_once()
	_cleanup_task = asyncio.create_task(_cleanup_watcher())


@app.on_event("shutdown")
async def shutdown_event():
	global _cleanup_task
	if _cleanup_task is not None:
		_cleanup_task.cancel()
		_cleanup_task = None
