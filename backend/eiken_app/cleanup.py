from __future__ import annotations
from datetime import datetime, timedelta
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import SpeechAttempt
from .settings import settings


def purge_older_than_one_week(db: Session, days: int | None = None) -> int:
	retention = days if days is not None else settings.record_retention_days
	threshold = datetime.utcnow() - timedelta(days=retention)
	res = db.execute(delete(SpeechAttempt).where(SpeechAttempt.created_at < threshold))
	db.commit()
	return res.rowcount or 0
