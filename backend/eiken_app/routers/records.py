from __future__ import annotations
import json
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Literal, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import delete
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import SpeechAttempt
from ..pronunciation import PronunciationEval, round_half_up


router = APIRouter(prefix="/records", tags=["records"])


class AttemptSummary(BaseModel):
	id: str
	client_id: Optional[str] = None
	language: str
	created_at: datetime
	transcript: str
	overall: int
	intelligibility: int
	fluency: int
	accuracy: int
	prosody: int


class AttemptDetail(AttemptSummary):
	pronunciation: Dict[str, Any]


def record_attempt(
	db: Session,
	*,
	transcript: str,
	evaluation: PronunciationEval,
	language: str = "en",
	client_id: Optional[str] = None,
) -> str:
	"""Persist one scored recording and return its id."""
	row = SpeechAttempt(
		id=uuid.uuid4().hex,
		client_id=client_id or None,
		language=language,
		transcript=transcript[:8000],
		overall=evaluation.overall,
		intelligibility=evaluation.intelligibility,
		fluency=evaluation.fluency,
		accuracy=evaluation.accuracy,
		prosody=evaluation.prosody,
		result_json=json.dumps(evaluation.model_dump(mode="json", by_alias=True), ensure_ascii=False),
	)
	db.add(row)
	db.commit()
	return row.id


def _summary(row: SpeechAttempt) -> AttemptSummary:
	return AttemptSummary(
		id=row.id,
		client_id=row.client_id,
		language=row.language,
		created_at=row.created_at,
		transcript=row.transcript,
		overall=row.overall,
		intelligibility=row.intelligibility,
		fluency=row.fluency,
		accuracy=row.accuracy,
		prosody=row.prosody,
	)


@router.get("", response_model=List[AttemptSummary])
def list_attempts(
	client_id: Optional[str] = Query(default=None),
	limit: int = Query(default=20, ge=1, le=100),
	db: Session = Depends(get_db),
):
	q = db.query(SpeechAttempt)
	if client_id:
		q = q.filter(SpeechAttempt.client_id == client_id)
	rows = q.order_by(SpeechAttempt.created_at.desc()).limit(limit).all()
	return [_summary(r) for r in rows]


@router.get("/{attempt_id}", response_model=AttemptDetail)
def get_attempt(attempt_id: str, db: Session = Depends(get_db)):
	row = db.get(SpeechAttempt, attempt_id)
	if row is None:
		raise HTTPException(status_code=404, detail="Record not found")
	try:
		pronunciation = json.loads(row.result_json)
	except ValueError:
		pronunciation = {}
	return AttemptDetail(**_summary(row).model_dump(), pronunciation=pronunciation)


@router.delete("")
def clear_attempts(client_id: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
	stmt = delete(SpeechAttempt)
	if client_id:
		stmt = stmt.where(SpeechAttempt.client_id == client_id)
	res = db.execute(stmt)
	db.commit()
	return {"ok": True, "removed": res.rowcount or 0}


# ============================================================================
# SCORE TRENDS
# ============================================================================

Metric = Literal["overall", "intelligibility", "fluency", "accuracy", "prosody"]
RangeKey = Literal["1m", "3m", "6m", "all"]

RANGE_MONTHS: Dict[str, Optional[int]] = {"1m": 1, "3m": 3, "6m": 6, "all": None}


class TrendPoint(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	day: date = Field(alias="date")
	score: int


class MetricTrend(BaseModel):
	metric: str
	range: str
	points: List[TrendPoint]
	average: float


def _add_months(d: datetime, months: int) -> datetime:
	"""Shift by calendar months; a day past the target month's end rolls into the next month."""
	index = d.year * 12 + (d.month - 1) + months
	first = d.replace(year=index // 12, month=index % 12 + 1, day=1)
	return first + timedelta(days=d.day - 1)


def range_start(range_key: str, now: Optional[datetime] = None) -> Optional[datetime]:
	months = RANGE_MONTHS.get(range_key)
	if months is None:
		return None
	start = _add_months(now or datetime.utcnow(), -months)
	return start.replace(hour=0, minute=0, second=0, microsecond=0)


def metric_trend(rows: Sequence[SpeechAttempt], metric: str) -> List[TrendPoint]:
	"""One point per calendar day, taken from that day's earliest attempt."""
	points: List[TrendPoint] = []
	seen = set()
	for row in sorted(rows, key=lambda r: r.created_at):
		day = row.created_at.date()
		if day in seen:
			continue
		seen.add(day)
		points.append(TrendPoint(day=day, score=getattr(row, metric) or 0))
	return points


def trend_average(points: Sequence[TrendPoint]) -> float:
	if not points:
		return 0.0
	total = sum(p.score for p in points)
	return round_half_up(total / len(points) * 10) / 10


@router.get("/dashboard/{metric}", response_model=MetricTrend)
def metric_dashboard(
	metric: Metric,
	range_key: RangeKey = Query(default="all", alias="range"),
	client_id: Optional[str] = Query(default=None),
	db: Session = Depends(get_db),
):
	q = db.query(SpeechAttempt)
	if client_id:
		q = q.filter(SpeechAttempt.client_id == client_id)
	since = range_start(range_key)
	if since is not None:
		q = q.filter(SpeechAttempt.created_at >= since)
	points = metric_trend(q.all(), metric)
	return MetricTrend(metric=metric, range=range_key, points=points, average=trend_average(points))
