"""
Pronunciation / Fluency Estimator
=================================

Turns a Whisper-style transcription (full text plus time-stamped segments with
recognizer confidence) into an approximate pronunciation assessment for the
interview practice flow.

Scores are heuristics derived from segment timing and confidence metadata:
- intelligibility: average log-probability, silence probability, fragmentation
  and long pauses
- fluency: pause ratio and speaking rate (words per minute over speaking time)
- accuracy: average log-probability blended with intelligibility
- prosody: punctuation density of the transcript, kept in a narrow band

Every sub-score is an integer 0–10. The estimator is a pure function of its two
inputs and never raises; degenerate input degrades to neutral defaults.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_serializer


# ============================================================================
# CONSTANTS
# ============================================================================

# Defaults when no segment carries the field
DEFAULT_AVG_LOGPROB = -1.2
DEFAULT_NO_SPEECH_PROB = 0.2

LONG_PAUSE_SECONDS = 1.2
TARGET_WPM = 140.0
WPM_TOLERANCE = 60.0
FRAGMENT_FREE_SEGMENTS = 10

_PUNCT_RE = re.compile(r"[.,!?;]")
# Browser-style \s: Unicode spaces plus BOM, without the \x1c-\x1f separators
_WHITESPACE_RE = re.compile(
	r"[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)

NOTE_LONG_PAUSES = "Pauses are a bit long. Try to reduce silent gaps and keep sentences flowing."
NOTE_MULTIPLE_LONG_PAUSES = "There were multiple long pauses. Practice speaking in longer chunks."
NOTE_FAST = "Your pace may be a little fast. Slow down slightly for clarity."
NOTE_SLOW = "Your pace may be slow. Try to increase speed while keeping clarity."
NOTE_UNCLEAR = "Some parts may be hard to catch. Focus on clear consonants and word endings."
NOTE_GOOD = "Overall clear and understandable. Keep consistency and add natural intonation."

CAVEAT = (
	"AI pronunciation scoring is approximate. Results may vary depending on microphone quality, "
	"background noise, and transcription accuracy. Use this as a reference."
)


# ============================================================================
# MODELS
# ============================================================================

class Segment(BaseModel):
	"""One recognized span of speech (seconds, recognizer confidence)."""
	start: float
	end: float
	avg_logprob: Optional[float] = None
	no_speech_prob: Optional[float] = None
	text: str = ""


class PronunciationMetrics(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	duration_sec: float = Field(alias="durationSec")
	words: int
	wpm: float
	pause_ratio: float = Field(alias="pauseRatio")
	long_pause_count: int = Field(alias="longPauseCount")

	@field_serializer("duration_sec", "wpm", "pause_ratio")
	def _finite_or_null(self, value: float) -> Optional[float]:
		# JSON has no Infinity; it goes out as null
		return value if math.isfinite(value) else None


class PronunciationEval(BaseModel):
	"""Estimator output; serialize with ``by_alias=True`` for the API shape."""
	model_config = ConfigDict(populate_by_name=True)

	method: str = "audio"
	overall: int = Field(alias="overall0to10", ge=0, le=10)
	intelligibility: int = Field(alias="intelligibility0to10", ge=0, le=10)
	fluency: int = Field(alias="fluency0to10", ge=0, le=10)
	accuracy: int = Field(alias="accuracy0to10", ge=0, le=10)
	prosody: int = Field(alias="prosody0to10", ge=0, le=10)
	metrics: PronunciationMetrics
	notes: List[str]
	caveat: str = CAVEAT


# ============================================================================
# NUMERIC HELPERS
# ============================================================================

def _finite(value: Any) -> Optional[float]:
	"""Return ``value`` as float if it is a real finite number, else None.

	Strings and booleans are not numbers here, even when they look like one.
	"""
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return None
	try:
		value = float(value)
	except OverflowError:
		# int past float range
		return None
	return value if math.isfinite(value) else None


def _clamp(x: float, lo: float, hi: float) -> float:
	return max(lo, min(hi, x))


def round_half_up(x: float) -> int:
	# Halves round toward +inf; Python's round() would go to the even neighbour
	floor = math.floor(x)
	return int(floor) + 1 if x - floor >= 0.5 else int(floor)


def _clamp0to10(n: float) -> int:
	if not math.isfinite(n):
		return 0
	return max(0, min(10, round_half_up(n)))


def _to10(x01: float) -> int:
	return _clamp0to10(_clamp(x01, 0.0, 1.0) * 10)


def _fixed(value: float, places: int) -> float:
	"""Round half-up on the exact binary value of ``value`` to ``places`` decimals.

	Non-finite values pass through unchanged.
	"""
	if not math.isfinite(value):
		return value
	quantum = Decimal(1).scaleb(-places)
	return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


# ============================================================================
# INPUT NORMALIZATION
# ============================================================================

def _field(item: Any, name: str) -> Any:
	if isinstance(item, dict):
		return item.get(name)
	return getattr(item, name, None)


def parse_segments(raw: Any) -> List[Segment]:
	"""Normalize a provider segment list into typed ``Segment`` objects.

	Accepts dicts or attribute objects. Entries without finite ``start`` and
	``end`` are dropped; non-finite confidence fields become None. Anything that
	is not a list yields an empty list.
	"""
	if not isinstance(raw, (list, tuple)):
		return []
	segments: List[Segment] = []
	for item in raw:
		start = _finite(_field(item, "start"))
		end = _finite(_field(item, "end"))
		if start is None or end is None:
			continue
		text = _field(item, "text")
		segments.append(
			Segment(
				start=start,
				end=end,
				avg_logprob=_finite(_field(item, "avg_logprob")),
				no_speech_prob=_finite(_field(item, "no_speech_prob")),
				text=str(text) if text is not None else "",
			)
		)
	return segments


def _sanitize(segments: Sequence[Segment]) -> List[Segment]:
	cleaned: List[Segment] = []
	for s in segments or []:
		start = _finite(s.start)
		end = _finite(s.end)
		if start is None or end is None:
			continue
		cleaned.append(
			Segment(
				start=start,
				end=end,
				avg_logprob=_finite(s.avg_logprob),
				no_speech_prob=_finite(s.no_speech_prob),
				text=s.text or "",
			)
		)
	return sorted(cleaned, key=lambda s: s.start)


def count_words(text: Optional[str]) -> int:
	return len([t for t in _WHITESPACE_RE.split(str(text or "")) if t])


# ============================================================================
# SUB-CALCULATIONS
# ============================================================================

def _speaking_time(segments: Sequence[Segment]) -> float:
	"""Total segment duration, discounted by each segment's silence probability."""
	total = 0.0
	for s in segments:
		seg_dur = max(0.0, s.end - s.start)
		nsp = s.no_speech_prob if s.no_speech_prob is not None else 0.0
		weight = 1 - 0.8 * _clamp(nsp, 0.0, 1.0)
		total = total + seg_dur * weight
	return total


def _count_long_pauses(segments: Sequence[Segment]) -> int:
	count = 0
	for prev, cur in zip(segments, segments[1:]):
		if cur.start - prev.end >= LONG_PAUSE_SECONDS:
			count += 1
	return count


def _mean(values: List[float], default: float) -> float:
	if not values:
		return default
	total = 0.0
	for v in values:
		total = total + v
	return total / len(values)


def _fragment_penalty(segment_count: int) -> float:
	if segment_count <= FRAGMENT_FREE_SEGMENTS:
		return 1.0
	return max(0.6, 1 - (segment_count - FRAGMENT_FREE_SEGMENTS) * 0.02)


def _wpm_score(wpm: float) -> float:
	if wpm <= 0:
		return 0.4
	diff = abs(wpm - TARGET_WPM)
	return max(0.3, 1 - min(1.0, diff / WPM_TOLERANCE))


def _prosody(text: str, words: int) -> float:
	# Punctuation density is a weak proxy, so the band is deliberately narrow
	punct = len(_PUNCT_RE.findall(text))
	return max(0.45, min(0.75, (punct / max(1, words)) * 18))


def _notes(pause_ratio: float, long_pause_count: int, wpm: float, intelligibility10: int) -> List[str]:
	notes: List[str] = []
	if pause_ratio >= 0.35:
		notes.append(NOTE_LONG_PAUSES)
	if long_pause_count >= 2:
		notes.append(NOTE_MULTIPLE_LONG_PAUSES)
	if wpm > 190:
		notes.append(NOTE_FAST)
	if 0 < wpm < 95:
		notes.append(NOTE_SLOW)
	if intelligibility10 <= 5:
		notes.append(NOTE_UNCLEAR)
	if not notes:
		notes.append(NOTE_GOOD)
	return notes


# ============================================================================
# ESTIMATOR
# ============================================================================

def evaluate(text: Optional[str], segments: Sequence[Segment]) -> PronunciationEval:
	"""Estimate pronunciation and fluency sub-scores from transcription metadata.

	Args:
		text: Full transcript of the attempt.
		segments: Recognized segments; invalid entries are ignored.

	Returns:
		PronunciationEval with four category scores, the weighted overall
		score, diagnostic metrics, ordered notes and the fixed caveat.
	"""
	text = str(text or "")
	cleaned = _sanitize(segments)

	duration_sec = max(0.0, cleaned[-1].end) if cleaned else 0.0
	words = count_words(text)

	speaking_time = _speaking_time(cleaned)
	pause_time = max(0.0, duration_sec - speaking_time)
	pause_ratio = pause_time / duration_sec if duration_sec > 0 else 0.0
	long_pause_count = _count_long_pauses(cleaned)

	# Speaking time, not wall-clock duration, so pauses are not penalized twice
	speaking_minutes = speaking_time / 60
	wpm = words / speaking_minutes if speaking_minutes > 0 else 0.0

	avg_logprob = _mean([s.avg_logprob for s in cleaned if s.avg_logprob is not None], DEFAULT_AVG_LOGPROB)
	no_speech_avg = _mean([s.no_speech_prob for s in cleaned if s.no_speech_prob is not None], DEFAULT_NO_SPEECH_PROB)

	# avg_logprob roughly -2.0 (poor) to -0.2 (good)
	logprob01 = _clamp((avg_logprob + 2.0) / 1.8, 0.0, 1.0)
	nospeech01 = 1 - _clamp(no_speech_avg, 0.0, 1.0)
	frag_penalty01 = _fragment_penalty(len(cleaned))
	long_pause_penalty01 = max(0.6, 1 - long_pause_count * 0.08)

	intelligibility01 = (
		0.55 * logprob01
		+ 0.25 * nospeech01
		+ 0.10 * frag_penalty01
		+ 0.10 * long_pause_penalty01
	)
	intelligibility10 = _to10(intelligibility01)

	pause01 = 1 - _clamp(pause_ratio / 0.55, 0.0, 1.0)
	fluency01 = 0.65 * pause01 + 0.35 * _wpm_score(wpm)
	fluency10 = _to10(fluency01)

	accuracy01 = 0.75 * logprob01 + 0.25 * intelligibility01
	accuracy10 = _to10(accuracy01)

	prosody10 = _to10(_prosody(text, words))

	overall = 0.4 * intelligibility10 + 0.3 * fluency10 + 0.2 * accuracy10 + 0.1 * prosody10

	return PronunciationEval(
		overall=_clamp0to10(overall),
		intelligibility=intelligibility10,
		fluency=fluency10,
		accuracy=accuracy10,
		prosody=prosody10,
		metrics=PronunciationMetrics(
			duration_sec=_fixed(duration_sec, 2),
			words=words,
			wpm=_fixed(wpm, 1),
			pause_ratio=_fixed(pause_ratio, 3),
			long_pause_count=long_pause_count,
		),
		notes=_notes(pause_ratio, long_pause_count, wpm, intelligibility10),
	)
