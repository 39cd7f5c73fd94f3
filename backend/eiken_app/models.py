from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


class SpeechAttempt(Base):
	__tablename__ = "speech_attempts"
	id = Column(String(64), primary_key=True)
	# Opaque browser/device id; attempts are not tied to accounts
	client_id = Column(String(128), nullable=True, index=True)
	language = Column(String(16), nullable=False, default="en")
	transcript = Column(Text, nullable=False, default="")
	overall = Column(Integer, nullable=False)
	intelligibility = Column(Integer, nullable=False)
	fluency = Column(Integer, nullable=False)
	accuracy = Column(Integer, nullable=False)
	prosody = Column(Integer, nullable=False)
	result_json = Column(Text, nullable=False)  # full estimator output, API key names
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
