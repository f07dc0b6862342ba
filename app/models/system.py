"""Webhook event log and job run models."""
import uuid
from sqlalchemy import Column, String, Integer, DateTime, Text, Uuid

from app.database import Base
from app.models.types import JSONPayload, utcnow


class WebhookEvent(Base):
    """Raw inbound provider event, one row per external event id."""

    __tablename__ = "webhook_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(String(255), unique=True, nullable=False, index=True)
    provider = Column(String(100), nullable=False)
    type = Column(String(100), nullable=False)
    payload = Column(JSONPayload, nullable=False)
    processed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)


class JobRun(Base):
    """Track background job runs."""

    __tablename__ = "job_runs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_name = Column(String(100), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    status = Column(String(20), default="running")  # 'running', 'completed', 'failed'
    records_processed = Column(Integer, default=0)
    error_message = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)
