# models/job.py

"""
Job-related data models
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED)

    @property
    def rank(self) -> int:
        """Position on the way to a terminal state; status never moves to a lower rank"""
        if self.is_terminal:
            return 2
        return 1 if self == JobState.PROCESSING else 0


# Provider vocabulary -> canonical state
STATUS_SYNONYMS: Dict[str, JobState] = {
    "queued": JobState.QUEUED,
    "pending": JobState.QUEUED,
    "created": JobState.QUEUED,
    "processing": JobState.PROCESSING,
    "in_progress": JobState.PROCESSING,
    "running": JobState.PROCESSING,
    "completed": JobState.COMPLETED,
    "succeeded": JobState.COMPLETED,
    "success": JobState.COMPLETED,
    "done": JobState.COMPLETED,
    "failed": JobState.FAILED,
    "error": JobState.FAILED,
    "cancelled": JobState.FAILED,
    "canceled": JobState.FAILED,
    "expired": JobState.FAILED,
}


def normalize_status(value: Any) -> Optional[JobState]:
    """Map a provider status string onto the four canonical states.

    Returns None for missing or unrecognised values so callers can keep
    the current status instead of guessing.
    """
    if isinstance(value, JobState):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    state = STATUS_SYNONYMS.get(value.strip().lower().replace("-", "_").replace(" ", "_"))
    if state is None:
        logger.warning(f"Unrecognised provider status '{value}'")
    return state


def normalize_progress(value: Any) -> Optional[float]:
    """Bring provider progress onto the 0-100 scale.

    Values up to 1 are fractions (0.42 -> 42, 1 -> 100); anything larger is
    already a percentage. Non-numeric input yields None.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value != value:  # NaN
        return None
    percent = value * 100 if value <= 1 else value
    return round(min(max(float(percent), 0.0), 100.0), 2)


class JobRecord(BaseModel):
    """One submitted generation request. Instances are immutable; the store swaps in updated copies."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    provider_job_id: Optional[str] = None
    status: JobState = JobState.QUEUED
    progress: float = 0.0
    prompt: str
    model: str
    size: str
    seconds: int
    aspect_ratio: Optional[str] = None
    seed: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None
    error_message: Optional[str] = None
    last_error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _stamp_timestamps(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("created_at") is None:
                data["created_at"] = utcnow()
            if data.get("updated_at") is None:
                data["updated_at"] = data["created_at"]
        return data

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_pollable(self) -> bool:
        return bool(self.provider_job_id) and not self.is_terminal

    def to_wire(self) -> Dict[str, Any]:
        """External JSON shape, carrying both historical field-naming schemes"""
        progress = self.progress
        if float(progress).is_integer():
            progress = int(progress)

        return {
            "id": self.id,
            "providerVideoId": self.provider_job_id,
            "status": self.status.value,
            "progress": progress,
            "prompt": self.prompt,
            "model": self.model,
            "size": self.size,
            "resolution": self.size,
            "seconds": self.seconds,
            "durationSeconds": self.seconds,
            "aspectRatio": self.aspect_ratio,
            "seed": self.seed,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "metadata": dict(self.metadata),
            "errorMessage": self.error_message,
            "lastError": self.last_error,
        }
