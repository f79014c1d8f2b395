"""Pydantic models for response bodies, plus the shared timestamp format."""
from __future__ import annotations
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def now_iso() -> str:
    """UTC timestamp with millisecond precision and a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GenerationResult(BaseModel):
    """Successful /generate response."""
    model_config = ConfigDict(frozen=True)

    generated_text: str
    prompt_length: int
    timestamp: str
    success: bool = True


class HealthStatus(BaseModel):
    status: str = "healthy"
    timestamp: str
    uptime: float
    version: str


class ErrorBody(BaseModel):
    """Shape shared by every failure response."""
    error: str
    message: str
    timestamp: str

    @classmethod
    def build(cls, error: str, message: str) -> "ErrorBody":
        return cls(error=error, message=message, timestamp=now_iso())
