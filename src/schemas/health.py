from __future__ import annotations

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    service: str
    environment: str
    version: str


class ReadinessResponse(BaseModel):
    status: str
    database_ok: bool
