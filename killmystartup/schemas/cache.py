"""Schemas shared by both cached domains."""

from __future__ import annotations

from pydantic import BaseModel


class CleanupReport(BaseModel):
    """Rows removed by a cleanup or invalidation pass."""

    records_deleted: int = 0
    entries_deleted: int = 0


class CleanupResponse(BaseModel):
    success: bool = True
    message: str
    report: CleanupReport
    stats: dict


class InvalidateResponse(BaseModel):
    success: bool = True
    industry: str
    report: CleanupReport
