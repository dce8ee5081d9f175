"""Helpers for parsing query-string parameters"""

from datetime import date, datetime
from typing import Optional

from fastapi import HTTPException

from ..domain.scheduling.clock import parse_iso_datetime


def parse_datetime_param(value: Optional[str], name: str) -> Optional[datetime]:
    """ISO-8601 query value to naive UTC, 400 when malformed"""
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: expected an ISO-8601 date/time") from e


def parse_date_param(value: Optional[str], name: str) -> Optional[date]:
    """Accepts YYYY-MM-DD or a full ISO timestamp (its UTC date is used)"""
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return parse_iso_datetime(value).date()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {name}: expected YYYY-MM-DD") from e
