from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import ConfigDict, Field

from src.shared.base import BaseSchema, RequestSchema


class PerformanceRecordCreateRequest(RequestSchema):
    record_date: date
    inquiries_received: int = Field(default=0, ge=0)
    showings_completed: Optional[int] = Field(default=None, ge=0)
    deals_closed: Optional[int] = Field(default=None, ge=0)
    listings_acquired: int = Field(default=0, ge=0)
    follow_up_done: bool = False
    crm_usage_level: Optional[str] = Field(default=None, max_length=100)
    crm_properties_listed: Optional[int] = Field(default=None, ge=0)
    crm_links: Optional[str] = Field(default=None, max_length=2000)
    crm_difficulty_reported: Optional[bool] = None
    crm_difficulty_detail: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=2000)


class PerformanceRecordUpdateRequest(RequestSchema):
    """Partial update: only fields present in the payload are written."""

    record_date: Optional[date] = None
    inquiries_received: Optional[int] = Field(default=None, ge=0)
    showings_completed: Optional[int] = Field(default=None, ge=0)
    deals_closed: Optional[int] = Field(default=None, ge=0)
    listings_acquired: Optional[int] = Field(default=None, ge=0)
    follow_up_done: Optional[bool] = None
    crm_usage_level: Optional[str] = Field(default=None, max_length=100)
    crm_properties_listed: Optional[int] = Field(default=None, ge=0)
    crm_links: Optional[str] = Field(default=None, max_length=2000)
    crm_difficulty_reported: Optional[bool] = None
    crm_difficulty_detail: Optional[str] = Field(default=None, max_length=2000)
    notes: Optional[str] = Field(default=None, max_length=2000)


class PerformanceRecordFilters(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    agent_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)


class PerformanceRecordResponse(BaseSchema):
    id: str
    agent_id: str
    record_date: date
    inquiries_received: Optional[int] = None
    showings_completed: Optional[int] = None
    deals_closed: Optional[int] = None
    listings_acquired: Optional[int] = None
    follow_up_done: bool = False
    crm_usage_level: Optional[str] = None
    crm_properties_listed: Optional[int] = None
    crm_links: Optional[str] = None
    crm_difficulty_reported: Optional[bool] = None
    crm_difficulty_detail: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
