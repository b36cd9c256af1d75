from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class PerformanceRecord(BaseModel):
    id: str
    agent_id: str
    record_date: date
    inquiries_received: Optional[int] = None
    # Null for no-showings agents, whose workflow has no showings funnel.
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


class AgentRecord(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "agent"


class AgentMetricSumsRow(BaseModel):
    """One row of the storage-side group-and-sum over performance records."""

    agent_id: str
    record_count: int = 0
    inquiries_received: Optional[int] = None
    showings_completed: Optional[int] = None
    deals_closed: Optional[int] = None
    listings_acquired: Optional[int] = None
    crm_properties_listed: Optional[int] = None
    follow_ups_done: Optional[int] = None
    crm_difficulties_reported: Optional[int] = None
