from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from src.schemas.metrics import (
    AgentMetrics,
    AggregatedMetrics,
    Leaderboards,
    RankedAgent,
    ReportPeriod,
    WeekOverWeek,
    WeeklyBreakdown,
)
from src.schemas.performance_records import PerformanceRecordResponse
from src.shared.base import BaseSchema


class ReportWindowFilters(BaseSchema):
    # Keep query parameter names in snake_case for API contract consistency.
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    week: Optional[int] = Field(default=None, ge=1, le=53)


class AgentReportFilters(ReportWindowFilters):
    include_weekly: bool = True
    reference_date: Optional[date] = None


class WeeklySummaryFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    reference_date: Optional[date] = None
    year: Optional[int] = Field(default=None, ge=2000, le=2100)
    week: Optional[int] = Field(default=None, ge=1, le=53)
    agent_id: Optional[str] = None


class TrendsFilters(BaseSchema):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    weeks: int = Field(default=4, ge=1, le=52)
    reference_date: Optional[date] = None


class LeaderboardFilters(ReportWindowFilters):
    dimension: str = "score"
    direction: str = Field(default="desc", pattern="^(asc|desc)$")
    limit: Optional[int] = Field(default=None, ge=1, le=100)


class DashboardResponse(BaseSchema):
    period: ReportPeriod
    team: AggregatedMetrics
    agents: List[AgentMetrics]
    leaderboards: Leaderboards


class AgentReportResponse(BaseSchema):
    period: ReportPeriod
    agent: AgentMetrics
    rank_position: Optional[int] = None
    ranked_agents: int = 0
    week_over_week: Optional[WeekOverWeek] = None
    recent_records: List[PerformanceRecordResponse]


class WeeklySummaryResponse(BaseSchema):
    year: int
    week_number: int
    agent_id: Optional[str] = None
    comparison: WeekOverWeek
    agents: List[AgentMetrics]


class TrendsResponse(BaseSchema):
    weeks: int
    breakdown: WeeklyBreakdown
    top_performers: List[RankedAgent]


class LeaderboardResponse(BaseSchema):
    period: ReportPeriod
    dimension: str
    direction: str
    rankings: List[RankedAgent]


class ExportMetadata(BaseSchema):
    generated_at: datetime
    period: ReportPeriod
    agent_count: int
    record_count: int


class ReportExport(BaseSchema):
    metadata: ExportMetadata
    summary: AggregatedMetrics
    rankings: Leaderboards
    agents: List[AgentMetrics]
    records: List[PerformanceRecordResponse]
