from __future__ import annotations

from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, Response

from src.api.dependencies import get_current_user, get_reports_service, require_admin
from src.reports.pdf_report import render_report_pdf
from src.schemas.auth import CurrentUser
from src.schemas.reports import (
    AgentReportFilters,
    AgentReportResponse,
    DashboardResponse,
    LeaderboardFilters,
    LeaderboardResponse,
    ReportExport,
    ReportWindowFilters,
    TrendsFilters,
    TrendsResponse,
    WeeklySummaryFilters,
    WeeklySummaryResponse,
)
from src.services.reports_service import ReportsService
from src.shared.response import ResponseEnvelope, build_meta

router = APIRouter(prefix="/reports", tags=["reports"])

SOURCE = "performance_records,agents"


def get_report_window_filters(
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    week: Optional[int] = Query(default=None, ge=1, le=53),
) -> ReportWindowFilters:
    return ReportWindowFilters(start_date=start_date, end_date=end_date, year=year, week=week)


def get_agent_report_filters(
    window: ReportWindowFilters = Depends(get_report_window_filters),
    include_weekly: bool = Query(default=True),
    reference_date: Optional[date] = Query(default=None),
) -> AgentReportFilters:
    return AgentReportFilters(
        **window.model_dump(),
        include_weekly=include_weekly,
        reference_date=reference_date,
    )


def get_leaderboard_filters(
    window: ReportWindowFilters = Depends(get_report_window_filters),
    dimension: str = Query(default="score"),
    direction: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
) -> LeaderboardFilters:
    return LeaderboardFilters(**window.model_dump(), dimension=dimension, direction=direction, limit=limit)


def get_weekly_summary_filters(
    reference_date: Optional[date] = Query(default=None),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    week: Optional[int] = Query(default=None, ge=1, le=53),
    agent_id: Optional[str] = Query(default=None),
) -> WeeklySummaryFilters:
    return WeeklySummaryFilters(reference_date=reference_date, year=year, week=week, agent_id=agent_id)


def get_trends_filters(
    weeks: int = Query(default=4, ge=1, le=52),
    reference_date: Optional[date] = Query(default=None),
) -> TrendsFilters:
    return TrendsFilters(weeks=weeks, reference_date=reference_date)


@router.get("/dashboard")
def reports_dashboard(
    filters: ReportWindowFilters = Depends(get_report_window_filters),
    _: CurrentUser = Depends(require_admin),
    service: ReportsService = Depends(get_reports_service),
) -> ResponseEnvelope[DashboardResponse]:
    data = service.get_dashboard(filters)
    meta = build_meta(
        source=SOURCE,
        time_window=data.period.time_window,
        period_start=data.period.start_date,
        period_end=data.period.end_date,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.get("/agents/{agent_id}")
def reports_agent(
    agent_id: str,
    filters: AgentReportFilters = Depends(get_agent_report_filters),
    _: CurrentUser = Depends(require_admin),
    service: ReportsService = Depends(get_reports_service),
) -> ResponseEnvelope[AgentReportResponse]:
    data = service.get_agent_report(agent_id, filters)
    meta = build_meta(
        source=SOURCE,
        time_window=data.period.time_window,
        period_start=data.period.start_date,
        period_end=data.period.end_date,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.get("/weekly")
def reports_weekly(
    filters: WeeklySummaryFilters = Depends(get_weekly_summary_filters),
    user: CurrentUser = Depends(get_current_user),
    service: ReportsService = Depends(get_reports_service),
) -> ResponseEnvelope[WeeklySummaryResponse]:
    if not user.is_admin:
        filters = filters.model_copy(update={"agent_id": user.id})
    data = service.get_weekly_summary(filters)
    current = data.comparison.current_week.window
    meta = build_meta(
        source="performance_records",
        time_window=f"{data.year}-W{data.week_number:02d}",
        period_start=current.start_date,
        period_end=current.end_date,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.get("/trends")
def reports_trends(
    filters: TrendsFilters = Depends(get_trends_filters),
    _: CurrentUser = Depends(require_admin),
    service: ReportsService = Depends(get_reports_service),
) -> ResponseEnvelope[TrendsResponse]:
    data = service.get_trends(filters)
    weeks = data.breakdown.weeks
    meta = build_meta(
        source="performance_records",
        time_window=f"{filters.weeks}w",
        period_start=weeks[0].window.start_date if weeks else None,
        period_end=weeks[-1].window.end_date if weeks else None,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.get("/leaderboard")
def reports_leaderboard(
    filters: LeaderboardFilters = Depends(get_leaderboard_filters),
    _: CurrentUser = Depends(require_admin),
    service: ReportsService = Depends(get_reports_service),
) -> ResponseEnvelope[LeaderboardResponse]:
    data = service.get_leaderboard(filters)
    meta = build_meta(
        source=SOURCE,
        time_window=data.period.time_window,
        period_start=data.period.start_date,
        period_end=data.period.end_date,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)


@router.get("/export", response_model=None)
def reports_export(
    filters: ReportWindowFilters = Depends(get_report_window_filters),
    export_format: str = Query(default="json", alias="format", pattern="^(json|pdf)$"),
    template: str = Query(default="dashboard", pattern="^(dashboard|summary)$"),
    _: CurrentUser = Depends(require_admin),
    service: ReportsService = Depends(get_reports_service),
) -> Union[ResponseEnvelope[ReportExport], Response]:
    data = service.get_export(filters)
    if export_format == "pdf":
        filename = f"performance-report-{data.metadata.period.time_window}.pdf"
        return Response(
            content=render_report_pdf(data, template),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    meta = build_meta(
        source=SOURCE,
        time_window=data.metadata.period.time_window,
        period_start=data.metadata.period.start_date,
        period_end=data.metadata.period.end_date,
    )
    return ResponseEnvelope(data=data, pagination=None, meta=meta)
