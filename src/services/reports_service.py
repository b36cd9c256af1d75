from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from src.analytics.aggregation import (
    agent_metrics_from_sums,
    aggregate_by_agent,
    annotate_agent,
    combine_sums,
    records_in_window,
    week_over_week,
    weekly_breakdown,
)
from src.analytics.ranking import build_leaderboards, rank, rank_position
from src.analytics.scoring import AgentClassifier
from src.analytics.week_windows import (
    previous_week_window,
    resolve_report_window,
    trailing_week_windows,
    week_of_year,
    week_window,
)
from src.core.errors import NotFoundError
from src.models.performance import AgentMetricSumsRow, AgentRecord, PerformanceRecord
from src.repositories.agents_repository import AgentsRepository
from src.repositories.performance_records_repository import PerformanceRecordsRepository
from src.schemas.metrics import AgentMetrics, AggregatedMetrics, ReportPeriod
from src.schemas.performance_records import PerformanceRecordResponse
from src.schemas.reports import (
    AgentReportFilters,
    AgentReportResponse,
    DashboardResponse,
    ExportMetadata,
    LeaderboardFilters,
    LeaderboardResponse,
    ReportExport,
    ReportWindowFilters,
    TrendsFilters,
    TrendsResponse,
    WeeklySummaryFilters,
    WeeklySummaryResponse,
)

logger = logging.getLogger(__name__)

RECENT_RECORDS_LIMIT = 10
TOP_PERFORMERS_LIMIT = 3


class ReportsService:
    def __init__(
        self,
        records_repository: PerformanceRecordsRepository,
        agents_repository: AgentsRepository,
        classifier: AgentClassifier,
        top_n: int = 5,
    ) -> None:
        self.records_repository = records_repository
        self.agents_repository = agents_repository
        self.classifier = classifier
        self.top_n = top_n

    def get_dashboard(self, filters: ReportWindowFilters) -> DashboardResponse:
        period = self._resolve_period(filters)
        rows = self.records_repository.sum_by_agent(period.start_date, period.end_date)
        agents = self._agent_metrics(rows)
        logger.info("Dashboard for %s covers %d agents", period.time_window, len(agents))
        return DashboardResponse(
            period=period,
            team=combine_sums(rows),
            agents=[entry.agent for entry in rank(agents, "score")],
            leaderboards=build_leaderboards(agents, limit=self.top_n),
        )

    def get_agent_report(self, agent_id: str, filters: AgentReportFilters) -> AgentReportResponse:
        agent = self.agents_repository.get_agent(agent_id)
        if not agent:
            raise NotFoundError("Agent not found")

        period = self._resolve_period(filters)
        rows = self.records_repository.sum_by_agent(period.start_date, period.end_date)
        all_agents = self._agent_metrics(rows)
        agent_metrics = next((item for item in all_agents if item.agent_id == agent_id), None)
        if agent_metrics is None:
            agent_metrics = annotate_agent(agent_id, AggregatedMetrics(), agent, self.classifier)

        comparison = None
        if filters.include_weekly:
            reference = filters.reference_date or date.today()
            records = self._records_for_weeks(reference, agent_id=agent_id)
            comparison = week_over_week(records, reference)

        recent, _ = self.records_repository.list_records(
            agent_id=agent_id,
            start_date=None,
            end_date=None,
            page=1,
            page_size=RECENT_RECORDS_LIMIT,
        )
        logger.info("Agent report for %s over %s", agent_id, period.time_window)
        return AgentReportResponse(
            period=period,
            agent=agent_metrics,
            rank_position=rank_position(all_agents, agent_id),
            ranked_agents=len(all_agents),
            week_over_week=comparison,
            recent_records=[self._to_record_response(record) for record in recent],
        )

    def get_weekly_summary(self, filters: WeeklySummaryFilters) -> WeeklySummaryResponse:
        if filters.year is not None or filters.week is not None:
            period = resolve_report_window(year=filters.year, week=filters.week, reference=filters.reference_date)
            reference = period.start_date
        else:
            reference = filters.reference_date or date.today()
        current = week_window(reference)

        records = self._records_for_weeks(reference, agent_id=filters.agent_id)
        comparison = week_over_week(records, reference)
        current_records = records_in_window(records, current)
        agents = list(
            aggregate_by_agent(current_records, self._lookup_agents(current_records), self.classifier).values()
        )
        logger.info("Weekly summary for week of %s agent=%s", current.start_date, filters.agent_id or "all")
        return WeeklySummaryResponse(
            year=current.start.year,
            week_number=week_of_year(current.start),
            agent_id=filters.agent_id,
            comparison=comparison,
            agents=[entry.agent for entry in rank(agents, "score")],
        )

    def get_trends(self, filters: TrendsFilters) -> TrendsResponse:
        reference = filters.reference_date or date.today()
        windows = trailing_week_windows(reference, filters.weeks)
        latest = windows[-1]

        records = self.records_repository.list_records_for_period(windows[0].start_date, latest.end_date)
        breakdown = weekly_breakdown(records, reference, filters.weeks)
        latest_records = records_in_window(records, latest)
        latest_agents = aggregate_by_agent(latest_records, self._lookup_agents(latest_records), self.classifier)
        return TrendsResponse(
            weeks=filters.weeks,
            breakdown=breakdown,
            top_performers=rank(list(latest_agents.values()), "score", limit=TOP_PERFORMERS_LIMIT),
        )

    def get_leaderboard(self, filters: LeaderboardFilters) -> LeaderboardResponse:
        period = self._resolve_period(filters)
        rows = self.records_repository.sum_by_agent(period.start_date, period.end_date)
        rankings = rank(
            self._agent_metrics(rows),
            filters.dimension,
            direction=filters.direction,
            limit=filters.limit,
        )
        return LeaderboardResponse(
            period=period,
            dimension=filters.dimension,
            direction=filters.direction,
            rankings=rankings,
        )

    def get_export(self, filters: ReportWindowFilters) -> ReportExport:
        period = self._resolve_period(filters)
        rows = self.records_repository.sum_by_agent(period.start_date, period.end_date)
        agents = self._agent_metrics(rows)
        records = self.records_repository.list_records_for_period(period.start_date, period.end_date)
        logger.info("Export for %s with %d records", period.time_window, len(records))
        return ReportExport(
            metadata=ExportMetadata(
                generated_at=datetime.now(timezone.utc),
                period=period,
                agent_count=len(agents),
                record_count=len(records),
            ),
            summary=combine_sums(rows),
            rankings=build_leaderboards(agents, limit=self.top_n),
            agents=[entry.agent for entry in rank(agents, "score")],
            records=[self._to_record_response(record) for record in records],
        )

    @staticmethod
    def _resolve_period(filters: ReportWindowFilters) -> ReportPeriod:
        return resolve_report_window(
            start_date=filters.start_date,
            end_date=filters.end_date,
            year=filters.year,
            week=filters.week,
        )

    def _records_for_weeks(self, reference: date, agent_id: Optional[str] = None) -> List[PerformanceRecord]:
        start = previous_week_window(reference).start_date
        end = week_window(reference).end_date
        return self.records_repository.list_records_for_period(start, end, agent_id=agent_id)

    def _agent_metrics(self, rows: List[AgentMetricSumsRow]) -> List[AgentMetrics]:
        agents = self.agents_repository.get_agents(row.agent_id for row in rows)
        return list(agent_metrics_from_sums(rows, agents, self.classifier).values())

    def _lookup_agents(self, records: List[PerformanceRecord]) -> Dict[str, AgentRecord]:
        return self.agents_repository.get_agents(record.agent_id for record in records)

    @staticmethod
    def _to_record_response(record: PerformanceRecord) -> PerformanceRecordResponse:
        return PerformanceRecordResponse.model_validate(record.model_dump())
