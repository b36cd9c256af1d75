from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest

from src.analytics.scoring import AllowListClassifier
from src.core.errors import BadRequestError, InvalidTimeWindowError, NotFoundError
from src.models.performance import AgentMetricSumsRow, PerformanceRecord
from src.schemas.reports import (
    AgentReportFilters,
    LeaderboardFilters,
    ReportWindowFilters,
    TrendsFilters,
    WeeklySummaryFilters,
)
from src.services.reports_service import ReportsService

WEEK_3 = ReportWindowFilters(year=2024, week=3)


class InMemoryRecordsRepository:
    """Filters and sums in Python the way the database function does."""

    def __init__(self, records: List[PerformanceRecord]) -> None:
        self.records = records

    def _filter(
        self, start_date: Optional[date], end_date: Optional[date], agent_id: Optional[str]
    ) -> List[PerformanceRecord]:
        return [
            record
            for record in self.records
            if (not agent_id or record.agent_id == agent_id)
            and (start_date is None or record.record_date >= start_date)
            and (end_date is None or record.record_date <= end_date)
        ]

    def list_records(self, agent_id, start_date, end_date, page, page_size) -> Tuple[List[PerformanceRecord], int]:
        records = sorted(self._filter(start_date, end_date, agent_id), key=lambda r: r.record_date, reverse=True)
        offset = (page - 1) * page_size
        return records[offset : offset + page_size], len(records)

    def list_records_for_period(self, start_date, end_date, agent_id=None) -> List[PerformanceRecord]:
        return self._filter(start_date, end_date, agent_id)

    def sum_by_agent(self, start_date, end_date, agent_id=None) -> List[AgentMetricSumsRow]:
        sums: Dict[str, Dict[str, int]] = {}
        for record in self._filter(start_date, end_date, agent_id):
            row = sums.setdefault(record.agent_id, {"record_count": 0})
            row["record_count"] += 1
            for field in ("inquiries_received", "showings_completed", "deals_closed", "listings_acquired"):
                row[field] = row.get(field, 0) + (getattr(record, field) or 0)
        return [AgentMetricSumsRow(agent_id=agent_id, **values) for agent_id, values in sums.items()]


@pytest.fixture()
def records(record_factory) -> List[PerformanceRecord]:
    return [
        # Week 2 of 2024.
        record_factory("r1", "agent-a", date(2024, 1, 9), inquiries=10, showings=5, deals=1),
        record_factory("r2", "agent-b", date(2024, 1, 10), inquiries=10, listings=2),
        # Week 3 of 2024.
        record_factory("r3", "agent-a", date(2024, 1, 15), inquiries=20, showings=10, deals=2),
        record_factory("r4", "agent-b", date(2024, 1, 16), inquiries=40, listings=10),
        record_factory("r5", "agent-a", date(2024, 1, 17), inquiries=5, showings=0, deals=0),
    ]


@pytest.fixture()
def service(records, agents_repository) -> ReportsService:
    return ReportsService(
        records_repository=InMemoryRecordsRepository(records),
        agents_repository=agents_repository,
        classifier=AllowListClassifier(["bruno@example.com"]),
        top_n=5,
    )


def test_dashboard_team_totals_and_leaderboards(service):
    dashboard = service.get_dashboard(WEEK_3)
    assert dashboard.period.time_window == "2024-W03"
    assert dashboard.team.record_count == 3
    assert dashboard.team.totals.inquiries_received == 65
    # agent-b is a no-showings agent: 40 + 10 * 2.
    assert [agent.agent_id for agent in dashboard.agents] == ["agent-b", "agent-a"]
    assert dashboard.agents[0].score == 60
    assert dashboard.agents[1].score == 2 * 3 + 10 * 2 + 25
    assert dashboard.leaderboards.listings[0].agent.agent_name == "Bruno Diaz"


def test_dashboard_with_no_records_is_empty_not_an_error(service):
    dashboard = service.get_dashboard(ReportWindowFilters(year=2024, week=30))
    assert dashboard.team.record_count == 0
    assert dashboard.agents == []
    assert dashboard.leaderboards.score == []


def test_dashboard_rejects_inverted_range(service):
    with pytest.raises(InvalidTimeWindowError):
        service.get_dashboard(ReportWindowFilters(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1)))


def test_agent_report(service):
    filters = AgentReportFilters(year=2024, week=3, reference_date=date(2024, 1, 17))
    report = service.get_agent_report("agent-a", filters)
    assert report.agent.metrics.totals.inquiries_received == 25
    assert report.rank_position == 2
    assert report.ranked_agents == 2
    assert report.week_over_week.current_week.metrics.totals.inquiries_received == 25
    assert report.week_over_week.previous_week.metrics.totals.inquiries_received == 10
    assert report.week_over_week.changes["inquiries_received"].percentage == 150
    assert [record.id for record in report.recent_records] == ["r5", "r3", "r1"]


def test_agent_report_without_records_in_window(service):
    filters = AgentReportFilters(year=2024, week=30, include_weekly=False)
    report = service.get_agent_report("agent-a", filters)
    assert report.agent.metrics.record_count == 0
    assert report.agent.agent_name == "Ana Lopez"
    assert report.rank_position is None
    assert report.week_over_week is None


def test_agent_report_unknown_agent(service):
    with pytest.raises(NotFoundError):
        service.get_agent_report("nobody", AgentReportFilters())


def test_weekly_summary_by_week_number(service):
    summary = service.get_weekly_summary(WeeklySummaryFilters(year=2024, week=3))
    assert summary.week_number == 3
    assert summary.year == 2024
    assert summary.comparison.current_week.metrics.totals.inquiries_received == 65
    assert summary.comparison.previous_week.metrics.totals.inquiries_received == 20
    assert summary.comparison.changes["inquiries_received"].trend == "up"
    assert [agent.agent_id for agent in summary.agents] == ["agent-b", "agent-a"]


def test_weekly_summary_for_one_agent(service):
    filters = WeeklySummaryFilters(reference_date=date(2024, 1, 21), agent_id="agent-b")
    summary = service.get_weekly_summary(filters)
    assert summary.agent_id == "agent-b"
    assert summary.comparison.current_week.metrics.totals.listings_acquired == 10
    assert summary.comparison.changes["listings_acquired"].percentage == 400
    assert [agent.agent_id for agent in summary.agents] == ["agent-b"]


def test_trends_top_performers(service):
    trends = service.get_trends(TrendsFilters(weeks=3, reference_date=date(2024, 1, 17)))
    assert [week.week_number for week in trends.breakdown.weeks] == [1, 2, 3]
    assert [week.metrics.record_count for week in trends.breakdown.weeks] == [0, 2, 3]
    assert trends.breakdown.trends["inquiries_received"].trend == "up"
    assert [entry.agent.agent_id for entry in trends.top_performers] == ["agent-b", "agent-a"]


def test_leaderboard_by_dimension(service):
    board = service.get_leaderboard(LeaderboardFilters(year=2024, week=3, dimension="deals_closed", limit=1))
    assert board.dimension == "deals_closed"
    assert len(board.rankings) == 1
    assert board.rankings[0].agent.agent_id == "agent-a"
    assert board.rankings[0].value == 2


def test_leaderboard_unknown_dimension(service):
    with pytest.raises(BadRequestError):
        service.get_leaderboard(LeaderboardFilters(year=2024, week=3, dimension="charisma"))


def test_export_bundle(service):
    export = service.get_export(ReportWindowFilters(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)))
    assert export.metadata.record_count == 5
    assert export.metadata.agent_count == 2
    assert export.metadata.period.time_window == "custom"
    assert export.summary.totals.inquiries_received == 85
    assert len(export.records) == 5


def test_sunday_records_count_in_ranges_but_not_in_weekly_reports(records, record_factory, agents_repository):
    sunday = record_factory("r6", "agent-a", date(2024, 1, 21), inquiries=7)
    service = ReportsService(
        records_repository=InMemoryRecordsRepository([*records, sunday]),
        agents_repository=agents_repository,
        classifier=AllowListClassifier(["bruno@example.com"]),
        top_n=5,
    )

    summary = service.get_weekly_summary(WeeklySummaryFilters(reference_date=date(2024, 1, 21)))
    assert summary.week_number == 3
    assert summary.comparison.current_week.window.end_date == date(2024, 1, 20)
    assert summary.comparison.current_week.metrics.totals.inquiries_received == 65

    trends = service.get_trends(TrendsFilters(weeks=3, reference_date=date(2024, 1, 21)))
    assert [week.metrics.record_count for week in trends.breakdown.weeks] == [0, 2, 3]

    export = service.get_export(ReportWindowFilters(start_date=date(2024, 1, 15), end_date=date(2024, 1, 21)))
    assert export.metadata.record_count == 4
    assert export.summary.totals.inquiries_received == 72
