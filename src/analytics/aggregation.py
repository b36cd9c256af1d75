from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from src.analytics.changes import percent_change, series_trend
from src.analytics.scoring import (
    AgentClassifier,
    agent_score,
    is_no_showings_agent,
    score_with_listings,
)
from src.analytics.week_windows import (
    format_date,
    previous_week_window,
    trailing_week_windows,
    week_of_year,
    week_window,
)
from src.models.performance import AgentMetricSumsRow, AgentRecord, PerformanceRecord
from src.schemas.metrics import (
    SUMMED_METRICS,
    AgentMetrics,
    Change,
    AggregatedMetrics,
    ConversionRates,
    MetricAverages,
    MetricTotals,
    PeriodMetrics,
    WeekOverWeek,
    WeekWindow,
    WeeklyBreakdown,
)

UNKNOWN_AGENT_NAME = "Unknown agent"
RATE_DECIMALS = 2


def _rate(numerator: int, denominator: int) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator * 100, RATE_DECIMALS)


def _average(total: int, count: int) -> float:
    if not count:
        return 0.0
    return round(total / count, RATE_DECIMALS)


def sum_records(records: Iterable[PerformanceRecord]) -> tuple[MetricTotals, int]:
    totals = MetricTotals()
    count = 0
    for record in records:
        count += 1
        for field in SUMMED_METRICS:
            setattr(totals, field, getattr(totals, field) + (getattr(record, field) or 0))
        if record.follow_up_done:
            totals.follow_ups_done += 1
        if record.crm_difficulty_reported:
            totals.crm_difficulties_reported += 1
    return totals, count


def build_metrics(totals: MetricTotals, record_count: int) -> AggregatedMetrics:
    """Derive averages and rates from summed totals; also used for sums computed by storage."""
    return AggregatedMetrics(
        record_count=record_count,
        totals=totals,
        averages=MetricAverages(
            **{field: _average(getattr(totals, field), record_count) for field in SUMMED_METRICS}
        ),
        conversion_rates=ConversionRates(
            inquiries_to_showings=_rate(totals.showings_completed, totals.inquiries_received),
            showings_to_deals=_rate(totals.deals_closed, totals.showings_completed),
            inquiries_to_deals=_rate(totals.deals_closed, totals.inquiries_received),
        ),
        follow_up_rate=_rate(totals.follow_ups_done, record_count),
        crm_difficulty_rate=_rate(totals.crm_difficulties_reported, record_count),
    )


def aggregate(records: Iterable[PerformanceRecord]) -> AggregatedMetrics:
    totals, count = sum_records(records)
    return build_metrics(totals, count)


def totals_from_sums(row: AgentMetricSumsRow) -> MetricTotals:
    return MetricTotals(
        inquiries_received=row.inquiries_received or 0,
        showings_completed=row.showings_completed or 0,
        deals_closed=row.deals_closed or 0,
        listings_acquired=row.listings_acquired or 0,
        crm_properties_listed=row.crm_properties_listed or 0,
        follow_ups_done=row.follow_ups_done or 0,
        crm_difficulties_reported=row.crm_difficulties_reported or 0,
    )


def combine_sums(rows: Iterable[AgentMetricSumsRow]) -> AggregatedMetrics:
    """Team-wide metrics from per-agent sums."""
    totals = MetricTotals()
    count = 0
    for row in rows:
        row_totals = totals_from_sums(row)
        count += row.record_count
        for field in MetricTotals.model_fields:
            setattr(totals, field, getattr(totals, field) + getattr(row_totals, field))
    return build_metrics(totals, count)


def annotate_agent(
    agent_id: str,
    metrics: AggregatedMetrics,
    agent: Optional[AgentRecord],
    classifier: AgentClassifier,
) -> AgentMetrics:
    email = agent.email if agent else None
    # Unknown agents fall back to standard scoring.
    identifiers = [email, agent_id]
    no_showings = is_no_showings_agent(classifier, identifiers)
    score = agent_score(identifiers, metrics.totals, classifier)
    return AgentMetrics(
        agent_id=agent_id,
        agent_name=(agent.name if agent and agent.name else UNKNOWN_AGENT_NAME),
        agent_email=email,
        no_showings=no_showings,
        metrics=metrics,
        score=score,
        score_with_listings=score_with_listings(metrics.totals),
    )


def aggregate_by_agent(
    records: Iterable[PerformanceRecord],
    agents: Mapping[str, AgentRecord],
    classifier: AgentClassifier,
) -> Dict[str, AgentMetrics]:
    """Per-agent metrics keyed by agent id, in order of each agent's first record."""
    grouped: Dict[str, List[PerformanceRecord]] = {}
    for record in records:
        grouped.setdefault(record.agent_id, []).append(record)
    return {
        agent_id: annotate_agent(agent_id, aggregate(agent_records), agents.get(agent_id), classifier)
        for agent_id, agent_records in grouped.items()
    }


def agent_metrics_from_sums(
    rows: Iterable[AgentMetricSumsRow],
    agents: Mapping[str, AgentRecord],
    classifier: AgentClassifier,
) -> Dict[str, AgentMetrics]:
    result: Dict[str, AgentMetrics] = {}
    for row in rows:
        metrics = build_metrics(totals_from_sums(row), row.record_count)
        result[row.agent_id] = annotate_agent(row.agent_id, metrics, agents.get(row.agent_id), classifier)
    return result


def records_in_window(records: Iterable[PerformanceRecord], window: WeekWindow) -> List[PerformanceRecord]:
    return [record for record in records if window.contains(record.record_date)]


def period_metrics(records: Sequence[PerformanceRecord], window: WeekWindow) -> PeriodMetrics:
    return PeriodMetrics(
        window=window,
        week_number=week_of_year(window.start),
        start_formatted=format_date(window.start),
        end_formatted=format_date(window.end),
        metrics=aggregate(records_in_window(records, window)),
    )


def compare_totals(current: MetricTotals, previous: MetricTotals) -> Dict[str, Change]:
    return {
        field: percent_change(getattr(current, field), getattr(previous, field))
        for field in SUMMED_METRICS
    }


def week_over_week(records: Iterable[PerformanceRecord], reference: date) -> WeekOverWeek:
    materialized = list(records)
    current = period_metrics(materialized, week_window(reference))
    previous = period_metrics(materialized, previous_week_window(reference))
    return WeekOverWeek(
        current_week=current,
        previous_week=previous,
        changes=compare_totals(current.metrics.totals, previous.metrics.totals),
    )


def weekly_breakdown(records: Iterable[PerformanceRecord], reference: date, weeks: int) -> WeeklyBreakdown:
    materialized = list(records)
    periods = [period_metrics(materialized, window) for window in trailing_week_windows(reference, weeks)]
    trends = {
        field: series_trend([getattr(period.metrics.totals, field) for period in periods])
        for field in SUMMED_METRICS
    }
    return WeeklyBreakdown(weeks=periods, trends=trends)
