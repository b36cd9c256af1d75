from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import Field

from src.shared.base import BaseSchema

SUMMED_METRICS = (
    "inquiries_received",
    "showings_completed",
    "deals_closed",
    "listings_acquired",
    "crm_properties_listed",
)


class WeekWindow(BaseSchema):
    start: datetime
    end: datetime

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()

    def contains(self, value: date) -> bool:
        return self.start_date <= value <= self.end_date


class Change(BaseSchema):
    value: float
    percentage: int
    trend: str


class MetricTotals(BaseSchema):
    inquiries_received: int = 0
    showings_completed: int = 0
    deals_closed: int = 0
    listings_acquired: int = 0
    crm_properties_listed: int = 0
    follow_ups_done: int = 0
    crm_difficulties_reported: int = 0


class MetricAverages(BaseSchema):
    inquiries_received: float = 0.0
    showings_completed: float = 0.0
    deals_closed: float = 0.0
    listings_acquired: float = 0.0
    crm_properties_listed: float = 0.0


class ConversionRates(BaseSchema):
    inquiries_to_showings: float = 0.0
    showings_to_deals: float = 0.0
    inquiries_to_deals: float = 0.0


class AggregatedMetrics(BaseSchema):
    record_count: int = 0
    totals: MetricTotals = Field(default_factory=MetricTotals)
    averages: MetricAverages = Field(default_factory=MetricAverages)
    conversion_rates: ConversionRates = Field(default_factory=ConversionRates)
    follow_up_rate: float = 0.0
    crm_difficulty_rate: float = 0.0


class AgentMetrics(BaseSchema):
    agent_id: str
    agent_name: str
    agent_email: Optional[str] = None
    no_showings: bool = False
    metrics: AggregatedMetrics
    score: int = 0
    score_with_listings: int = 0


class RankedAgent(BaseSchema):
    rank: int
    dimension: str
    value: float
    agent: AgentMetrics


class Leaderboards(BaseSchema):
    listings: List[RankedAgent]
    showings: List[RankedAgent]
    deals: List[RankedAgent]
    inquiries_to_showings: List[RankedAgent]
    showings_to_deals: List[RankedAgent]
    score: List[RankedAgent]


class PeriodMetrics(BaseSchema):
    window: WeekWindow
    week_number: int
    start_formatted: str
    end_formatted: str
    metrics: AggregatedMetrics


class WeekOverWeek(BaseSchema):
    current_week: PeriodMetrics
    previous_week: PeriodMetrics
    changes: Dict[str, Change]


class WeeklyBreakdown(BaseSchema):
    weeks: List[PeriodMetrics]
    trends: Dict[str, Change]


class ReportPeriod(BaseSchema):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    time_window: str
