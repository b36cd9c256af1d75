"""Composite agent scores.

Standard agents are weighted along the sales funnel (deals > showings > inquiries).
No-showings agents have no showings or deals in their workflow and are scored on
inquiries plus listings acquired instead.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence, Union

from src.schemas.metrics import MetricTotals

DEAL_WEIGHT = 3
SHOWING_WEIGHT = 2
INQUIRY_WEIGHT = 1
LISTING_WEIGHT = 2


class AgentClassifier(Protocol):
    def is_no_showings(self, identifier: str) -> bool:
        ...


class AllowListClassifier:
    """Agents listed by id or email are no-showings agents; anyone else is standard."""

    def __init__(self, identifiers: Iterable[str] = ()) -> None:
        self._identifiers = frozenset(
            item.strip().lower() for item in identifiers if item and item.strip()
        )

    def is_no_showings(self, identifier: str) -> bool:
        if not identifier:
            return False
        return identifier.strip().lower() in self._identifiers


def is_no_showings_agent(classifier: AgentClassifier, identifiers: Sequence[Optional[str]]) -> bool:
    return any(classifier.is_no_showings(identifier) for identifier in identifiers if identifier)


def agent_score(
    identifier: Union[str, Sequence[Optional[str]]],
    totals: MetricTotals,
    classifier: AgentClassifier,
) -> int:
    """Score with the formula for the agent's kind; several identifiers (id, email) may be given."""
    identifiers = [identifier] if isinstance(identifier, str) else identifier
    if is_no_showings_agent(classifier, identifiers):
        return no_showings_score(totals)
    return standard_score(totals)


def standard_score(totals: MetricTotals) -> int:
    return (
        (totals.deals_closed or 0) * DEAL_WEIGHT
        + (totals.showings_completed or 0) * SHOWING_WEIGHT
        + (totals.inquiries_received or 0) * INQUIRY_WEIGHT
    )


def no_showings_score(totals: MetricTotals) -> int:
    return (totals.inquiries_received or 0) * INQUIRY_WEIGHT + (totals.listings_acquired or 0) * LISTING_WEIGHT


def score_with_listings(totals: MetricTotals) -> int:
    """Single formula for leaderboards that mix both kinds of agent."""
    return standard_score(totals) + (totals.listings_acquired or 0) * LISTING_WEIGHT
