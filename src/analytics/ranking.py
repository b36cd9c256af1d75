"""Leaderboards over per-agent metrics.

Ordering is an explicit stable sort: agents with equal values keep the order
they were given in, for both directions.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from src.core.errors import BadRequestError
from src.schemas.metrics import AgentMetrics, Leaderboards, RankedAgent

DIRECTIONS = ("asc", "desc")

RANKING_DIMENSIONS: Dict[str, Callable[[AgentMetrics], float]] = {
    "inquiries_received": lambda item: item.metrics.totals.inquiries_received,
    "showings_completed": lambda item: item.metrics.totals.showings_completed,
    "deals_closed": lambda item: item.metrics.totals.deals_closed,
    "listings_acquired": lambda item: item.metrics.totals.listings_acquired,
    "crm_properties_listed": lambda item: item.metrics.totals.crm_properties_listed,
    "record_count": lambda item: item.metrics.record_count,
    "inquiries_to_showings": lambda item: item.metrics.conversion_rates.inquiries_to_showings,
    "showings_to_deals": lambda item: item.metrics.conversion_rates.showings_to_deals,
    "score": lambda item: item.score,
    "score_with_listings": lambda item: item.score_with_listings,
}


def _dimension_value(dimension: str) -> Callable[[AgentMetrics], float]:
    extractor = RANKING_DIMENSIONS.get(dimension)
    if extractor is None:
        raise BadRequestError(f"Unsupported ranking dimension: {dimension}")
    return extractor


def rank(
    agents: Iterable[AgentMetrics],
    dimension: str,
    direction: str = "desc",
    limit: Optional[int] = None,
) -> List[RankedAgent]:
    extractor = _dimension_value(dimension)
    if direction not in DIRECTIONS:
        raise BadRequestError(f"Unsupported sort direction: {direction}")
    if limit is not None and limit < 0:
        raise BadRequestError("Ranking limit must not be negative")

    # Input position breaks ties.
    indexed = [(float(extractor(agent) or 0), position, agent) for position, agent in enumerate(agents)]
    if direction == "desc":
        ordered = sorted(indexed, key=lambda entry: (-entry[0], entry[1]))
    else:
        ordered = sorted(indexed, key=lambda entry: (entry[0], entry[1]))
    if limit is not None:
        ordered = ordered[:limit]
    return [
        RankedAgent(rank=index + 1, dimension=dimension, value=value, agent=agent)
        for index, (value, _, agent) in enumerate(ordered)
    ]


def rank_position(agents: Iterable[AgentMetrics], agent_id: str, dimension: str = "score") -> Optional[int]:
    for entry in rank(agents, dimension):
        if entry.agent.agent_id == agent_id:
            return entry.rank
    return None


def build_leaderboards(agents: Iterable[AgentMetrics], limit: Optional[int] = 5) -> Leaderboards:
    items = list(agents)
    return Leaderboards(
        listings=rank(items, "listings_acquired", limit=limit),
        showings=rank(items, "showings_completed", limit=limit),
        deals=rank(items, "deals_closed", limit=limit),
        inquiries_to_showings=rank(items, "inquiries_to_showings", limit=limit),
        showings_to_deals=rank(items, "showings_to_deals", limit=limit),
        score=rank(items, "score", limit=limit),
    )
