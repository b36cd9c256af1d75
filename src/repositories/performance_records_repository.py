from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from src.core.supabase import SupabaseClient
from src.models.performance import AgentMetricSumsRow, PerformanceRecord

# Matches the default PostgREST max-rows on Supabase.
PAGE_SIZE = 1000
RECORD_COLUMNS = (
    "id,agent_id,record_date,inquiries_received,showings_completed,deals_closed,listings_acquired,"
    "follow_up_done,crm_usage_level,crm_properties_listed,crm_links,crm_difficulty_reported,"
    "crm_difficulty_detail,notes,created_at,updated_at"
)


class PerformanceRecordsRepository:
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    @staticmethod
    def _filters(
        agent_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> List[Tuple[str, str]]:
        filters: List[Tuple[str, str]] = []
        if agent_id:
            filters.append(("agent_id", f"eq.{agent_id}"))
        if start_date:
            filters.append(("record_date", f"gte.{start_date.isoformat()}"))
        if end_date:
            filters.append(("record_date", f"lte.{end_date.isoformat()}"))
        return filters

    def list_records(
        self,
        agent_id: Optional[str],
        start_date: Optional[date],
        end_date: Optional[date],
        page: int,
        page_size: int,
    ) -> Tuple[List[PerformanceRecord], int]:
        rows, total = self.client.select(
            table="performance_records",
            select=RECORD_COLUMNS,
            filters=self._filters(agent_id, start_date, end_date),
            limit=page_size,
            offset=(page - 1) * page_size,
            order="record_date.desc,created_at.desc",
            count=True,
        )
        return [PerformanceRecord.model_validate(row) for row in rows], total or 0

    def list_records_for_period(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        agent_id: Optional[str] = None,
    ) -> List[PerformanceRecord]:
        """Every record in the period, read page by page until a short page comes back."""
        filters = self._filters(agent_id, start_date, end_date)
        records: List[PerformanceRecord] = []
        offset = 0
        while True:
            rows, _ = self.client.select(
                table="performance_records",
                select=RECORD_COLUMNS,
                filters=filters,
                limit=PAGE_SIZE,
                offset=offset,
                order="record_date.desc,created_at.desc,id.desc",
            )
            records.extend(PerformanceRecord.model_validate(row) for row in rows)
            if len(rows) < PAGE_SIZE:
                return records
            offset += PAGE_SIZE

    def get_record(self, record_id: str) -> Optional[PerformanceRecord]:
        rows, _ = self.client.select(
            table="performance_records",
            select=RECORD_COLUMNS,
            filters=[("id", f"eq.{record_id}")],
            limit=1,
        )
        if not rows:
            return None
        return PerformanceRecord.model_validate(rows[0])

    def create_record(self, payload: Dict[str, Any]) -> PerformanceRecord:
        rows = self.client.insert(table="performance_records", payload=payload)
        return PerformanceRecord.model_validate(rows[0])

    def update_record(self, record_id: str, payload: Dict[str, Any]) -> Optional[PerformanceRecord]:
        rows = self.client.update(
            table="performance_records",
            payload=payload,
            filters=[("id", f"eq.{record_id}")],
        )
        if not rows:
            return None
        return PerformanceRecord.model_validate(rows[0])

    def delete_record(self, record_id: str) -> bool:
        rows = self.client.delete(table="performance_records", filters=[("id", f"eq.{record_id}")])
        return bool(rows)

    def sum_by_agent(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
        agent_id: Optional[str] = None,
    ) -> List[AgentMetricSumsRow]:
        """Per-agent sums computed in the database by the ``performance_sums_by_agent`` function."""
        payload = self.client.rpc(
            "performance_sums_by_agent",
            payload={
                "p_agent_id": agent_id,
                "p_date_from": start_date.isoformat() if start_date else None,
                "p_date_to": end_date.isoformat() if end_date else None,
            },
        )
        if not isinstance(payload, list):
            return []
        return [AgentMetricSumsRow.model_validate(row) for row in payload]
