from __future__ import annotations

from typing import Dict, Iterable, Optional

from src.core.supabase import SupabaseClient
from src.models.performance import AgentRecord

AGENT_COLUMNS = "id,email,name,role"


class AgentsRepository:
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    def get_agent(self, agent_id: str) -> Optional[AgentRecord]:
        rows, _ = self.client.select(
            table="agents",
            select=AGENT_COLUMNS,
            filters=[("id", f"eq.{agent_id}")],
            limit=1,
        )
        return AgentRecord.model_validate(rows[0]) if rows else None

    def get_agents(self, agent_ids: Iterable[str]) -> Dict[str, AgentRecord]:
        id_filter = self._build_in_filter(agent_ids)
        if not id_filter:
            return {}
        rows, _ = self.client.select(
            table="agents",
            select=AGENT_COLUMNS,
            filters=[("id", id_filter)],
        )
        agents = [AgentRecord.model_validate(row) for row in rows]
        return {agent.id: agent for agent in agents}

    @staticmethod
    def _build_in_filter(values: Iterable[str]) -> Optional[str]:
        sanitized_values = sorted({value.strip() for value in values if value and value.strip()})
        if not sanitized_values:
            return None
        escaped_values = ['"' + value.replace('"', '\\"') + '"' for value in sanitized_values]
        return f"in.({','.join(escaped_values)})"
