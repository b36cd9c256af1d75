from __future__ import annotations

import os

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date
from typing import Callable, Dict, Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_agents_repository
from src.core.config import get_settings
from src.core.security import create_access_token
from src.main import create_app
from src.models.performance import AgentRecord, PerformanceRecord


class StubAgentsRepository:
    def __init__(self, agents: Optional[Iterable[AgentRecord]] = None) -> None:
        self.agents: Dict[str, AgentRecord] = {agent.id: agent for agent in (agents or [])}

    def get_agent(self, agent_id: str) -> Optional[AgentRecord]:
        return self.agents.get(agent_id)

    def get_agents(self, agent_ids: Iterable[str]) -> Dict[str, AgentRecord]:
        return {agent_id: self.agents[agent_id] for agent_id in set(agent_ids) if agent_id in self.agents}


DEFAULT_AGENTS = [
    AgentRecord(id="admin-1", email="admin@example.com", name="Dana Admin", role="admin"),
    AgentRecord(id="agent-a", email="ana@example.com", name="Ana Lopez", role="agent"),
    AgentRecord(id="agent-b", email="bruno@example.com", name="Bruno Diaz", role="agent"),
]


def make_record(
    record_id: str,
    agent_id: str,
    record_date: date,
    inquiries: int = 0,
    showings: Optional[int] = None,
    deals: Optional[int] = None,
    listings: int = 0,
    **extra: object,
) -> PerformanceRecord:
    return PerformanceRecord(
        id=record_id,
        agent_id=agent_id,
        record_date=record_date,
        inquiries_received=inquiries,
        showings_completed=showings,
        deals_closed=deals,
        listings_acquired=listings,
        **extra,
    )


@pytest.fixture()
def agents_repository() -> StubAgentsRepository:
    return StubAgentsRepository(DEFAULT_AGENTS)


@pytest.fixture()
def auth_headers() -> Callable[[str, str], Dict[str, str]]:
    def _headers(agent_id: str, role: str = "agent") -> Dict[str, str]:
        token = create_access_token(get_settings(), agent_id=agent_id, role=role)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def app(agents_repository: StubAgentsRepository):
    application = create_app()
    application.dependency_overrides[get_agents_repository] = lambda: agents_repository
    return application


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def record_factory() -> Callable[..., PerformanceRecord]:
    return make_record
