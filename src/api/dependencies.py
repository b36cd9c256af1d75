from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.analytics.scoring import AllowListClassifier
from src.core.config import get_no_showings_identifiers, get_settings
from src.core.errors import ForbiddenError, UnauthorizedError
from src.core.security import decode_access_token
from src.core.supabase import SupabaseClient
from src.repositories.agents_repository import AgentsRepository
from src.repositories.performance_records_repository import PerformanceRecordsRepository
from src.schemas.auth import CurrentUser
from src.services.performance_records_service import PerformanceRecordsService
from src.services.reports_service import ReportsService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_supabase_client() -> SupabaseClient:
    return SupabaseClient(get_settings())


@lru_cache
def get_performance_records_repository() -> PerformanceRecordsRepository:
    return PerformanceRecordsRepository(client=get_supabase_client())


@lru_cache
def get_agents_repository() -> AgentsRepository:
    return AgentsRepository(client=get_supabase_client())


@lru_cache
def get_classifier() -> AllowListClassifier:
    return AllowListClassifier(get_no_showings_identifiers())


def get_performance_records_service() -> PerformanceRecordsService:
    return PerformanceRecordsService(repository=get_performance_records_repository())


def get_reports_service() -> ReportsService:
    return ReportsService(
        records_repository=get_performance_records_repository(),
        agents_repository=get_agents_repository(),
        classifier=get_classifier(),
        top_n=get_settings().report_top_n,
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    agents_repository: AgentsRepository = Depends(get_agents_repository),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Authentication required")
    payload = decode_access_token(get_settings(), credentials.credentials)
    agent = agents_repository.get_agent(payload["sub"])
    if not agent:
        logger.warning("Token subject %s does not match an agent", payload["sub"])
        raise UnauthorizedError("Unknown user")
    return CurrentUser(id=agent.id, email=agent.email, name=agent.name, role=agent.role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        logger.warning("Agent %s attempted an admin-only report", user.id)
        raise ForbiddenError("Administrator role required")
    return user
