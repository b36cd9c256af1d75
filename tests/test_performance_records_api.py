from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Tuple

import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import get_performance_records_service
from src.core.errors import ForbiddenError, NotFoundError
from src.schemas.auth import CurrentUser
from src.schemas.performance_records import (
    PerformanceRecordCreateRequest,
    PerformanceRecordFilters,
    PerformanceRecordResponse,
    PerformanceRecordUpdateRequest,
)


def sample_record(**overrides: Any) -> PerformanceRecordResponse:
    values: Dict[str, Any] = {
        "id": "rec-1",
        "agent_id": "agent-a",
        "record_date": date(2024, 1, 15),
        "inquiries_received": 4,
        "showings_completed": 2,
        "deals_closed": 1,
        "listings_acquired": 0,
        "follow_up_done": True,
    }
    values.update(overrides)
    return PerformanceRecordResponse(**values)


class FakePerformanceRecordsService:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def create_record(self, user: CurrentUser, request: PerformanceRecordCreateRequest) -> PerformanceRecordResponse:
        self.calls.append(("create", request))
        return sample_record(agent_id=user.id, inquiries_received=request.inquiries_received)

    def list_records(self, user: CurrentUser, filters: PerformanceRecordFilters):
        self.calls.append(("list", filters))
        return [sample_record()], 41

    def get_record(self, user: CurrentUser, record_id: str) -> PerformanceRecordResponse:
        if record_id == "missing":
            raise NotFoundError("Performance record not found")
        if user.id == "agent-b":
            raise ForbiddenError("You can only access your own performance records")
        return sample_record(id=record_id)

    def update_record(
        self, user: CurrentUser, record_id: str, request: PerformanceRecordUpdateRequest
    ) -> PerformanceRecordResponse:
        self.calls.append(("update", request.model_dump(exclude_unset=True)))
        return sample_record(id=record_id, **request.model_dump(exclude_unset=True))

    def delete_record(self, user: CurrentUser, record_id: str) -> None:
        self.calls.append(("delete", record_id))


@pytest.fixture()
def fake_service() -> FakePerformanceRecordsService:
    return FakePerformanceRecordsService()


@pytest.fixture()
def records_client(app, fake_service) -> TestClient:
    app.dependency_overrides[get_performance_records_service] = lambda: fake_service
    return TestClient(app)


def test_requires_bearer_token(records_client):
    response = records_client.get("/api/v1/performance-records")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "unauthorized"
    assert response.headers["www-authenticate"] == "Bearer"


def test_rejects_invalid_token(records_client):
    response = records_client.get(
        "/api/v1/performance-records", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_rejects_token_for_unknown_agent(records_client, auth_headers):
    response = records_client.get("/api/v1/performance-records", headers=auth_headers("ghost"))
    assert response.status_code == 401


def test_create_record(records_client, fake_service, auth_headers):
    response = records_client.post(
        "/api/v1/performance-records",
        json={"recordDate": "2024-01-15", "inquiriesReceived": 7, "crmDifficultyReported": True},
        headers=auth_headers("agent-a"),
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["data"]["agentId"] == "agent-a"
    assert payload["data"]["inquiriesReceived"] == 7
    assert fake_service.calls[0][1].crm_difficulty_reported is True


@pytest.mark.parametrize(
    "body",
    [
        {"recordDate": "2024-01-15", "inquiriesReceived": -1},
        {"inquiriesReceived": 1},
        {"recordDate": "2024-01-15", "agentId": "agent-b"},
    ],
)
def test_create_record_validation(records_client, auth_headers, body):
    response = records_client.post("/api/v1/performance-records", json=body, headers=auth_headers("agent-a"))
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_list_records_is_paginated(records_client, fake_service, auth_headers):
    response = records_client.get(
        "/api/v1/performance-records",
        params={"page": 2, "page_size": 20, "start_date": "2024-01-01"},
        headers=auth_headers("admin-1"),
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["pagination"] == {"page": 2, "pageSize": 20, "totalItems": 41, "totalPages": 3}
    assert payload["meta"]["timeWindow"] == "custom"
    assert payload["meta"]["periodStart"] == "2024-01-01"
    assert fake_service.calls[0][1].start_date == date(2024, 1, 1)


def test_get_record_errors(records_client, auth_headers):
    assert records_client.get("/api/v1/performance-records/missing", headers=auth_headers("agent-a")).status_code == 404
    forbidden = records_client.get("/api/v1/performance-records/rec-1", headers=auth_headers("agent-b"))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "forbidden"


def test_update_record(records_client, fake_service, auth_headers):
    response = records_client.patch(
        "/api/v1/performance-records/rec-1",
        json={"dealsClosed": 3},
        headers=auth_headers("agent-a"),
    )
    assert response.status_code == 200
    assert response.json()["data"]["dealsClosed"] == 3
    assert fake_service.calls == [("update", {"deals_closed": 3})]


def test_delete_record(records_client, fake_service, auth_headers):
    response = records_client.delete("/api/v1/performance-records/rec-1", headers=auth_headers("agent-a"))
    assert response.status_code == 204
    assert fake_service.calls == [("delete", "rec-1")]


def test_current_user(records_client, auth_headers):
    response = records_client.get("/api/v1/auth/me", headers=auth_headers("admin-1", role="admin"))
    assert response.status_code == 200
    assert response.json()["data"] == {
        "id": "admin-1",
        "email": "admin@example.com",
        "name": "Dana Admin",
        "role": "admin",
    }
