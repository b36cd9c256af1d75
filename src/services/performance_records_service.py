from __future__ import annotations

import logging
from typing import List, Tuple

from src.analytics.week_windows import resolve_date_range
from src.core.errors import BadRequestError, ForbiddenError, NotFoundError
from src.models.performance import PerformanceRecord
from src.repositories.performance_records_repository import PerformanceRecordsRepository
from src.schemas.auth import ROLE_AGENT, CurrentUser
from src.schemas.performance_records import (
    PerformanceRecordCreateRequest,
    PerformanceRecordFilters,
    PerformanceRecordResponse,
    PerformanceRecordUpdateRequest,
)

logger = logging.getLogger(__name__)


class PerformanceRecordsService:
    def __init__(self, repository: PerformanceRecordsRepository) -> None:
        self.repository = repository

    def create_record(
        self, user: CurrentUser, request: PerformanceRecordCreateRequest
    ) -> PerformanceRecordResponse:
        if user.role != ROLE_AGENT:
            raise ForbiddenError("Only agents can submit performance records")
        payload = request.model_dump(mode="json")
        payload["agent_id"] = user.id
        record = self.repository.create_record(payload)
        logger.info("Created performance record %s for agent %s", record.id, user.id)
        return self._to_response(record)

    def get_record(self, user: CurrentUser, record_id: str) -> PerformanceRecordResponse:
        return self._to_response(self._get_owned_record(user, record_id))

    def list_records(
        self, user: CurrentUser, filters: PerformanceRecordFilters
    ) -> Tuple[List[PerformanceRecordResponse], int]:
        start_date, end_date = resolve_date_range(filters.start_date, filters.end_date)
        agent_id = filters.agent_id if user.is_admin else user.id
        records, total = self.repository.list_records(
            agent_id=agent_id,
            start_date=start_date,
            end_date=end_date,
            page=filters.page,
            page_size=filters.page_size,
        )
        return [self._to_response(record) for record in records], total

    def update_record(
        self, user: CurrentUser, record_id: str, request: PerformanceRecordUpdateRequest
    ) -> PerformanceRecordResponse:
        self._get_owned_record(user, record_id)
        payload = request.model_dump(mode="json", exclude_unset=True)
        if not payload:
            raise BadRequestError("No fields to update")
        record = self.repository.update_record(record_id, payload)
        if not record:
            raise NotFoundError("Performance record not found")
        logger.info("Updated performance record %s fields=%s", record_id, sorted(payload))
        return self._to_response(record)

    def delete_record(self, user: CurrentUser, record_id: str) -> None:
        self._get_owned_record(user, record_id)
        if not self.repository.delete_record(record_id):
            raise NotFoundError("Performance record not found")
        logger.info("Deleted performance record %s by %s", record_id, user.id)

    def _get_owned_record(self, user: CurrentUser, record_id: str) -> PerformanceRecord:
        record = self.repository.get_record(record_id)
        if not record:
            raise NotFoundError("Performance record not found")
        if not user.is_admin and record.agent_id != user.id:
            logger.warning("Agent %s denied access to record %s", user.id, record_id)
            raise ForbiddenError("You can only access your own performance records")
        return record

    @staticmethod
    def _to_response(record: PerformanceRecord) -> PerformanceRecordResponse:
        return PerformanceRecordResponse.model_validate(record.model_dump())
