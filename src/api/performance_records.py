from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from src.api.dependencies import get_current_user, get_performance_records_service
from src.schemas.auth import CurrentUser
from src.schemas.performance_records import (
    PerformanceRecordCreateRequest,
    PerformanceRecordFilters,
    PerformanceRecordResponse,
    PerformanceRecordUpdateRequest,
)
from src.services.performance_records_service import PerformanceRecordsService
from src.shared.response import ResponseEnvelope, build_meta, build_pagination

router = APIRouter(prefix="/performance-records", tags=["performance-records"])

SOURCE = "performance_records"


def get_performance_record_filters(
    agent_id: Optional[str] = Query(default=None),
    start_date: Optional[date] = Query(default=None),
    end_date: Optional[date] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
) -> PerformanceRecordFilters:
    return PerformanceRecordFilters(
        agent_id=agent_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size,
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_performance_record(
    request: PerformanceRecordCreateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PerformanceRecordsService = Depends(get_performance_records_service),
) -> ResponseEnvelope[PerformanceRecordResponse]:
    data = service.create_record(user, request)
    return ResponseEnvelope(data=data, meta=build_meta(source=SOURCE, time_window="point_in_time"))


@router.get("")
def list_performance_records(
    filters: PerformanceRecordFilters = Depends(get_performance_record_filters),
    user: CurrentUser = Depends(get_current_user),
    service: PerformanceRecordsService = Depends(get_performance_records_service),
) -> ResponseEnvelope[List[PerformanceRecordResponse]]:
    data, total = service.list_records(user, filters)
    meta = build_meta(
        source=SOURCE,
        time_window="custom" if filters.start_date or filters.end_date else "all",
        period_start=filters.start_date,
        period_end=filters.end_date,
    )
    return ResponseEnvelope(
        data=data,
        pagination=build_pagination(page=filters.page, page_size=filters.page_size, total_items=total),
        meta=meta,
    )


@router.get("/{record_id}")
def get_performance_record(
    record_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: PerformanceRecordsService = Depends(get_performance_records_service),
) -> ResponseEnvelope[PerformanceRecordResponse]:
    data = service.get_record(user, record_id)
    return ResponseEnvelope(data=data, meta=build_meta(source=SOURCE, time_window="point_in_time"))


@router.patch("/{record_id}")
def update_performance_record(
    record_id: str,
    request: PerformanceRecordUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    service: PerformanceRecordsService = Depends(get_performance_records_service),
) -> ResponseEnvelope[PerformanceRecordResponse]:
    data = service.update_record(user, record_id, request)
    return ResponseEnvelope(data=data, meta=build_meta(source=SOURCE, time_window="point_in_time"))


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_performance_record(
    record_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: PerformanceRecordsService = Depends(get_performance_records_service),
) -> Response:
    service.delete_record(user, record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
