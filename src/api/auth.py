from __future__ import annotations

from fastapi import APIRouter, Depends

from src.api.dependencies import get_current_user
from src.schemas.auth import CurrentUser
from src.shared.response import ResponseEnvelope, build_meta

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
def current_user(user: CurrentUser = Depends(get_current_user)) -> ResponseEnvelope[CurrentUser]:
    return ResponseEnvelope(data=user, meta=build_meta(source="agents", time_window="now"))
