# contest_portal/api/routers/flags.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, Request

from contest_portal.api.deps import flag_rate_limit, get_current_user, get_moderation_service, require_permission
from contest_portal.api.rate_limit import client_ip
from contest_portal.api.responses import ok
from contest_portal.data.models.user import UserModel
from contest_portal.domain.schemas import (
    CreateFlagIn,
    FlagOut,
    FlagPageOut,
    ModerationActionOut,
    ModerationStatsOut,
    ReviewFlagIn,
)
from contest_portal.domain.statuses import FLAG_SEVERITIES
from contest_portal.services.moderation_service import ModerationService

router = APIRouter(tags=["moderation"])

FlagStatusQuery = Literal["PENDING", "REVIEWED", "RESOLVED", "DISMISSED", "ESCALATED"]


@router.post("/flags", status_code=201, dependencies=[Depends(flag_rate_limit)])
def create_flag(
    payload: CreateFlagIn,
    request: Request,
    user: UserModel = Depends(get_current_user),
    svc: ModerationService = Depends(get_moderation_service),
):
    flag = svc.create_flag(
        user_id=user.id,
        post_id=payload.post_id,
        reason=payload.reason,
        details=payload.details,
        severity=payload.severity,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return ok(FlagOut.model_validate(flag), message="Post flagged successfully")


@router.get("/flags")
def list_flags(
    status: FlagStatusQuery = Query(default="PENDING"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    severity: Optional[Literal[FLAG_SEVERITIES]] = Query(default=None),
    user: UserModel = Depends(require_permission("can_view_reports")),
    svc: ModerationService = Depends(get_moderation_service),
):
    return ok(FlagPageOut.model_validate(svc.list_flags(status, page, limit, severity)))


@router.get("/flags/{flag_id}")
def get_flag(
    flag_id: int = Path(..., gt=0),
    user: UserModel = Depends(require_permission("can_view_reports")),
    svc: ModerationService = Depends(get_moderation_service),
):
    return ok(FlagOut.model_validate(svc.get_flag(flag_id)))


@router.patch("/flags/{flag_id}")
def review_flag(
    payload: ReviewFlagIn,
    flag_id: int = Path(..., gt=0),
    user: UserModel = Depends(require_permission("can_review_reports")),
    svc: ModerationService = Depends(get_moderation_service),
):
    flag = svc.review_flag(
        user,
        flag_id,
        payload.status,
        review_notes=payload.review_notes,
        moderation_action=payload.moderation_action,
        moderation_reason=payload.moderation_reason,
    )
    return ok(FlagOut.model_validate(flag), message=f"Report {payload.status.lower()} successfully")


@router.get("/moderation/stats")
def moderation_stats(
    user: UserModel = Depends(require_permission("can_view_reports")),
    svc: ModerationService = Depends(get_moderation_service),
):
    return ok(ModerationStatsOut.model_validate(svc.moderation_stats()))


@router.get("/posts/{post_id}/moderation-history")
def moderation_history(
    post_id: int = Path(..., gt=0),
    user: UserModel = Depends(require_permission("can_view_reports")),
    svc: ModerationService = Depends(get_moderation_service),
):
    return ok([ModerationActionOut.model_validate(a) for a in svc.moderation_history(post_id)])
