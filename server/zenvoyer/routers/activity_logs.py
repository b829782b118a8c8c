"""Read-only activity log browser for admins."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from ..schemas.records import ActivityLog, UserRole
from ..services.auth import CurrentUser, require_roles
from ..services.response_cache import cached_response

router = APIRouter(tags=["activity-logs"])


def filter_logs(logs: list[ActivityLog], search: Optional[str], severity: Optional[str]) -> list[ActivityLog]:
    """Case-insensitive search over email, action and resource, plus a severity filter."""
    needle = (search or "").strip().lower()
    results = []
    for log in logs:
        if needle and not (
            needle in log.user_email.lower()
            or needle in log.action.lower()
            or needle in log.resource.lower()
        ):
            continue
        if severity and severity != "all" and log.severity != severity:
            continue
        results.append(log)
    return results


@router.get("/admin/activity-logs", response_model=list[ActivityLog])
@cached_response()
async def list_activity_logs(
    request: Request,
    search: Optional[str] = Query(None),
    severity: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.SUB_ADMIN, UserRole.SUPER_ADMIN)),
):
    """List activity logs newest first."""
    logs = request.app.state.store.activity_logs()
    return filter_logs(logs, search, severity)[:limit]
