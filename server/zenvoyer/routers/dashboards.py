"""Role-specific dashboard endpoints."""

from fastapi import APIRouter, Depends, Request

from ..schemas.dashboard import (
    AdminDashboardResponse,
    SuperAdminDashboardResponse,
    UserDashboardResponse,
)
from ..schemas.records import UserRole
from ..services.auth import CurrentUser, get_current_user, require_roles
from ..services.dashboards import DashboardService
from ..services.response_cache import cached_response

router = APIRouter(tags=["dashboards"])


def get_dashboard_service(request: Request) -> DashboardService:
    return request.app.state.dashboards


@router.get("/dashboards/user", response_model=UserDashboardResponse)
@cached_response(vary_by_user=True)
async def get_user_dashboard(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Invoice stats for the calling user (regular users and sub-users)."""
    return service.get_user_dashboard(user.id)


@router.get("/dashboards/admin", response_model=AdminDashboardResponse)
@cached_response()
async def get_admin_dashboard(
    request: Request,
    user: CurrentUser = Depends(require_roles(UserRole.ADMIN, UserRole.SUB_ADMIN)),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Support team dashboard."""
    return service.get_admin_dashboard()


@router.get("/dashboards/super-admin", response_model=SuperAdminDashboardResponse)
@cached_response()
async def get_super_admin_dashboard(
    request: Request,
    user: CurrentUser = Depends(require_roles(UserRole.SUPER_ADMIN)),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Platform-wide dashboard for the super admin."""
    return service.get_super_admin_dashboard()
