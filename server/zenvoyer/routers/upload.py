"""File upload endpoints (company logo and invoice attachments)."""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from ..errors import UploadRejectedError
from ..services.auth import CurrentUser, get_current_user
from ..services.i18n import request_locale
from ..services.uploads import UploadPolicy, UploadService, attachment_policy, logo_policy

router = APIRouter(tags=["upload"])


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.uploads


async def _accept(request: Request, service: UploadService, policy: UploadPolicy, upload: Optional[UploadFile]) -> dict:
    locale = request_locale(request)
    try:
        stored = await service.accept(policy, upload)
    except UploadRejectedError as e:
        detail = locale.translate(e.message_key) if e.message_key else str(e)
        raise HTTPException(status_code=e.status_code, detail=detail)

    return {
        "message": locale.translate(policy.success_key),
        "filename": stored.filename,
        "path": stored.path,
        "size": stored.size,
        "mimetype": stored.mimetype,
    }


@router.post("/upload/logo")
async def upload_logo(
    request: Request,
    logo: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    """Upload a company logo (images only, 2MB max)."""
    return await _accept(request, service, logo_policy(request.app.state.settings), logo)


@router.post("/upload/attachment")
async def upload_attachment(
    request: Request,
    file: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(get_current_user),
    service: UploadService = Depends(get_upload_service),
):
    """Upload an image or document attachment (5MB max)."""
    return await _accept(request, service, attachment_policy(request.app.state.settings), file)
