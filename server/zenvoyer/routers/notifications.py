"""Email notification endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import Field

from ..errors import EmailSendError, InvalidEmailAddressError
from ..schemas.base import CamelModel
from ..schemas.email import EmailMessage, ProviderStatus, SendResult
from ..services.auth import CurrentUser, get_current_user
from ..services.email import EmailService

router = APIRouter(tags=["notifications"])


class BatchRequest(CamelModel):
    """Several messages sent concurrently."""
    messages: list[EmailMessage] = Field(..., min_length=1, max_length=100)


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email


async def _deliver(coro):
    try:
        return await coro
    except InvalidEmailAddressError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EmailSendError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/notifications/email/send", response_model=SendResult)
async def send_email(
    message: EmailMessage,
    user: CurrentUser = Depends(get_current_user),
    service: EmailService = Depends(get_email_service),
):
    """Send a single email through the configured provider."""
    return await _deliver(service.send_email(message))


@router.post("/notifications/email/batch", response_model=list[SendResult])
async def send_batch(
    batch: BatchRequest,
    user: CurrentUser = Depends(get_current_user),
    service: EmailService = Depends(get_email_service),
):
    """Send several emails; results follow request order."""
    return await _deliver(service.send_batch(batch.messages))


@router.get("/notifications/email/status", response_model=ProviderStatus)
async def provider_status(
    user: CurrentUser = Depends(get_current_user),
    service: EmailService = Depends(get_email_service),
):
    """Which provider is active and whether it has credentials."""
    return service.get_provider_status()
