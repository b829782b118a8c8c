"""Health check endpoint."""

import platform
import sys
from fastapi import APIRouter, Request

from .. import __version__

router = APIRouter(tags=["stats"])


@router.get("/health")
async def health_check(request: Request):
    """Health check and status endpoint."""
    state = request.app.state

    return {
        "status": "ok",
        "version": __version__,
        "cache": state.cache.stats(),
        "email": state.email.get_provider_status().model_dump(by_alias=True),
        "locales": state.translator.list_locales(),
        "platform": platform.system().lower(),
        "pythonVersion": sys.version,
    }
