"""Locale catalogs and key lookup."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from ..services.i18n import Translator, negotiate_locale

router = APIRouter(tags=["i18n"])


@router.get("/i18n/locales")
async def list_locales(request: Request):
    """List supported locales with display names."""
    translator: Translator = request.app.state.translator
    return [
        {"code": code, "name": translator.display_name(code)}
        for code in translator.list_locales()
    ]


@router.get("/i18n/translate")
async def translate(
    request: Request,
    key: str = Query(..., min_length=1),
    locale: Optional[str] = Query(None),
):
    """Resolve one key; extra query parameters fill ``{name}`` placeholders."""
    translator: Translator = request.app.state.translator
    chosen = negotiate_locale(translator, locale, request.headers.get("accept-language"))
    variables = {
        name: value for name, value in request.query_params.items()
        if name not in ("key", "locale")
    }
    return {
        "key": key,
        "locale": chosen,
        "value": translator.translate(key, variables, locale=chosen),
    }


@router.get("/i18n/{locale}")
async def get_catalog(locale: str, request: Request):
    """Full catalog for one locale."""
    catalog = request.app.state.translator.catalog(locale)
    if catalog is None:
        raise HTTPException(status_code=404, detail=f"Unsupported locale: {locale}")
    return catalog
