"""Server-side validation of auth and product forms."""

from fastapi import APIRouter, Body, HTTPException
from pydantic import ValidationError

from ..schemas.auth import ChangePasswordInput, LoginInput, RegisterInput
from ..schemas.product import CreateProductInput, UpdateProductInput

router = APIRouter(tags=["validation"])

SCHEMAS = {
    "login": LoginInput,
    "register": RegisterInput,
    "change-password": ChangePasswordInput,
    "create-product": CreateProductInput,
    "update-product": UpdateProductInput,
}


def format_errors(error: ValidationError) -> list[dict]:
    """Flatten pydantic errors into ``{field, message}`` pairs."""
    errors = []
    for item in error.errors():
        field = ".".join(str(part) for part in item["loc"]) or None
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": field, "message": message})
    return errors


@router.post("/validate/{schema}")
async def validate_form(schema: str, payload: dict = Body(...)):
    """Validate a form payload against a named schema."""
    model = SCHEMAS.get(schema)
    if model is None:
        raise HTTPException(status_code=404, detail=f"Unknown schema: {schema}")

    try:
        data = model.model_validate(payload)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=format_errors(e))

    return {"valid": True, "data": data.model_dump(by_alias=True, exclude_none=True)}
