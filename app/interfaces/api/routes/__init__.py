from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.interfaces.api.schemas import ApiError

from .notifications import router as notifications_router


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc.detail, dict):
        body = ApiError.model_validate(exc.detail)
    else:
        body = ApiError(error=str(exc.detail))
    return JSONResponse(
        body.model_dump(exclude_none=True),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    body = ApiError(error="Invalid request", details=str(exc.errors()))
    return JSONResponse(body.model_dump(exclude_none=True), status_code=422)


def register_routes(app: FastAPI) -> None:
    """Register the API routers and the ``{error, details}`` error handlers."""

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.include_router(notifications_router)
