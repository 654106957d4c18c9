import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.exceptions import (
    Forbidden,
    InvalidState,
    KasokuError,
    NotFound,
    PersistenceError,
    ValidationError,
)
from .routers import athletes, dashboard, exercises, plans, sessions, users

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Kasoku Training Platform",
    version="0.1.0",
)

app.include_router(users.router)
app.include_router(athletes.router)
app.include_router(exercises.router)
app.include_router(plans.router)
app.include_router(sessions.router)
app.include_router(dashboard.router)


def _hidden(exc: KasokuError) -> JSONResponse:
    entity = exc.entity or "Resource"
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": f"{entity} not found.", "error_code": NotFound.error_code},
    )


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    logger.info("Not found on %s %s: %s", request.method, request.url.path, exc.context())
    return _hidden(exc)


@app.exception_handler(Forbidden)
async def forbidden_handler(request: Request, exc: Forbidden) -> JSONResponse:
    logger.warning("Forbidden on %s %s: %s", request.method, request.url.path, exc.context())
    return _hidden(exc)


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=exc.context())


@app.exception_handler(InvalidState)
async def invalid_state_handler(request: Request, exc: InvalidState) -> JSONResponse:
    content = exc.context()
    content.update({"current": exc.current, "requested": exc.requested})
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content)


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.context())
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=exc.context())


@app.get("/health", tags=["health"])
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
