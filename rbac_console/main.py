import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, get_settings
from .database import Database
from .domain.ports.text_generation import TextGenerationPort
from .errors import (
    AppError,
    AuthError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
    error_payload,
    resolve_error_code,
)
from .infrastructure.gemini import GeminiClient
from .routers import ai, auth, permissions, roles
from .utils.health import check_database_connection

logger = logging.getLogger("rbac_console")


def _resolve_log_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(app_settings: Settings) -> None:
    log_level = _resolve_log_level(app_settings.log_level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
    logger.setLevel(log_level)


SAFE_HTTP_MESSAGES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: ValidationError.message,
    status.HTTP_401_UNAUTHORIZED: AuthError.message,
    status.HTTP_403_FORBIDDEN: "Forbidden",
    status.HTTP_404_NOT_FOUND: NotFoundError.message,
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
    status.HTTP_409_CONFLICT: ConflictError.message,
}


def _health_response(status_text: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": status_text})


def _log_error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    exc: Exception | None = None,
) -> None:
    request_id = request.headers.get("x-request-id")
    log_message = (
        f"[{code}] path={request.url.path} request_id={request_id or 'n/a'} message={message}"
    )
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(log_message, exc_info=exc)
    else:
        logger.warning(log_message)


def _register_exception_handlers(app: FastAPI, app_settings: Settings) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        _log_error(request, exc.status_code, exc.code, exc.message, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.code, exc.message, exc.details, **exc.extra),
        )

    @app.exception_handler(HTTPException)
    async def handle_http_exception(
        request: Request, exc: HTTPException | StarletteHTTPException
    ) -> JSONResponse:
        safe_message = SAFE_HTTP_MESSAGES.get(
            exc.status_code,
            InternalError.message
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Request failed",
        )
        detail = exc.detail
        log_message = (detail if isinstance(detail, str) else "").strip() or safe_message
        code = resolve_error_code(exc.status_code)
        _log_error(request, exc.status_code, code, log_message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(code, safe_message, detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_starlette_http_exception(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return await handle_http_exception(request, exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = ValidationError.message
        _log_error(request, status.HTTP_400_BAD_REQUEST, ValidationError.code, message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_payload(
                ValidationError.code, message, _jsonable_errors(exc)
            ),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        message = "Request could not be completed due to a conflict"
        _log_error(request, status.HTTP_409_CONFLICT, ConflictError.code, message, exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_payload(ConflictError.code, message),
        )

    @app.exception_handler(NoResultFound)
    async def handle_no_result_found(request: Request, exc: NoResultFound) -> JSONResponse:
        message = "Requested resource was not found"
        _log_error(request, status.HTTP_404_NOT_FOUND, NotFoundError.code, message, exc)
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_payload(NotFoundError.code, message),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        message = str(exc) if app_settings.is_development else InternalError.message
        _log_error(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            InternalError.code,
            str(exc) or InternalError.message,
            exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload(InternalError.code, message or InternalError.message),
        )


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "loc": list(error.get("loc", ())),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
        )
    return errors


def create_app(
    app_settings: Settings | None = None,
    *,
    database: Database | None = None,
    text_generator: TextGenerationPort | None = None,
) -> FastAPI:
    """Build the application.

    ``database`` and ``text_generator`` default to ones built from settings
    at start-up; tests pass their own.
    """
    app_settings = app_settings or get_settings()
    configure_logging(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (%s)", app_settings.app_name, app_settings.environment)
        if app_settings.debug:
            logger.warning("DEBUG=true, SQL statements are echoed")

        app.state.database = database or Database.from_settings(app_settings)
        app.state.text_generator = text_generator or GeminiClient.from_settings(app_settings)
        if not app_settings.gemini_api_key and text_generator is None:
            logger.warning("GEMINI_API_KEY is not set, command interpretation is disabled")
        await app.state.database.create_all()

        yield

        await app.state.database.dispose()
        logger.info("Stopped %s", app_settings.app_name)

    app = FastAPI(title=app_settings.app_name, debug=app_settings.debug, lifespan=lifespan)

    if app_settings.allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=app_settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["authorization", "content-type"],
        )

    for router in (auth.router, roles.router, permissions.router, ai.router):
        app.include_router(router, prefix="/api")

    _register_exception_handlers(app, app_settings)

    @app.get("/health", tags=["health"])
    async def healthcheck(request: Request) -> Response:
        try:
            await check_database_connection(request.app.state.database.engine)
        except SQLAlchemyError as exc:
            logger.error("Healthcheck database probe failed: %s", exc)
            return _health_response("error", status.HTTP_503_SERVICE_UNAVAILABLE)

        return _health_response("ok", status.HTTP_200_OK)

    return app
