"""ListBackup API: FastAPI application entry point.

Account, team, billing, branding, platform and data endpoints served from a
single app. Collaborators are built once and injected through ``app.state``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from listbackup_api.api.response import CORS_HEADERS, error_response, preflight_response, success_response
from listbackup_api.config.settings import get_settings
from listbackup_api.errors import AppError
from listbackup_api.handlers import accounts, billing, branding, data, domains, platforms, teams
from listbackup_api.logging.audit import (
    RequestTimer,
    generate_request_id,
    get_audit_logger,
    request_id_var,
    setup_logging,
)
from listbackup_api.services.container import Services, build_services

VERSION = "0.3.0"


def _request_id_from(request: Request) -> str:
    event = request.scope.get("aws.event") or {}
    return (event.get("requestContext") or {}).get("requestId") or generate_request_id()


def create_app(services: Services) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        get_audit_logger().info("API started")
        yield
        await services.close()
        get_audit_logger().info("API stopped")

    app = FastAPI(
        title="ListBackup API",
        description="Accounts, teams, billing, branding, platform connections and data",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.services = services

    @app.middleware("http")
    async def envelope_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            return preflight_response()

        rid = _request_id_from(request)
        token = request_id_var.set(rid)
        logger = get_audit_logger()
        try:
            with RequestTimer() as timer:
                try:
                    response = await call_next(request)
                except Exception:
                    logger.exception(
                        "Unhandled error",
                        extra={"audit_data": {"method": request.method, "path": request.url.path}},
                    )
                    response = error_response(500, "Internal server error")

            response.headers.update(CORS_HEADERS)
            response.headers["X-Request-Id"] = rid
            logger.info(
                "Request completed",
                extra={"audit_data": {
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "latency_ms": timer.elapsed_ms,
                }},
            )
            return response
        finally:
            request_id_var.reset(token)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            get_audit_logger().error(
                exc.message, extra={"audit_data": {"path": request.url.path, "status": exc.status_code}},
            )
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if any(e.get("type") == "json_invalid" for e in errors):
            return error_response(400, "Invalid JSON format in request body")
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = first.get("msg", "Invalid request")
            return error_response(400, f"{location}: {message}" if location else message)
        return error_response(400, "Invalid request")

    @app.get("/health")
    async def health():
        return success_response({"status": "healthy", "version": VERSION})

    for module in (accounts, teams, billing, branding, domains, platforms, data):
        app.include_router(module.router)

    return app


app = create_app(build_services(get_settings()))
