import sentry_sdk
import structlog
from fastapi import FastAPI
from sentry_sdk.integrations.starlette import StarletteIntegration
from starlette.middleware.cors import CORSMiddleware

from storefront_core.api import errors
from storefront_core.api.routers.healthz import router as healthz_router
from storefront_core.api.routers.members import router as members_router
from storefront_core.bootstrap import ERROR_RESPONDER_KEY, build_resolver
from storefront_core.core.config import Settings, get_settings
from storefront_core.core.resolver import Resolver
from storefront_core.logging import setup_logging
from storefront_core.middleware.request_id import request_id_middleware


def create_app(settings: Settings | None = None, resolver: Resolver | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Initialize structured logging first
    setup_logging(settings)

    # Initialize Sentry (no-op if DSN is missing)
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.app_env,
            release=settings.release,
            # 5xx are captured once, by the error responder
            integrations=[StarletteIntegration(failed_request_status_codes=set())],
            traces_sample_rate=settings.sentry_traces_rate,
            send_default_pii=False,
        )

    app = FastAPI(title=settings.service_name)

    resolver = resolver if resolver is not None else build_resolver(settings)
    app.state.resolver = resolver
    if ERROR_RESPONDER_KEY in resolver:
        responder = resolver.resolve(ERROR_RESPONDER_KEY)
    else:
        responder = errors.ErrorResponder(expose_messages=settings.expose_error_messages)

    # Terminal error handling sits inside the request-id middleware so the
    # access log sees the final status and error logs carry the request id.
    errors.install(app, responder)
    app.middleware("http")(request_id_middleware)

    if settings.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE", "OPTIONS", "HEAD"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID", errors.ERROR_CODE_HEADER, errors.ERROR_TIMESTAMP_HEADER],
        )

    app.include_router(healthz_router)
    app.include_router(members_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "env": settings.app_env}

    # Debug-only endpoint to raise an error (disabled in prod)
    if not settings.is_prod:

        @app.get("/debug/error")
        def debug_error():
            raise RuntimeError("intentional error for error-path debugging")

    structlog.get_logger(__name__).info(
        "app_startup", env=settings.app_env, service=settings.service_name
    )
    return app


app = create_app()
