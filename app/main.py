import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import Settings, get_settings, throw_if_missing
from app.core.exceptions import generic_exception_handler, not_found_handler
from app.core.logging import bind_request_id, configure_logging, get_logger
from app.db.init import get_client
from app.routers import pages, payments
from app.services.orders import OrderStore
from app.services.payments import StripeGateway

log = get_logger(__name__)


def create_app(
    settings: Settings | None = None,
    gateway: StripeGateway | None = None,
    order_store: OrderStore | None = None,
) -> FastAPI:
    """
    Build the function's ASGI app. Required configuration is checked before anything is routed.
    gateway/order_store default to Stripe and Mongo clients built from settings.
    """
    settings = settings or get_settings()
    throw_if_missing(settings)
    configure_logging(debug=settings.debug, env=settings.env)

    owns_store = order_store is None
    if gateway is None:
        gateway = StripeGateway(
            settings.stripe_secret_key,
            settings.stripe_webhook_secret,
            currency=settings.currency,
            product_name=settings.product_name,
        )
    if order_store is None:
        order_store = OrderStore(get_client(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.sentry_dsn:
            import sentry_sdk
            sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
            log.info("startup", msg="Sentry enabled")
        log.info("startup", database_id=settings.database_id, collection_id=settings.collection_id)
        yield
        if owns_store:
            order_store.close()

    app = FastAPI(
        title="Stripe Orders Function",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.order_store = order_store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        bind_request_id(request_id)
        start = time.perf_counter()
        # A handler that raises still gets its request line, logged as a 500.
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            log.info(
                "request",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
        response.headers["X-Request-ID"] = request_id
        return response

    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # POST routes first; the GET catch-all must not shadow them.
    app.include_router(payments.router, tags=["payments"])
    app.include_router(pages.router, tags=["pages"])
    return app


app = create_app()
