import os

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from sqlalchemy import text

from .auth.router import router as auth_router
from .auth.security import purge_expired_sessions
from .config import settings
from .db import Base, SessionLocal, engine
from .errors import register_error_handlers
from .logging import RequestIdMiddleware, setup_logging
from .models.models import GlobalPricebook
from .routes.businesses import router as businesses_router
from .routes.customers import router as customers_router
from .routes.dashboard import router as dashboard_router
from .routes.equipment import router as equipment_router
from .routes.inventory import router as inventory_router
from .routes.invoices import router as invoices_router
from .routes.jobs import router as jobs_router
from .routes.maps import router as maps_router, routes_router
from .routes.pricebook import router as pricebook_router
from .routes.technicians import router as technicians_router
from .services.seed import populate_global_pricebook, seed_demo_data


log = structlog.get_logger(__name__)

# Mounted twice: once plain (tenant from the caller's membership) and once
# under /{slug} (tenant from the URL, membership must match)
TENANT_ROUTERS = (
    customers_router,
    technicians_router,
    jobs_router,
    invoices_router,
    inventory_router,
    equipment_router,
    pricebook_router,
    dashboard_router,
    routes_router,
)


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title=settings.app_name)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(businesses_router)
    app.include_router(maps_router)
    for router in TENANT_ROUTERS:
        app.include_router(router)
    for router in TENANT_ROUTERS:
        app.include_router(router, prefix="/{slug}")

    Instrumentator().instrument(app).expose(app)

    @app.get("/health")
    def health():
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        return {"status": "ok"}

    @app.on_event("startup")
    def _startup():
        log.info("startup", environment=settings.environment)
        if settings.database_url.startswith("sqlite:///./"):
            os.makedirs("var", exist_ok=True)
        if settings.auto_create_db:
            Base.metadata.create_all(bind=engine)
        db = SessionLocal()
        try:
            if db.query(GlobalPricebook.id).first() is None:
                populate_global_pricebook(db)
            if settings.seed_demo_data:
                seed_demo_data(db)
            purge_expired_sessions(db)
        finally:
            db.close()

    return app


app = create_app()
