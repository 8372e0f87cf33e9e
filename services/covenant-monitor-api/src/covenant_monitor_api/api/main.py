"""Application factory for covenant-monitor-api."""

from __future__ import annotations

from fastapi import FastAPI
from platform_core.fastapi import install_exception_handlers_fastapi
from platform_core.logging import setup_logging
from platform_core.request_context import install_request_id_middleware

from ..core.config import Settings, settings_from_env
from ..core.container import ServiceContainer
from .routes import alerts as routes_alerts
from .routes import covenant_tests as routes_covenant_tests
from .routes import covenants as routes_covenants
from .routes import evaluate as routes_evaluate
from .routes import health as routes_health
from .routes import jobs as routes_jobs
from .routes import periods as routes_periods
from .routes import risk as routes_risk


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Service settings. If None, reads from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    cfg = settings or settings_from_env()
    setup_logging(
        level=cfg["logging"]["level"],
        format_mode=cfg["logging"]["format"],
        service_name="covenant-monitor-api",
        instance_id=None,
        extra_fields=["alert_id", "loan_count", "error_type", "risk_score", "risk_level"],
    )
    container = ServiceContainer.from_settings(cfg)
    app = FastAPI(title="covenant-monitor-api", version="0.1.0")
    install_request_id_middleware(app)
    install_exception_handlers_fastapi(app)

    app.include_router(routes_health.build_router(container))
    app.include_router(routes_covenants.build_router(container))
    app.include_router(routes_periods.build_router(container))
    app.include_router(routes_evaluate.build_router())
    app.include_router(routes_covenant_tests.build_router(container))
    app.include_router(routes_alerts.build_router(container))
    app.include_router(routes_risk.build_router(container))
    app.include_router(routes_jobs.build_router(container))

    return app
