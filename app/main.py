"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, CORS, routers. Automation
semantics live in app.application; see app.core.lifespan and
app.core.exception_handlers for startup and error mapping.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.core.config import get_settings
from app.core.exception_handlers import register_exception_handlers
from app.core.lifespan import create_lifespan

_OPENAPI_TAGS = [
    {
        "name": "automations",
        "description": (
            "Trigger rules for action instances. actionSucceeded / actionFailed "
            "automations chain action instances and are rejected when they would "
            "close a loop or exceed the maximum chain depth."
        ),
    },
    {"name": "health", "description": "Liveness and database readiness."},
]


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
        openapi_tags=_OPENAPI_TAGS,
    )

    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
