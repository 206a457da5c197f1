"""FastAPI application entrypoint for the school portal points service."""

from fastapi import FastAPI

from . import models  # noqa: F401  registers tables on Base.metadata
from .api.v1.router import api_router
from .core.config import get_settings
from .core.database import Base, engine
from .jobs import register_scheduler


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    app = FastAPI(title="School Portal API", version="0.1.0")
    app.include_router(api_router, prefix="/api/v1")

    if get_settings().create_schema:

        @app.on_event("startup")
        def create_schema() -> None:
            Base.metadata.create_all(bind=engine)

    register_scheduler(app)
    return app


app = create_app()
