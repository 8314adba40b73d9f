"""FastAPI application factory."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi_pagination import add_pagination

from app.config import get_settings
from app.infra.logging_config import LoggingConfig
from app.routers.outreach_router import outreach_router


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    if not testing:
        LoggingConfig(settings.log_level)

    app = FastAPI(title=settings.app_name)
    app.include_router(outreach_router)

    @app.get("/health", tags=["system"])
    def health() -> dict[str, str]:
        return {"status": "ok", "environment": settings.environment}

    add_pagination(app)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
