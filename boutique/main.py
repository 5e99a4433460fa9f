import uvicorn
from fastapi import FastAPI

from boutique.api.routes.health import router as health_router
from boutique.api.routes.internal_accounts import router as internal_accounts_router
from boutique.api.routes.internal_discount_keys import router as internal_discount_keys_router
from boutique.core.config import get_settings
from boutique.core.logging import configure_logging


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Boutique Discount Keys API",
        version="0.1.0",
        docs_url="/docs" if settings.app_env == "dev" else None,
        redoc_url=None,
    )
    app.include_router(health_router)
    app.include_router(internal_discount_keys_router)
    app.include_router(internal_accounts_router)
    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "boutique.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_env == "dev",
    )


if __name__ == "__main__":
    run()
