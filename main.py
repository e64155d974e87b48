import os
from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

import models  # noqa: F401  register every table on Base.metadata
from core.config import settings
from core.db import Base, engine
from core.log import configure_logging
from routes.auth import router as auth_router
from routes.products import router as products_router
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.admin import router as admin_router
from routes.driver import router as driver_router
from routes.promotions import router as promotions_router
from routes.visits import router as visits_router
from routes.dashboard import router as dashboard_router

configure_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="B2B wholesale ordering: catalogue, cart, order review, delivery tracking and loyalty tiers.",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


def custom_openapi():
    """OpenAPI schema with a global bearer scheme so docs/redoc can send tokens."""
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )
    schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
    }
    schema["security"] = [{"BearerAuth": []}]
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = custom_openapi

# Ensure tables exist (for dev/test; in prod use Alembic)
Base.metadata.create_all(bind=engine)

for router in (
    auth_router,
    products_router,
    cart_router,
    orders_router,
    admin_router,
    driver_router,
    promotions_router,
    visits_router,
    dashboard_router,
):
    app.include_router(router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": settings.APP_NAME, "version": settings.APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=settings.DEBUG,
    )
