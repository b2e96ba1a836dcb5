# storefront/api/__init__.py
from fastapi import FastAPI
from storefront.api.routers import auth, carts, catalog, health, orders, users


def create_app(lifespan=None) -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(auth.router)
    app.include_router(catalog.router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app
