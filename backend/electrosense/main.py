from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from electrosense.api.health import router as health_router
from electrosense.api.routes_admin import router as admin_router
from electrosense.api.routes_cart import router as cart_router
from electrosense.api.routes_catalogue import router as catalogue_router
from electrosense.api.routes_order import router as order_router
from electrosense.api.routes_users import router as users_router
from electrosense.config import settings
from electrosense.db import init_db
from electrosense.repositories.document_store import DocumentStore
from electrosense.services.subscriptions import SubscriptionHub
from electrosense.utils.logging import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db(reset=settings.RESET_DB)

    # poller behind the dashboard order feed
    hub = SubscriptionHub(DocumentStore())
    hub.start()
    app.state.subscriptions = hub
    log.info("ElectroSense backend started")

    try:
        yield
    finally:
        hub.shutdown()


app = FastAPI(title="ElectroSense - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router)

app.include_router(cart_router)

app.include_router(order_router)

app.include_router(users_router)

app.include_router(admin_router)


def run():
    uvicorn.run("electrosense.main:app", host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    run()
