"""OrderDesk FastAPI application.

Serves the customer storefront API (menu, checkout, order tracking) and the
operator dashboard API. Commands are processed synchronously inside each
request, and committed order events fan out to live WebSocket views through
the in-process change feed.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from orderdesk.api import install
from orderdesk.domain import orderdesk
from orderdesk.feed.change_feed import change_feed
from orderdesk.notifications.dispatch import dispatcher
from orderdesk.utils.logging import get_logger

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied ("test", "production").
# Event processing stays "sync" in every overlay: the change feed is
# in-process and must see every commit.
orderdesk.init()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("OrderDesk API starting", domain=orderdesk.name)
    yield
    # Let queued confirmations finish before the process goes away
    dispatcher.shutdown()
    change_feed.reset()
    logger.info("OrderDesk API stopped")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="OrderDesk API",
    description="Restaurant ordering: checkout, live order tracking and the operator dashboard",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": orderdesk.name,
            "live_subscribers": change_feed.subscriber_count(),
        }
    )
