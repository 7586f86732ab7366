"""Food ordering FastAPI application.

Serves the cart and order endpoints. Commands are processed synchronously
inside the request; committed domain events are relayed to the order
exchange through the messaging runtime opened in the lifespan.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from food_ordering.domain import food_ordering
from food_ordering.messaging.runtime import build_messaging
from food_ordering.utils.logging import bind_context, clear_context, configure_logging

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV controls which config overlay is applied:
#   - "test"/"development" → memory stores, events relayed inside the request
#   - "production"         → PostgreSQL, Redis, events relayed via the Engine
configure_logging()
food_ordering.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    messaging = build_messaging(food_ordering)
    app.state.messaging = messaging
    with food_ordering.domain_context():
        messaging.open()
    yield
    messaging.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Food Ordering API",
    description="Carts, orders and order lifecycle for the food delivery platform",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the Protean domain context for each request and tag its log lines."""
    bind_context(method=request.method, path=request.url.path)
    try:
        with food_ordering.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from food_ordering.api import cart_router, order_router, register_error_handlers  # noqa: E402

app.include_router(cart_router, prefix="/api")
app.include_router(order_router, prefix="/api")
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health(request: Request):
    broker = request.app.state.messaging.health()
    return JSONResponse(
        status_code=200 if broker["connected"] else 503,
        content={
            "status": "ok" if broker["connected"] else "degraded",
            "service": food_ordering.name,
            "broker": broker,
        },
    )
