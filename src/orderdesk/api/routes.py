"""FastAPI routes for OrderDesk: menu, checkout, tracking and the dashboard."""

import asyncio
from collections.abc import Callable

import structlog
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from orderdesk.access.gate import get_gate
from orderdesk.api.schemas import (
    CheckoutRequest,
    LoginRequest,
    MenuItemResponse,
    OrderResponse,
    SessionResponse,
    StatusesResponse,
    StatusOption,
    StatusResponse,
    UpdateStatusRequest,
)
from orderdesk.cart.cart import Cart
from orderdesk.cart.checkout import checkout
from orderdesk.catalogue.menu import get_menu_item, list_menu
from orderdesk.domain import orderdesk
from orderdesk.errors import PersistenceFailure
from orderdesk.feed.bridge import AsyncQueueSubscriber
from orderdesk.feed.change_feed import change_feed
from orderdesk.order.status import STATUS_LABELS, OrderStatus, allowed_targets, is_terminal
from orderdesk.order.store import order_store
from orderdesk.utils.logging import bind_order_context, clear_context
from orderdesk.utils.settings import setting
from orderdesk.views.fleet import FleetView
from orderdesk.views.session import NOT_FOUND_MESSAGE, OrderSessionView

logger = structlog.get_logger(__name__)

# WebSocket close codes
WS_POLICY_VIOLATION = 1008
WS_INTERNAL_ERROR = 1011


def require_operator(x_operator_token: str = Header(default="")) -> str:
    if not get_gate().is_active(x_operator_token):
        raise HTTPException(status_code=401, detail="Operator sign-in required")
    return x_operator_token


async def _stream(websocket: WebSocket, subscriber: AsyncQueueSubscriber, close: Callable[[], None], shape):
    """Forward queued view changes to the socket until the client goes away."""

    async def sender():
        while True:
            item = await subscriber.get()
            await websocket.send_json(jsonable_encoder(shape(item)))

    task = asyncio.create_task(sender())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Live socket closed", path=websocket.url.path)
    finally:
        task.cancel()
        close()
        clear_context()


# ---------------------------------------------------------------------------
# Menu Router
# ---------------------------------------------------------------------------
menu_router = APIRouter(prefix="/menu", tags=["menu"])


@menu_router.get("", response_model=list[MenuItemResponse])
async def get_menu() -> list[MenuItemResponse]:
    return [MenuItemResponse(**item.to_dict()) for item in list_menu()]


@menu_router.get("/{item_id}", response_model=MenuItemResponse)
async def get_menu_entry(item_id: int) -> MenuItemResponse:
    item = get_menu_item(item_id)
    if item is None:
        raise HTTPException(status_code=404, detail="Menu item not found")
    return MenuItemResponse(**item.to_dict())


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: CheckoutRequest) -> OrderResponse:
    """Check out a cart built from the submitted lines.

    Names and prices come from the catalogue, never from the client.
    """
    cart = Cart.start()
    for line in body.lines:
        item = get_menu_item(line.item_id)
        if item is None:
            raise ValidationError({"lines": [f"Unknown menu item {line.item_id}"]})
        cart.add_item(item)
        cart.set_quantity(item.id, cart.line_for(item.id).quantity + line.quantity - 1)

    order = checkout(
        cart,
        order_store,
        customer={
            "name": body.customer_name,
            "email": body.customer_email,
            "phone": body.customer_phone,
            "address": body.delivery_address,
            "notes": body.notes,
        },
        payment_method=body.payment_method,
        order_id=body.order_id,
    )
    return OrderResponse(**order)


@order_router.get("/lookup/{order_number}", response_model=OrderResponse)
async def lookup_order(order_number: str) -> OrderResponse:
    order = order_store.find_by_order_number(order_number.strip())
    if order is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return OrderResponse(**order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = order_store.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return OrderResponse(**order)


@order_router.websocket("/{order_id}/live")
async def track_order_live(websocket: WebSocket, order_id: str):
    """Stream the tracked order: its snapshot first, then every change."""
    await websocket.accept()
    bind_order_context(order_id)
    subscriber = AsyncQueueSubscriber()
    view = OrderSessionView(order_store, change_feed, on_change=subscriber)

    try:
        with orderdesk.domain_context():
            snapshot = view.track(order_id)
    except PersistenceFailure as exc:
        await websocket.send_json({"type": "error", "detail": exc.message, "retryable": exc.retryable})
        await websocket.close(code=WS_INTERNAL_ERROR)
        clear_context()
        return
    if snapshot is None:
        await websocket.send_json({"type": "error", "detail": view.error})
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    await _stream(websocket, subscriber, view.close, lambda order: {"type": "order", "order": order})


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.post("/session", status_code=201, response_model=SessionResponse)
async def sign_in(body: LoginRequest) -> SessionResponse:
    token = get_gate().login(body.username, body.password)
    if token is None:
        raise HTTPException(status_code=401, detail="Invalid username or password")
    return SessionResponse(token=token)


@admin_router.delete("/session", response_model=StatusResponse)
async def sign_out(token: str = Depends(require_operator)) -> StatusResponse:
    get_gate().logout(token)
    return StatusResponse(status="signed_out")


@admin_router.get("/orders", response_model=list[OrderResponse], dependencies=[Depends(require_operator)])
async def list_orders() -> list[OrderResponse]:
    return [OrderResponse(**order) for order in order_store.list_all()]


@admin_router.get("/orders/{order_id}", response_model=OrderResponse, dependencies=[Depends(require_operator)])
async def get_admin_order(order_id: str) -> OrderResponse:
    order = order_store.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return OrderResponse(**order)


@admin_router.put(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(require_operator)],
)
async def update_order_status(order_id: str, body: UpdateStatusRequest) -> OrderResponse:
    bind_order_context(order_id, requested_status=body.status)
    return OrderResponse(**order_store.update_status(order_id, body.status))


@admin_router.get("/statuses", response_model=StatusesResponse, dependencies=[Depends(require_operator)])
async def list_statuses() -> StatusesResponse:
    strict = bool(setting("strict_transitions"))
    return StatusesResponse(
        strict=strict,
        statuses=[
            StatusOption(
                value=status.value,
                label=STATUS_LABELS[status],
                terminal=is_terminal(status),
                next_statuses=[target.value for target in allowed_targets(status, strict=strict)],
            )
            for status in OrderStatus
        ],
    )


@admin_router.websocket("/orders/live")
async def fleet_live(websocket: WebSocket, token: str = ""):
    """Stream the fleet: a full snapshot first, then created/updated rows."""
    await websocket.accept()
    if not get_gate().is_active(token):
        await websocket.send_json({"type": "error", "detail": "Operator sign-in required"})
        await websocket.close(code=WS_POLICY_VIOLATION)
        return

    subscriber = AsyncQueueSubscriber()
    view = FleetView(order_store, change_feed, on_change=subscriber)
    try:
        with orderdesk.domain_context():
            view.open()
    except PersistenceFailure as exc:
        await websocket.send_json({"type": "error", "detail": exc.message, "retryable": exc.retryable})
        await websocket.close(code=WS_INTERNAL_ERROR)
        return

    await _stream(websocket, subscriber, view.close, lambda change: change)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.messages})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError):
        return JSONResponse(status_code=404, content={"detail": NOT_FOUND_MESSAGE})

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
        return JSONResponse(status_code=503, content={"detail": exc.message, "retryable": exc.retryable})


def install(app: FastAPI) -> None:
    """Mount the routers, the error mapping and the domain context on ``app``."""

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with orderdesk.domain_context():
            response = await call_next(request)
        return response

    app.include_router(menu_router)
    app.include_router(order_router)
    app.include_router(admin_router)
    register_exception_handlers(app)
