"""FastAPI routes for carts and orders."""

import json

from fastapi import APIRouter, Body, Depends
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from food_ordering.api.dependencies import current_principal, pagination
from food_ordering.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CartResponse,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    PlaceOrderRequest,
    UpdateCartItemRequest,
    UpdateDeliveryInfoRequest,
    UpdateOrderDetailsRequest,
    UpdateStatusRequest,
)
from food_ordering.authorization import Action, Principal, policy
from food_ordering.cart.cart import Cart
from food_ordering.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from food_ordering.order.cancellation import CancelOrder
from food_ordering.order.creation import PlaceOrder
from food_ordering.order.delivery import UpdateDeliveryInfo
from food_ordering.order.modification import UpdateOrderDetails
from food_ordering.order.order import Order, PaymentMethod, parse_status
from food_ordering.order.statistics import stats_for_restaurant
from food_ordering.order.status import UpdateOrderStatus


def _actor(principal: Principal) -> dict:
    return {"actor_id": principal.id, "actor_role": principal.role.value}


def _cart_of(principal: Principal) -> CartResponse:
    cart = current_domain.repository_for(Cart).for_user(principal.id)
    if cart is None:
        raise ObjectNotFoundError({"cart": ["Cart not found"]})
    return CartResponse.from_cart(cart)


def _order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(current_domain.repository_for(Order).get(order_id))


def _status_filter(status: str | None) -> str | None:
    return parse_status(status).value if status else None


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    policy.enforce(principal, Action.MANAGE_CART)
    return _cart_of(principal)


@cart_router.post("/items", response_model=CartResponse)
async def add_to_cart(body: AddToCartRequest, principal: Principal = Depends(current_principal)) -> CartResponse:
    policy.enforce(principal, Action.MANAGE_CART)
    command = AddToCart(
        user_id=principal.id,
        menu_item_id=body.menu_item_id,
        name=body.name,
        price=body.price,
        quantity=body.quantity,
        restaurant_id=body.restaurant_id,
        restaurant_name=body.restaurant_name,
        image=body.image,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_of(principal)


@cart_router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    body: UpdateCartItemRequest,
    principal: Principal = Depends(current_principal),
) -> CartResponse:
    policy.enforce(principal, Action.MANAGE_CART)
    command = UpdateCartItem(
        user_id=principal.id,
        item_id=item_id,
        quantity=body.quantity,
        notes=body.notes,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_of(principal)


@cart_router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(item_id: str, principal: Principal = Depends(current_principal)) -> CartResponse:
    policy.enforce(principal, Action.MANAGE_CART)
    current_domain.process(RemoveFromCart(user_id=principal.id, item_id=item_id), asynchronous=False)
    return _cart_of(principal)


@cart_router.delete("", response_model=CartResponse)
async def clear_cart(principal: Principal = Depends(current_principal)) -> CartResponse:
    policy.enforce(principal, Action.MANAGE_CART)
    current_domain.process(ClearCart(user_id=principal.id), asynchronous=False)
    return _cart_of(principal)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)) -> OrderResponse:
    policy.enforce(principal, Action.PLACE_ORDER)
    command = PlaceOrder(
        user_id=principal.id,
        delivery_address=json.dumps(body.delivery_address.model_dump()),
        contact_phone=body.contact_phone,
        payment_method=body.payment_method or PaymentMethod.CASH_ON_DELIVERY.value,
        special_instructions=body.special_instructions,
    )
    order_id = current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.get("", response_model=OrderListResponse)
async def list_all_orders(
    status: str | None = None,
    restaurant_id: str | None = None,
    page: dict = Depends(pagination),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    policy.enforce(principal, Action.LIST_ALL_ORDERS)
    result = current_domain.repository_for(Order).search(
        status=_status_filter(status), restaurant_id=restaurant_id, **page
    )
    return OrderListResponse.from_page(result)


@order_router.get("/mine", response_model=OrderListResponse)
async def list_my_orders(
    status: str | None = None,
    page: dict = Depends(pagination),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    policy.enforce(principal, Action.LIST_OWN_ORDERS)
    result = current_domain.repository_for(Order).for_user(principal.id, status=_status_filter(status), **page)
    return OrderListResponse.from_page(result)


@order_router.get("/restaurant/{restaurant_id}", response_model=OrderListResponse)
async def list_restaurant_orders(
    restaurant_id: str,
    status: str | None = None,
    page: dict = Depends(pagination),
    principal: Principal = Depends(current_principal),
) -> OrderListResponse:
    policy.enforce(principal, Action.LIST_RESTAURANT_ORDERS)
    result = current_domain.repository_for(Order).for_restaurant(
        restaurant_id, status=_status_filter(status), **page
    )
    return OrderListResponse.from_page(result)


@order_router.get("/restaurant/{restaurant_id}/stats", response_model=OrderStatsResponse)
async def restaurant_order_stats(
    restaurant_id: str, principal: Principal = Depends(current_principal)
) -> OrderStatsResponse:
    policy.enforce(principal, Action.VIEW_RESTAURANT_STATS)
    return OrderStatsResponse(restaurant_id=restaurant_id, stats=stats_for_restaurant(restaurant_id))


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    policy.enforce(principal, Action.VIEW_ORDER, owner_id=order.user_id)
    return OrderResponse.from_order(order)


@order_router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    command = UpdateOrderStatus(
        order_id=order_id,
        status=body.status,
        estimated_delivery_time=body.estimated_delivery_time,
        **_actor(principal),
    )
    current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = Body(default=None),
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason if body else None,
        **_actor(principal),
    )
    current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.put("/{order_id}/details", response_model=OrderResponse)
async def update_order_details(
    order_id: str,
    body: UpdateOrderDetailsRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    command = UpdateOrderDetails(
        order_id=order_id,
        delivery_address=json.dumps(body.delivery_address.model_dump()) if body.delivery_address else None,
        contact_phone=body.contact_phone,
        special_instructions=body.special_instructions,
        **_actor(principal),
    )
    current_domain.process(command, asynchronous=False)
    return _order(order_id)


@order_router.put("/{order_id}/delivery", response_model=OrderResponse)
async def update_delivery_info(
    order_id: str,
    body: UpdateDeliveryInfoRequest,
    principal: Principal = Depends(current_principal),
) -> OrderResponse:
    command = UpdateDeliveryInfo(
        order_id=order_id,
        delivery_id=body.delivery_id,
        delivery_person_id=body.delivery_person_id,
        delivery_person_name=body.delivery_person_name,
        **_actor(principal),
    )
    current_domain.process(command, asynchronous=False)
    return _order(order_id)
