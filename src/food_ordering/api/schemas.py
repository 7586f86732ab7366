"""Pydantic request/response schemas for the food ordering API.

These are external contracts, separate from the internal Protean commands.
Request bodies accept both snake_case and the camelCase names existing
clients send (``menuItemId``, ``zipCode``, ...).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RequestSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(RequestSchema):
    # Completeness is checked by the domain so the error names every part
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class LineItemResponse(BaseModel):
    id: str
    menu_item_id: str
    name: str
    price: float
    quantity: int
    image: str | None = None
    notes: str | None = None

    @classmethod
    def from_item(cls, item) -> "LineItemResponse":
        return cls(
            id=str(item.id),
            menu_item_id=str(item.menu_item_id),
            name=item.name,
            price=item.price,
            quantity=item.quantity,
            image=item.image,
            notes=item.notes,
        )


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(RequestSchema):
    menu_item_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1, default=1)
    restaurant_id: str
    restaurant_name: str
    image: str | None = None
    notes: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "menuItemId": "menu-001",
                    "name": "Margherita",
                    "price": 9.5,
                    "quantity": 2,
                    "restaurantId": "rest-001",
                    "restaurantName": "Luigi's",
                }
            ]
        },
    )


class UpdateCartItemRequest(RequestSchema):
    quantity: int = Field(ge=1)
    notes: str | None = None


class CartResponse(BaseModel):
    id: str
    user_id: str
    restaurant_id: str | None = None
    restaurant_name: str | None = None
    items: list[LineItemResponse]
    total: float
    updated_at: datetime | None = None

    @classmethod
    def from_cart(cls, cart) -> "CartResponse":
        return cls(
            id=str(cart.id),
            user_id=str(cart.user_id),
            restaurant_id=str(cart.restaurant_id) if cart.restaurant_id else None,
            restaurant_name=cart.restaurant_name,
            items=[LineItemResponse.from_item(item) for item in cart.items],
            total=cart.total,
            updated_at=cart.updated_at,
        )


# ---------------------------------------------------------------------------
# Order requests
# ---------------------------------------------------------------------------
class PlaceOrderRequest(RequestSchema):
    delivery_address: AddressSchema
    contact_phone: str | None = None
    payment_method: str | None = None
    special_instructions: str | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "deliveryAddress": {
                        "street": "1 Galle Road",
                        "city": "Colombo",
                        "state": "Western",
                        "zipCode": "00300",
                    },
                    "contactPhone": "+94771234567",
                    "paymentMethod": "cash_on_delivery",
                }
            ]
        },
    )


class UpdateStatusRequest(RequestSchema):
    status: str
    estimated_delivery_time: datetime | None = None


class CancelOrderRequest(RequestSchema):
    reason: str | None = None


class UpdateOrderDetailsRequest(RequestSchema):
    delivery_address: AddressSchema | None = None
    contact_phone: str | None = None
    special_instructions: str | None = None


class UpdateDeliveryInfoRequest(RequestSchema):
    delivery_id: str | None = None
    delivery_person_id: str | None = None
    delivery_person_name: str | None = None


# ---------------------------------------------------------------------------
# Order responses
# ---------------------------------------------------------------------------
class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    restaurant_id: str
    restaurant_name: str
    items: list[LineItemResponse]
    status: str
    total_amount: float
    delivery_address: dict | None = None
    contact_phone: str
    payment_method: str
    payment_status: str
    estimated_delivery_time: datetime | None = None
    special_instructions: str | None = None
    delivery_id: str | None = None
    delivery_person_id: str | None = None
    delivery_person_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            order_number=order.order_number,
            user_id=str(order.user_id),
            restaurant_id=str(order.restaurant_id),
            restaurant_name=order.restaurant_name,
            items=[LineItemResponse.from_item(item) for item in order.items],
            status=order.status,
            total_amount=order.total_amount,
            delivery_address=order.delivery_address.to_dict() if order.delivery_address else None,
            contact_phone=order.contact_phone,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            estimated_delivery_time=order.estimated_delivery_time,
            special_instructions=order.special_instructions,
            delivery_id=str(order.delivery_id) if order.delivery_id else None,
            delivery_person_id=str(order.delivery_person_id) if order.delivery_person_id else None,
            delivery_person_name=order.delivery_person_name,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class PaginationSchema(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationSchema

    @classmethod
    def from_page(cls, page) -> "OrderListResponse":
        return cls(
            orders=[OrderResponse.from_order(order) for order in page.orders],
            pagination=PaginationSchema(**page.pagination()),
        )


class OrderStatsResponse(BaseModel):
    restaurant_id: str
    stats: dict[str, int | float]
