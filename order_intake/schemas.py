# order_intake/schemas.py

import math
from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator

from order_intake.models import Orders, OrderStatus


class CustomerInfo(BaseModel):
    name: str = Field(..., examples=["Asha Rao"])
    email: EmailStr = Field(..., examples=["asha@example.com"])
    phone: str = Field(..., pattern=r"^[0-9]{10}$", examples=["9876543210"])
    address: str = Field(..., examples=["12 MG Road"])
    pincode: str = Field(..., examples=["560001"])
    city: str = Field(..., examples=["Bengaluru"])


class ProductLine(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # Clients send productId; stored records use product_id
    product_id: str | int | float = Field(
        ..., validation_alias=AliasChoices("productId", "product_id"), examples=["p1"]
    )
    name: str = Field(..., min_length=1, examples=["Brake Pad"])
    price: float = Field(..., ge=0, allow_inf_nan=False, examples=[100])
    quantity: int = Field(..., ge=1, examples=[1])
    image: str | None = None

    @field_validator("product_id", mode="before")
    @classmethod
    def check_product_id(cls, value):
        if value is None or isinstance(value, (bool, dict, list)):
            raise ValueError("productId must be a string or a number")
        if isinstance(value, str) and not value.strip():
            raise ValueError("productId must not be empty")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("productId must be a finite number")
        return value


class OrderDraft(BaseModel):
    """Validated submission that has not been stored yet."""

    customer_info: CustomerInfo
    products: list[ProductLine] = Field(..., min_length=1)
    total_amount: float = Field(..., ge=0)


class OrderOutput(BaseModel):
    order_id: int
    customer_info: CustomerInfo
    products: list[ProductLine]
    total_amount: float
    payment_screenshot: str
    status: OrderStatus
    order_date: datetime
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, order: Orders) -> "OrderOutput":
        return cls(
            order_id=order.order_id,
            customer_info=CustomerInfo(
                name=order.customer_name,
                email=order.customer_email,
                phone=order.customer_phone,
                address=order.customer_address,
                pincode=order.customer_pincode,
                city=order.customer_city,
            ),
            products=[ProductLine.model_validate(line) for line in order.products],
            total_amount=order.total_amount,
            payment_screenshot=order.payment_screenshot,
            status=order.status,
            order_date=order.order_date,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderCreatedResponse(BaseModel):
    success: bool = True
    order: OrderOutput


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderOutput]
