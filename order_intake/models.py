# order_intake/models.py

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class Orders(SQLModel, table=True):
    order_id: int|None = Field(default=None, primary_key=True)
    customer_name: str = Field(index=True, nullable=False)
    customer_email: str = Field(index=True, nullable=False)
    customer_phone: str = Field(nullable=False)
    customer_address: str = Field(nullable=False)
    customer_pincode: str = Field(nullable=False)
    customer_city: str = Field(nullable=False)
    # Ordered list of product line dicts, kept in submission order
    products: list[dict] = Field(sa_column=Column(JSON, nullable=False))
    total_amount: float = Field(nullable=False)
    payment_screenshot: str = Field(nullable=False)
    status: OrderStatus = Field(default=OrderStatus.PENDING, nullable=False)
    order_date: datetime = Field(default_factory=utcnow, index=True, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_column_kwargs={"onupdate": utcnow},
    )
