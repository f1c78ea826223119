"""
Validated snapshot types.

Raw storefront records are loosely typed (camelCase or snake_case keys,
numbers as strings, optional fields). They are validated here once, at the
ingress boundary; everything downstream works only with these models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .parsers import TimestampParser, normalize_id, normalize_label, parse_amount, parse_stock
from .quality import DataQualityReport

ORDER_STATUSES = frozenset({"pending", "processing", "shipped", "completed", "cancelled"})
PAYMENT_STATUSES = frozenset({"pending", "paid", "refunded"})

_timestamps = TimestampParser()


def _required_id(value: Any) -> str:
    normalized = normalize_id(value)
    if not normalized:
        raise ValueError("missing or invalid id")
    return normalized


def _non_negative(value: Any) -> float:
    number = parse_amount(value)
    if number is None or number < 0:
        return 0.0
    return number


class OrderItem(BaseModel):
    """A line item with the product name and price captured at checkout."""

    model_config = ConfigDict(frozen=True)

    product_id: str | None = Field(
        default=None, validation_alias=AliasChoices("product_id", "productId", "id")
    )
    product_name: str | None = Field(
        default=None, validation_alias=AliasChoices("product_name", "productName", "name")
    )
    quantity: float = 0.0
    unit_price: float = Field(
        default=0.0, validation_alias=AliasChoices("unit_price", "unitPrice", "price")
    )

    @field_validator("product_id", mode="before")
    @classmethod
    def _product_id(cls, value):
        return normalize_id(value)

    @field_validator("product_name", mode="before")
    @classmethod
    def _product_name(cls, value):
        return normalize_label(value)

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def _numbers(cls, value):
        return _non_negative(value)


class Order(BaseModel):
    """
    An order as seen by the reporting engine.

    ``created_at`` is None when the raw value could not be parsed; such
    orders stay in the snapshot (raw listings still show them) but never
    count towards revenue. A non-numeric ``total`` is read as 0.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    status: str = ""
    payment_status: str = Field(
        default="", validation_alias=AliasChoices("payment_status", "paymentStatus")
    )
    total: float = 0.0
    items: list[OrderItem] = Field(
        default_factory=list, validation_alias=AliasChoices("items", "order_items", "orderItems")
    )
    customer_name: str | None = Field(
        default=None, validation_alias=AliasChoices("customer_name", "customerName")
    )

    @model_validator(mode="before")
    @classmethod
    def _lift_customer_name(cls, data):
        # Exports nest the buyer as {"customer": {...}} or {"customer_details": {...}}
        if isinstance(data, dict) and not data.get("customer_name") and not data.get("customerName"):
            for key in ("customer", "customer_details", "customerDetails"):
                nested = data.get(key)
                if isinstance(nested, dict) and nested.get("name"):
                    return {**data, "customer_name": nested["name"]}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return _required_id(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _created_at(cls, value):
        return _timestamps.parse(value)

    @field_validator("status", "payment_status", mode="before")
    @classmethod
    def _status(cls, value):
        if not isinstance(value, str):
            return ""
        return value.strip().lower()

    @field_validator("total", mode="before")
    @classmethod
    def _total(cls, value):
        number = parse_amount(value)
        return 0.0 if number is None else number

    @field_validator("items", mode="before")
    @classmethod
    def _items(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, OrderItem))]

    @field_validator("customer_name", mode="before")
    @classmethod
    def _customer_name(cls, value):
        return normalize_label(value)


class Product(BaseModel):
    """A catalog product. Negative stock is kept and reads as out of stock."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    stock: int
    category_id: str | None = Field(
        default=None, validation_alias=AliasChoices("category_id", "categoryId")
    )

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return _required_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value):
        return normalize_label(value) or ""

    @field_validator("stock", mode="before")
    @classmethod
    def _stock(cls, value):
        stock = parse_stock(value)
        if stock is None:
            raise ValueError(f"stock is not an integer: {value!r}")
        return stock

    @field_validator("category_id", mode="before")
    @classmethod
    def _category_id(cls, value):
        return normalize_id(value) or None


class Category(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value):
        return _required_id(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value):
        return normalize_label(value) or ""


@dataclass(frozen=True)
class Snapshot:
    """One immutable, validated view of the commerce data."""

    orders: list[Order]
    products: list[Product]
    categories: list[Category]
    fetched_at: datetime
    version: int = 0
    quality_reports: dict[str, DataQualityReport] = field(default_factory=dict)

    def product_names(self) -> dict[str, str]:
        """Product id -> non-empty product name."""
        return {p.id: p.name for p in self.products if p.name}

    def category_names(self) -> dict[str, str]:
        return {c.id: c.name for c in self.categories if c.name}
