# cartledger/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime


class ItemIn(BaseModel):
    """Body for adding a product to the cart."""

    product_id: int = Field(..., description="Product id")
    #no bounds here, non-positive values are answered by the core with InvalidQuantity
    quantity: int = Field(1, description="Units to add")


class ProductOut(BaseModel):
    """Catalog entry as seen by the cart."""

    id: int
    name: str
    price: Decimal
    img_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CartLineOut(BaseModel):
    """Raw cart line (owner, product, quantity)."""

    owner_key: str
    product_id: int
    quantity: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LineItemOut(BaseModel):
    """Cart line joined with the live product price."""

    product_id: int
    name: str
    img_url: str | None = None
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class DanglingLineOut(BaseModel):
    """Cart line whose product is gone from the catalog."""

    product_id: int
    quantity: int
    kind: str = "DanglingProductReference"


class CartSummaryOut(BaseModel):
    owner_key: str
    items: List[LineItemOut]
    dangling: List[DanglingLineOut] = []
    item_count: int
    grand_total: Decimal


class CartTotalsOut(BaseModel):
    item_count: int
    grand_total: Decimal


class OrderLineOut(BaseModel):
    id: int
    batch_id: str
    owner_key: str
    product_id: int
    quantity: int
    price_at_purchase: Decimal
    purchased_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CheckoutOut(BaseModel):
    """Receipt of a committed checkout."""

    batch_id: str
    owner_key: str
    purchased_at: datetime
    lines: List[OrderLineOut]
    total: Decimal


class OkOut(BaseModel):
    ok: bool = True
