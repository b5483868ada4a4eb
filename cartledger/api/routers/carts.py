#cartledger/api/routers/carts.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cartledger.api.deps import get_cart_service, get_aggregator, raise_for_error
from cartledger.api.identity import resolve_owner_key
from cartledger.data.database import get_db
from cartledger.domain.schemas import (
    ItemIn,
    OkOut,
    CartLineOut,
    CartSummaryOut,
    CartTotalsOut,
)

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartSummaryOut)
def get_cart(
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    result = get_aggregator(db).summarize(owner_key)
    if not result.ok:
        raise_for_error(result)
    return result.value


@router.get("/summary", response_model=CartTotalsOut)
def get_summary(
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    result = get_aggregator(db).summarize(owner_key)
    if not result.ok:
        raise_for_error(result)
    return CartTotalsOut(item_count=result.value.item_count, grand_total=result.value.grand_total)


@router.get("/lines", response_model=List[CartLineOut])
def list_lines(
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    result = get_cart_service(db).list_lines(owner_key)
    if not result.ok:
        raise_for_error(result)
    return result.value


@router.post("/items", response_model=OkOut)
def add_item(
    payload: ItemIn,
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    result = get_cart_service(db).add_or_merge(owner_key, payload.product_id, payload.quantity)
    if not result.ok:
        raise_for_error(result)
    return OkOut()


@router.post("/items/{product_id}/remove", response_model=OkOut)
def remove_item(
    product_id: int,
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    result = get_cart_service(db).decrement_or_remove(owner_key, product_id)
    if not result.ok:
        raise_for_error(result)
    return OkOut()
