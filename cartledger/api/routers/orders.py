# cartledger/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cartledger.api.identity import resolve_owner_key
from cartledger.data.database import get_db
from cartledger.domain.schemas import OrderLineOut
from cartledger.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("", response_model=List[OrderLineOut])
def list_orders(
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    """
    Order history of the owner, newest first.
    """
    return OrderService(db).list_orders(owner_key)


@router.get("/{batch_id}", response_model=List[OrderLineOut])
def get_order_batch(
    batch_id: str,
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    svc = OrderService(db)
    try:
        lines = svc.get_batch(owner_key, batch_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    if not lines:
        raise HTTPException(status_code=404, detail="Order not found")
    return lines
