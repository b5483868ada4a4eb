# cartledger/api/deps.py
from fastapi import HTTPException
from sqlalchemy.orm import Session

from cartledger.domain.result import Err, ErrorKind
from cartledger.services.product_catalog import get_catalog
from cartledger.services.cart_service import CartService
from cartledger.services.cart_aggregator import CartAggregator
from cartledger.services.checkout_service import CheckoutService

_STATUS = {
    ErrorKind.INVALID_QUANTITY: 422,
    ErrorKind.UNKNOWN_PRODUCT: 404,
    ErrorKind.EMPTY_CART: 409,
    ErrorKind.DANGLING_PRODUCT_REFERENCE: 409,
    ErrorKind.STORAGE_FAILURE: 503,
}


def raise_for_error(result: Err):
    raise HTTPException(status_code=_STATUS[result.kind], detail=result.error.as_detail())


def get_cart_service(db: Session) -> CartService:
    return CartService(db=db, catalog=get_catalog(db))


def get_aggregator(db: Session) -> CartAggregator:
    return CartAggregator(db=db, catalog=get_catalog(db))


def get_checkout_service(db: Session) -> CheckoutService:
    return CheckoutService(db=db, catalog=get_catalog(db))
