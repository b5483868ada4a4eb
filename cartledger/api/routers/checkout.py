# cartledger/api/routers/checkout.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cartledger.api.deps import get_checkout_service, raise_for_error
from cartledger.api.identity import resolve_owner_key
from cartledger.data.database import get_db
from cartledger.domain.schemas import CheckoutOut

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutOut, status_code=201)
def commit_checkout(
    owner_key: str = Depends(resolve_owner_key),
    db: Session = Depends(get_db),
):
    """
    Converts the whole cart into order lines and clears it.
    """
    result = get_checkout_service(db).commit_checkout(owner_key)
    if not result.ok:
        raise_for_error(result)
    return result.value
