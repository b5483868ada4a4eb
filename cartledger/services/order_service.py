# cartledger/services/order_service.py
from typing import List

from sqlalchemy.orm import Session

from cartledger.domain.schemas import OrderLineOut
from cartledger.repos.order_repo import OrderRepo


class OrderService:
    """
    Read side of the order history. Order lines are written only by CheckoutService.
    """

    def __init__(self, db: Session):
        self.repo = OrderRepo(db)

    def list_orders(self, owner_key: str) -> List[OrderLineOut]:
        return [OrderLineOut.model_validate(o) for o in self.repo.list_for_owner(owner_key)]

    def get_batch(self, owner_key: str, batch_id: str) -> List[OrderLineOut]:
        lines = self.repo.list_batch(batch_id)
        if lines and lines[0].owner_key != owner_key:
            raise PermissionError("No access to this order")
        return [OrderLineOut.model_validate(o) for o in lines]
