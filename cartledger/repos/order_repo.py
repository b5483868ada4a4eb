# cartledger/repos/order_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from cartledger.data.models.order_line import OrderLineModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order_line(self, line: OrderLineModel) -> OrderLineModel:
        #flush only, the checkout owns the commit
        self.db.add(line)
        self.db.flush()
        return line

    def list_for_owner(self, owner_key: str) -> List[OrderLineModel]:
        stmt = (
            select(OrderLineModel)
            .where(OrderLineModel.owner_key == owner_key)
            .order_by(OrderLineModel.purchased_at.desc(), OrderLineModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_batch(self, batch_id: str) -> List[OrderLineModel]:
        stmt = (
            select(OrderLineModel)
            .where(OrderLineModel.batch_id == batch_id)
            .order_by(OrderLineModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())
