# cartledger/repos/cart_repo.py
from datetime import datetime, timezone
from typing import Iterable, List

from sqlalchemy import select, update, delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from cartledger.data.models.cart_line import CartLineModel

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CartRepo:
    """
    Storage primitives for cart_lines.
    Nothing here commits - the service decides where a transaction ends.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_line(self, owner_key: str, product_id: int, for_update: bool = False) -> CartLineModel | None:
        stmt = select(CartLineModel).where(
            CartLineModel.owner_key == owner_key,
            CartLineModel.product_id == product_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def list_lines(self, owner_key: str) -> List[CartLineModel]:
        #most recently touched first, id breaks ties
        stmt = (
            select(CartLineModel)
            .where(CartLineModel.owner_key == owner_key)
            .order_by(CartLineModel.updated_at.desc(), CartLineModel.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def lock_lines(self, owner_key: str) -> List[CartLineModel]:
        stmt = (
            select(CartLineModel)
            .where(CartLineModel.owner_key == owner_key)
            .order_by(CartLineModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def upsert_increment(self, owner_key: str, product_id: int, delta: int) -> None:
        """
        INSERT ... ON CONFLICT (owner_key, product_id) DO UPDATE SET quantity = quantity + delta

        The unique constraint decides between insert and merge, so two racing
        adds end up as one row holding both increments.
        """
        now = datetime.now(timezone.utc)
        insert = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)

        if insert is None:
            self._locked_increment(owner_key, product_id, delta, now)
            return

        stmt = insert(CartLineModel).values(
            owner_key=owner_key,
            product_id=product_id,
            quantity=delta,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["owner_key", "product_id"],
            set_={
                "quantity": CartLineModel.quantity + stmt.excluded.quantity,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self.db.execute(stmt)

    def _locked_increment(self, owner_key: str, product_id: int, delta: int, now: datetime) -> None:
        # dialects without upsert: row lock, then update-or-insert in the same transaction
        existing = self.get_line(owner_key, product_id, for_update=True)
        if existing:
            existing.quantity += delta
            existing.updated_at = now
        else:
            self.db.add(
                CartLineModel(
                    owner_key=owner_key,
                    product_id=product_id,
                    quantity=delta,
                    created_at=now,
                    updated_at=now,
                )
            )
        self.db.flush()

    def decrement(self, owner_key: str, product_id: int) -> int:
        stmt = (
            update(CartLineModel)
            .where(
                CartLineModel.owner_key == owner_key,
                CartLineModel.product_id == product_id,
                CartLineModel.quantity >= 1,
            )
            .values(
                quantity=CartLineModel.quantity - 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def delete_emptied(self, owner_key: str, product_id: int) -> int:
        stmt = (
            delete(CartLineModel)
            .where(
                CartLineModel.owner_key == owner_key,
                CartLineModel.product_id == product_id,
                CartLineModel.quantity <= 0,
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def delete_lines(self, owner_key: str, line_ids: Iterable[int]) -> int:
        ids = list(line_ids)
        if not ids:
            return 0
        stmt = (
            delete(CartLineModel)
            .where(
                CartLineModel.owner_key == owner_key,
                CartLineModel.id.in_(ids),
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
