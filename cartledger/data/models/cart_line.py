#cartledger/data/models/cart_line.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint, CheckConstraint

from cartledger.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartLineModel(Base):
    __tablename__ = "cart_lines"

    id = Column(Integer, primary_key=True)
    owner_key = Column(String, nullable=False, index=True)
    #no FK to products, a line may outlive its catalog entry
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    __table_args__ = (
        UniqueConstraint("owner_key", "product_id", name="u_cart_owner_product"),
        CheckConstraint("quantity >= 0", name="ck_cart_quantity_non_negative"),
    )
