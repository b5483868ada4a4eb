from sqlalchemy import Column, Integer, String, DateTime, Numeric

from cartledger.data.database import Base


class OrderLineModel(Base):
    """Append only - nothing in the service updates or deletes these rows."""

    __tablename__ = "order_lines"

    id = Column(Integer, primary_key=True)
    batch_id = Column(String(32), nullable=False, index=True)
    owner_key = Column(String, nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Numeric(10, 2), nullable=False)
    purchased_at = Column(DateTime(timezone=True), nullable=False)
