from sqlalchemy import Column, Integer, String, Numeric

from cartledger.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    img_url = Column(String, nullable=True)
