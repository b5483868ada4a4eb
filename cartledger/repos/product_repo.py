# cartledger/repos/product_repo.py
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from cartledger.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self) -> List[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.id)).scalars().all())

    def update_price(self, product_id: int, price: Decimal) -> ProductModel | None:
        product = self.get_product(product_id)
        if product:
            product.price = price
            self.db.commit()
            self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> bool:
        product = self.get_product(product_id)
        if not product:
            return False
        self.db.delete(product)
        self.db.commit()
        return True
