# cartledger/services/cart_service.py
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cartledger.domain.result import Ok, Result, ErrorKind, err
from cartledger.domain.schemas import CartLineOut
from cartledger.repos.cart_repo import CartRepo
from cartledger.services.product_catalog import ProductCatalog, CatalogUnavailable
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


def _valid_quantity(quantity) -> bool:
    # bool is an int subclass, True is not "one unit"
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


class CartService:
    """
    Cart store for a single owner key:
    - add_or_merge: one row per (owner_key, product_id), adds merge into it
    - decrement_or_remove: takes one unit out, the last unit deletes the row
    - list_lines: read only

    Every command is one transaction. Concurrent writers are coordinated by the
    database (unique constraint + upsert, row locks), never in process.
    """

    def __init__(self, db: Session, catalog: ProductCatalog):
        self.repo = CartRepo(db)
        self.catalog = catalog

    #query
    def list_lines(self, owner_key: str) -> Result[List[CartLineOut]]:
        try:
            lines = self.repo.list_lines(owner_key)
            result = [CartLineOut.model_validate(line) for line in lines]
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Reading cart of {owner_key} failed: {e}")
            self.repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Could not read the cart")
        return Ok(result)

    #commands
    def add_or_merge(self, owner_key: str, product_id: int, quantity: int = 1) -> Result[None]:
        if not _valid_quantity(quantity):
            logger.info(f"Rejected add of {quantity!r} x product {product_id} for {owner_key}")
            return err(ErrorKind.INVALID_QUANTITY, "Quantity must be a positive integer")

        try:
            product = self.catalog.get_product(product_id)
        except (SQLAlchemyError, CatalogUnavailable) as e:
            logger.error(f"Product lookup for {product_id} failed: {e}")
            self.repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Product catalog unavailable")

        if product is None:
            logger.info(f"Rejected add of unknown product {product_id} for {owner_key}")
            self.repo.rollback()
            return err(ErrorKind.UNKNOWN_PRODUCT, f"Product {product_id} does not exist")

        try:
            self.repo.upsert_increment(owner_key, product_id, quantity)
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Add of product {product_id} for {owner_key} failed: {e}")
            self.repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Could not update the cart")

        logger.info(f"Merged {quantity} x product {product_id} into cart of {owner_key}")
        return Ok(None)

    def decrement_or_remove(self, owner_key: str, product_id: int) -> Result[None]:
        """
        Takes exactly one unit out of the line.

        Decrement and the sweep of an emptied row run in one transaction, so a
        zero-quantity row is never visible outside it. A missing line is a no-op.
        """
        try:
            decremented = self.repo.decrement(owner_key, product_id)
            removed = self.repo.delete_emptied(owner_key, product_id) if decremented else 0
            self.repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Remove of product {product_id} for {owner_key} failed: {e}")
            self.repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Could not update the cart")

        if not decremented:
            logger.info(f"Product {product_id} not in cart of {owner_key}, nothing to remove")
        elif removed:
            logger.info(f"Product {product_id} removed from cart of {owner_key}")
        else:
            logger.info(f"Product {product_id} decremented in cart of {owner_key}")
        return Ok(None)
