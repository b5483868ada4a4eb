# cartledger/services/cart_aggregator.py
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cartledger.domain.result import Ok, Result, ErrorKind, err
from cartledger.domain.schemas import CartSummaryOut, DanglingLineOut, LineItemOut
from cartledger.repos.cart_repo import CartRepo
from cartledger.services.product_catalog import ProductCatalog, CatalogUnavailable
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


class CartAggregator:
    """
    Read-only cart view priced with the *live* catalog price.

    A line whose product is gone from the catalog is neither dropped nor priced
    at zero: it is returned in ``dangling`` (kind DanglingProductReference) and
    left out of ``grand_total`` and ``item_count``.
    """

    def __init__(self, db: Session, catalog: ProductCatalog):
        self.repo = CartRepo(db)
        self.catalog = catalog

    def summarize(self, owner_key: str) -> Result[CartSummaryOut]:
        try:
            lines = self.repo.list_lines(owner_key)
            items = []
            dangling = []

            for line in lines:
                product = self.catalog.get_product(line.product_id)

                if product is None:
                    dangling.append(
                        DanglingLineOut(product_id=line.product_id, quantity=line.quantity)
                    )
                    continue

                items.append(
                    LineItemOut(
                        product_id=line.product_id,
                        name=product.name,
                        img_url=product.img_url,
                        unit_price=product.price,
                        quantity=line.quantity,
                        subtotal=product.price * line.quantity,
                    )
                )

            self.repo.commit()
        except (SQLAlchemyError, CatalogUnavailable) as e:
            logger.error(f"Summary of cart {owner_key} failed: {e}")
            self.repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Could not read the cart")

        if dangling:
            logger.warning(
                f"Cart of {owner_key} references missing products "
                f"{[d.product_id for d in dangling]}"
            )

        return Ok(
            CartSummaryOut(
                owner_key=owner_key,
                items=items,
                dangling=dangling,
                item_count=sum(i.quantity for i in items),
                grand_total=sum((i.subtotal for i in items), Decimal("0.00")),
            )
        )
