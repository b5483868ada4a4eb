# cartledger/services/checkout_service.py
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cartledger.data.models.order_line import OrderLineModel
from cartledger.domain.result import Ok, Result, ErrorKind, err
from cartledger.domain.schemas import CheckoutOut, OrderLineOut
from cartledger.repos.cart_repo import CartRepo
from cartledger.repos.order_repo import OrderRepo
from cartledger.services.notification_service import NotificationService
from cartledger.services.product_catalog import ProductCatalog, CatalogUnavailable
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Turns the whole cart of an owner into order lines, all or nothing.

    1. lock every cart line of the owner (FOR UPDATE / BEGIN IMMEDIATE)
    2. empty cart -> EmptyCart, nothing written
    3. one order line per cart line, price resolved now, one purchased_at for the batch
    4. delete exactly the consumed cart lines
    5. commit - or roll back explicitly when any step returned an error

    Nothing is retried here, the caller decides whether to try again.
    """

    def __init__(
        self,
        db: Session,
        catalog: ProductCatalog,
        notification_service: NotificationService | None = None,
    ):
        self.cart_repo = CartRepo(db)
        self.order_repo = OrderRepo(db)
        self.catalog = catalog
        self.notification_service = notification_service or NotificationService()

    def commit_checkout(self, owner_key: str) -> Result[CheckoutOut]:
        outcome = self._write_order(owner_key)

        if not outcome.ok:
            self.cart_repo.rollback()
            logger.info(f"Checkout for {owner_key} rolled back: {outcome.kind.value}")
            return outcome

        try:
            self.cart_repo.commit()
        except SQLAlchemyError as e:
            logger.error(f"Commit of checkout for {owner_key} failed: {e}")
            self.cart_repo.rollback()
            return err(ErrorKind.STORAGE_FAILURE, "Checkout could not be committed")

        receipt = outcome.value
        logger.info(
            f"Checkout {receipt.batch_id} committed for {owner_key}: "
            f"{len(receipt.lines)} lines, total {receipt.total}"
        )
        self._notify(receipt)
        return outcome

    def _write_order(self, owner_key: str) -> Result[CheckoutOut]:
        try:
            lines = self.cart_repo.lock_lines(owner_key)

            if not lines:
                return err(ErrorKind.EMPTY_CART, "Cart is empty")

            prices = {}
            for line in lines:
                product = self.catalog.get_product(line.product_id)
                if product is None:
                    return err(
                        ErrorKind.DANGLING_PRODUCT_REFERENCE,
                        f"Product {line.product_id} is no longer available",
                    )
                prices[line.product_id] = product.price

            batch_id = uuid4().hex
            purchased_at = datetime.now(timezone.utc)

            written = [
                self.order_repo.add_order_line(
                    OrderLineModel(
                        batch_id=batch_id,
                        owner_key=owner_key,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        price_at_purchase=prices[line.product_id],
                        purchased_at=purchased_at,
                    )
                )
                for line in lines
            ]

            deleted = self.cart_repo.delete_lines(owner_key, [line.id for line in lines])
            if deleted != len(lines):
                return err(
                    ErrorKind.STORAGE_FAILURE,
                    f"Expected to clear {len(lines)} cart lines, cleared {deleted}",
                )

            receipt = CheckoutOut(
                batch_id=batch_id,
                owner_key=owner_key,
                purchased_at=purchased_at,
                lines=[OrderLineOut.model_validate(o) for o in written],
                total=sum(
                    (prices[line.product_id] * line.quantity for line in lines),
                    Decimal("0.00"),
                ),
            )
        except (SQLAlchemyError, CatalogUnavailable) as e:
            logger.error(f"Checkout for {owner_key} hit a storage fault: {e}")
            return err(ErrorKind.STORAGE_FAILURE, "Checkout could not be completed")

        return Ok(receipt)

    def _notify(self, receipt: CheckoutOut) -> None:
        # order is already committed, a broker outage must not turn it into a failure
        try:
            self.notification_service.send_checkout_notification(
                receipt.owner_key, receipt.batch_id, len(receipt.lines), receipt.total
            )
        except Exception as e:
            logger.warning(f"Checkout notification for {receipt.batch_id} not queued: {e}")
