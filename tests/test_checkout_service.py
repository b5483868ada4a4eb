from decimal import Decimal

from sqlalchemy.exc import OperationalError

from cartledger.domain.result import ErrorKind
from cartledger.repos.cart_repo import CartRepo
from cartledger.repos.order_repo import OrderRepo
from cartledger.repos.product_repo import ProductRepo
from cartledger.services.checkout_service import CheckoutService
from cartledger.services.notification_service import NotificationService
from cartledger.services import product_catalog
from cartledger.services.product_catalog import DbProductCatalog, HttpProductCatalog
from tests.conftest import PRODUCT_A, PRODUCT_B, FakeResponse

OWNER = "owner-1"


def _fill_cart(cart_service):
    assert cart_service.add_or_merge(OWNER, PRODUCT_A, 2).ok
    assert cart_service.add_or_merge(OWNER, PRODUCT_B, 1).ok


def test_checkout_converts_whole_cart(cart_service, checkout_service, read_cart, read_orders):
    _fill_cart(cart_service)

    result = checkout_service.commit_checkout(OWNER)

    assert result.ok
    orders = read_orders(OWNER)
    assert sorted((p, q, price) for p, q, price, _, _ in orders) == [
        (PRODUCT_A, 2, Decimal("10.00")),
        (PRODUCT_B, 1, Decimal("5.00")),
    ]
    # one timestamp and one batch for the whole checkout
    assert len({purchased_at for *_, purchased_at, _ in orders}) == 1
    assert {batch_id for *_, batch_id in orders} == {result.value.batch_id}
    assert read_cart(OWNER) == {}


def test_checkout_receipt(cart_service, checkout_service):
    _fill_cart(cart_service)

    receipt = checkout_service.commit_checkout(OWNER).value

    assert receipt.owner_key == OWNER
    assert receipt.total == Decimal("25.00")
    assert len(receipt.lines) == 2
    assert all(line.purchased_at == receipt.purchased_at for line in receipt.lines)


def test_empty_checkout_is_rejected(checkout_service, read_orders):
    result = checkout_service.commit_checkout(OWNER)

    assert not result.ok
    assert result.kind is ErrorKind.EMPTY_CART
    assert read_orders(OWNER) == []


def test_second_checkout_sees_empty_cart(cart_service, checkout_service, read_orders):
    _fill_cart(cart_service)

    assert checkout_service.commit_checkout(OWNER).ok
    assert checkout_service.commit_checkout(OWNER).kind is ErrorKind.EMPTY_CART
    assert len(read_orders(OWNER)) == 2


def test_checkout_leaves_other_owners_alone(cart_service, checkout_service, read_cart):
    _fill_cart(cart_service)
    cart_service.add_or_merge("owner-2", PRODUCT_A, 4)

    assert checkout_service.commit_checkout(OWNER).ok
    assert read_cart("owner-2") == {PRODUCT_A: 4}


def test_price_is_frozen_at_checkout(cart_service, checkout_service, session_factory, read_orders):
    _fill_cart(cart_service)
    assert checkout_service.commit_checkout(OWNER).ok

    with session_factory() as session:
        ProductRepo(session).update_price(PRODUCT_A, Decimal("99.00"))

    prices = {p: price for p, _, price, _, _ in read_orders(OWNER)}
    assert prices[PRODUCT_A] == Decimal("10.00")


def test_fault_midway_rolls_everything_back(cart_service, checkout_service, read_cart, read_orders, monkeypatch):
    _fill_cart(cart_service)
    original = OrderRepo.add_order_line
    calls = []

    def flaky_add(self, line):
        calls.append(line.product_id)
        if len(calls) == 2:
            raise OperationalError("INSERT INTO order_lines", {}, Exception("disk I/O error"))
        return original(self, line)

    monkeypatch.setattr(OrderRepo, "add_order_line", flaky_add)

    result = checkout_service.commit_checkout(OWNER)

    assert result.kind is ErrorKind.STORAGE_FAILURE
    assert len(calls) == 2
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}


def test_fault_while_clearing_cart_rolls_back(cart_service, checkout_service, read_cart, read_orders, monkeypatch):
    _fill_cart(cart_service)

    def broken_delete(self, owner_key, line_ids):
        raise OperationalError("DELETE FROM cart_lines", {}, Exception("deadlock detected"))

    monkeypatch.setattr(CartRepo, "delete_lines", broken_delete)

    assert checkout_service.commit_checkout(OWNER).kind is ErrorKind.STORAGE_FAILURE
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}


def test_partial_clear_is_treated_as_failure(cart_service, checkout_service, read_cart, read_orders, monkeypatch):
    _fill_cart(cart_service)
    original = CartRepo.delete_lines

    def short_delete(self, owner_key, line_ids):
        return original(self, owner_key, list(line_ids)[:1])

    monkeypatch.setattr(CartRepo, "delete_lines", short_delete)

    assert checkout_service.commit_checkout(OWNER).kind is ErrorKind.STORAGE_FAILURE
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}


def test_checkout_with_dangling_product_writes_nothing(cart_service, checkout_service, session_factory, read_cart, read_orders):
    _fill_cart(cart_service)
    with session_factory() as session:
        ProductRepo(session).delete_product(PRODUCT_B)

    result = checkout_service.commit_checkout(OWNER)

    assert result.kind is ErrorKind.DANGLING_PRODUCT_REFERENCE
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}


class RecordingNotifications(NotificationService):
    def __init__(self):
        self.sent = []

    def send_checkout_notification(self, owner_key, batch_id, line_count, total):
        self.sent.append((owner_key, batch_id, line_count, total))


class BrokenNotifications(NotificationService):
    def send_checkout_notification(self, owner_key, batch_id, line_count, total):
        raise ConnectionError("broker unreachable")


def test_notification_sent_after_commit(cart_service, db):
    _fill_cart(cart_service)
    notifications = RecordingNotifications()
    service = CheckoutService(db, DbProductCatalog(db), notification_service=notifications)

    receipt = service.commit_checkout(OWNER).value

    assert notifications.sent == [(OWNER, receipt.batch_id, 2, Decimal("25.00"))]


def test_no_notification_for_failed_checkout(db):
    notifications = RecordingNotifications()
    service = CheckoutService(db, DbProductCatalog(db), notification_service=notifications)

    assert not service.commit_checkout(OWNER).ok
    assert notifications.sent == []


def test_notification_failure_does_not_undo_checkout(cart_service, db, read_cart, read_orders):
    _fill_cart(cart_service)
    service = CheckoutService(db, DbProductCatalog(db), notification_service=BrokenNotifications())

    assert service.commit_checkout(OWNER).ok
    assert read_cart(OWNER) == {}
    assert len(read_orders(OWNER)) == 2


def test_notification_task_runs_eagerly():
    from cartledger.services.notification_service import send_checkout_notification_task

    result = send_checkout_notification_task.delay(OWNER, "abc123", 2, "25.00")

    assert result.get() == {"owner_key": OWNER, "batch_id": "abc123", "status": "sent"}


def test_malformed_catalog_answer_rolls_back(cart_service, db, read_cart, read_orders, monkeypatch):
    _fill_cart(cart_service)
    bad_body = FakeResponse(200, body_error=ValueError("Expecting value: line 1 column 1 (char 0)"))
    monkeypatch.setattr(product_catalog.requests, "get", lambda url, timeout: bad_body)
    service = CheckoutService(db, HttpProductCatalog(base_url="http://catalog"))

    result = service.commit_checkout(OWNER)

    assert result.kind is ErrorKind.STORAGE_FAILURE
    # rolled back, no row locks left behind
    assert not db.in_transaction()
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}


def test_incomplete_catalog_answer_rolls_back(cart_service, db, read_cart, read_orders, monkeypatch):
    _fill_cart(cart_service)
    monkeypatch.setattr(
        product_catalog.requests,
        "get",
        lambda url, timeout: FakeResponse(200, {"id": 1, "name": "Product A"}),
    )
    service = CheckoutService(db, HttpProductCatalog(base_url="http://catalog"))

    assert service.commit_checkout(OWNER).kind is ErrorKind.STORAGE_FAILURE
    assert not db.in_transaction()
    assert read_orders(OWNER) == []
    assert read_cart(OWNER) == {PRODUCT_A: 2, PRODUCT_B: 1}
