# cartledger/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from cartledger.data.database import SessionLocal
from cartledger.data.models.product import ProductModel
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Keyboard", "price": Decimal("199.99"), "img_url": "/img/keyboard.png"},
    {"name": "MSI Laptop", "price": Decimal("4899.00"), "img_url": "/img/msi.png"},
    {"name": "Mouse", "price": Decimal("49.50"), "img_url": "/img/mouse.png"},
    {"name": "Monitor", "price": Decimal("899.00"), "img_url": "/img/monitor.png"},
]


def seed(db: Session | None = None) -> int:
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            db.rollback()
            return 0
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products")
        return len(PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
