#import all models so SQLAlchemy registers them in Base.metadata

from cartledger.data.models.product import ProductModel
from cartledger.data.models.cart_line import CartLineModel
from cartledger.data.models.order_line import OrderLineModel

__all__ = ["ProductModel", "CartLineModel", "OrderLineModel"]
