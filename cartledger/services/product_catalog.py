# cartledger/services/product_catalog.py
from decimal import Decimal, InvalidOperation
from typing import List, Protocol

import requests
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from cartledger.data.models.product import ProductModel
from cartledger.domain.schemas import ProductOut
from cartledger.repos.product_repo import ProductRepo
from cartledger.utils.retry import http_retry
from cartledger.utils.settings import PRODUCT_CATALOG, PRODUCT_SERVICE_URL
from cartledger.utils.logging import get_logger

logger = get_logger(__name__)


class CatalogUnavailable(Exception):
    """The catalog could not answer (transport error, 5xx)."""


class ProductCatalog(Protocol):
    """product_id -> product, or None when the catalog does not know it."""

    def get_product(self, product_id: int) -> ProductOut | None: ...

    def list_products(self) -> List[ProductOut]: ...


class DbProductCatalog:
    """Catalog living in the same database as the carts."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)

    def get_product(self, product_id: int) -> ProductOut | None:
        #populate_existing - always the price as stored now, never a cached one
        product = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if not product:
            return None
        return ProductOut.model_validate(product)

    def list_products(self) -> List[ProductOut]:
        return [ProductOut.model_validate(p) for p in self.repo.list_products()]


class HttpProductCatalog:
    """
    Catalog served by the external product-service.
    Transport errors and 5xx are retried (tenacity), 404 means the product does not exist.
    A body that does not parse as a product is reported as CatalogUnavailable.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def _get(self, path: str) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"ProductCatalog GET {url}")
        resp = requests.get(url, timeout=self.timeout)
        #5xx raises here so tenacity retries it like a transport error
        if resp.status_code >= 500:
            resp.raise_for_status()
        return resp

    @staticmethod
    def _parse(data: dict) -> ProductOut:
        return ProductOut.model_validate({**data, "price": Decimal(str(data["price"]))})

    def get_product(self, product_id: int) -> ProductOut | None:
        try:
            resp = self._get(f"/products/{product_id}")
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return self._parse(resp.json())
        except requests.RequestException as e:
            raise CatalogUnavailable(str(e)) from e
        except (ValueError, KeyError, TypeError, InvalidOperation, ValidationError) as e:
            raise CatalogUnavailable(f"Malformed product {product_id} from catalog: {e}") from e

    def list_products(self) -> List[ProductOut]:
        try:
            resp = self._get("/products")
            resp.raise_for_status()
            return [self._parse(p) for p in resp.json()]
        except requests.RequestException as e:
            raise CatalogUnavailable(str(e)) from e
        except (ValueError, KeyError, TypeError, InvalidOperation, ValidationError) as e:
            raise CatalogUnavailable(f"Malformed product list from catalog: {e}") from e


def get_catalog(db: Session) -> ProductCatalog:
    if PRODUCT_CATALOG == "http":
        return HttpProductCatalog()
    return DbProductCatalog(db)
