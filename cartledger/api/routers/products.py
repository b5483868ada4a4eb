# cartledger/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from cartledger.data.database import get_db
from cartledger.domain.schemas import ProductOut
from cartledger.services.product_catalog import get_catalog, CatalogUnavailable

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    try:
        return get_catalog(db).list_products()
    except CatalogUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        product = get_catalog(db).get_product(product_id)
    except CatalogUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
