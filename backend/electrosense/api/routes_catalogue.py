from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from electrosense.api.deps import get_store
from electrosense.repositories.category_repo import CategoryRepository
from electrosense.repositories.document_store import DocumentStore
from electrosense.repositories.product_repo import ProductRepository
from electrosense.schemas.category_schema import CategoryRecord
from electrosense.schemas.product_schema import ProductRecord

router = APIRouter(prefix="/api", tags=["catalogue"])


@router.get("/products", response_model=List[ProductRecord], summary="Storefront product listing")
def list_products(
    category: Optional[str] = None,
    q: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    return ProductRepository(store).list(category=category, search=q, in_stock_only=True)


@router.get("/products/{product_id}", response_model=ProductRecord, summary="Product detail")
def get_product(product_id: str, store: DocumentStore = Depends(get_store)):
    product = ProductRepository(store).get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/categories", response_model=List[CategoryRecord], summary="Categories by name")
def list_categories(store: DocumentStore = Depends(get_store)):
    return CategoryRepository(store).list()
