"""Product catalog API endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from larder.api.dependencies import CurrentUser, get_product_service
from larder.schemas.product import (
    CountResponse,
    ProductBulkDelete,
    ProductCreate,
    ProductResponse,
    ProductStatistics,
    ProductUpdate,
)
from larder.services.product_service import ProductService

router = APIRouter(prefix="/api/v1/products", tags=["products"])

Products = Annotated[ProductService, Depends(get_product_service)]


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(data: ProductCreate, current_user: CurrentUser, service: Products):
    """Create a product, enriching it from Open Food Facts when possible."""
    return service.create_product(data)


@router.get("", response_model=list[ProductResponse])
def list_products(
    current_user: CurrentUser,
    service: Products,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    return service.get_all_products(skip, limit)


@router.get("/search", response_model=list[ProductResponse])
def search_products(
    current_user: CurrentUser, service: Products, name: Annotated[str, Query(min_length=1)]
):
    return service.search_products_by_name(name)


@router.get("/category/{category}", response_model=list[ProductResponse])
def products_by_category(category: str, current_user: CurrentUser, service: Products):
    return service.get_products_by_category(category)


@router.get("/brand/{brand}", response_model=list[ProductResponse])
def products_by_brand(brand: str, current_user: CurrentUser, service: Products):
    return service.get_products_by_brand(brand)


@router.get("/upc/{upc}", response_model=ProductResponse)
def get_product_by_upc(upc: str, current_user: CurrentUser, service: Products):
    return service.get_product_by_upc(upc)


@router.get("/upc/{upc}/available")
def upc_available(upc: str, current_user: CurrentUser, service: Products):
    return {"upc": upc, "available": service.is_upc_available(upc)}


@router.get("/statistics", response_model=ProductStatistics)
def product_statistics(current_user: CurrentUser, service: Products):
    return service.get_product_statistics()


@router.get("/retry", response_model=list[ProductResponse])
def products_requiring_retry(current_user: CurrentUser, service: Products):
    """List products still queued for Open Food Facts enrichment."""
    return service.get_products_requiring_retry()


@router.post("/bulk", response_model=CountResponse, status_code=status.HTTP_201_CREATED)
def bulk_import_products(data: list[ProductCreate], current_user: CurrentUser, service: Products):
    """Import several products (admin only). Existing UPCs are skipped."""
    return CountResponse(count=service.bulk_import_products(data, current_user))


@router.post("/bulk-delete", response_model=CountResponse)
def bulk_delete_products(data: ProductBulkDelete, current_user: CurrentUser, service: Products):
    return CountResponse(count=service.bulk_delete_products(data.ids, current_user))


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, current_user: CurrentUser, service: Products):
    return service.get_product_by_id(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int, data: ProductUpdate, current_user: CurrentUser, service: Products
):
    return service.update_product(product_id, data, current_user)


@router.patch("/{product_id}", response_model=ProductResponse)
def patch_product(
    product_id: int, fields: dict[str, Any], current_user: CurrentUser, service: Products
):
    return service.patch_product(product_id, fields, current_user)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, current_user: CurrentUser, service: Products):
    service.delete_product(product_id, current_user)


@router.post("/{product_id}/retry", response_model=ProductResponse)
def retry_product_enrichment(product_id: int, current_user: CurrentUser, service: Products):
    """Retry enrichment for a single product now (admin only)."""
    return service.retry_product_enrichment(product_id, current_user)
