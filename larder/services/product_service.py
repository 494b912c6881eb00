"""Product catalog with UPC enrichment and retry bookkeeping."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from larder.config import get_settings
from larder.exceptions import (
    ConflictError,
    DataIntegrityError,
    InsufficientPermissionError,
    NotFoundError,
    ResourceStateError,
    ValidationError,
)
from larder.models.enums import ProductDataSource
from larder.models.product import Product
from larder.models.user import User
from larder.schemas.product import ProductCreate, ProductUpdate
from larder.services.upc_lookup import UNKNOWN_PRODUCT_NAME, ProductRecord, UpcLookupClient

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"name", "brand", "category", "default_expiration_days"}


def _require_admin(user: User, action: str) -> None:
    if not user.is_admin:
        raise InsufficientPermissionError(f"Only administrators can {action} products")


def _validate_upc(upc: str | None) -> str:
    if upc is None or not upc.strip():
        raise ValidationError("UPC cannot be empty")
    return upc.strip()


class ProductService:
    """Service for the shared product catalog.

    New products are enriched from Open Food Facts when possible. A failed
    lookup never blocks creation; the product is stored as MANUAL and queued
    for retry by the enrichment task.
    """

    def __init__(self, db: Session, upc_client: UpcLookupClient | None = None):
        self.db = db
        self.upc_client = upc_client or UpcLookupClient()
        self.max_retry_attempts = get_settings().product_max_retry_attempts

    def _apply_record(self, product: Product, record: ProductRecord) -> None:
        if record.name and (record.name != UNKNOWN_PRODUCT_NAME or not product.name):
            product.name = record.name
        if record.brand:
            product.brand = record.brand
        if record.category:
            product.category = record.category
        product.data_source = ProductDataSource.OPEN_FOOD_FACTS
        product.requires_api_retry = False
        product.retry_attempts = 0

    def _attempt_enrichment(self, product: Product) -> bool:
        """Run one retry. On failure, count it and give up at the cap."""
        product.last_retry_attempt = datetime.now(UTC)
        try:
            record = self.upc_client.fetch_product_data(product.upc)
        except Exception as e:
            product.retry_attempts = (product.retry_attempts or 0) + 1
            if product.retry_attempts >= self.max_retry_attempts:
                product.requires_api_retry = False
                logger.warning(
                    f"Giving up enrichment for product {product.id} (UPC {product.upc}) "
                    f"after {product.retry_attempts} attempts: {e}"
                )
            else:
                logger.info(
                    f"Enrichment retry {product.retry_attempts} failed for product "
                    f"{product.id}: {e}"
                )
            return False

        self._apply_record(product, record)
        logger.info(f"Enriched product {product.id} (UPC {product.upc}) from Open Food Facts")
        return True

    def _get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFoundError.for_resource("Product", product_id)
        return product

    def _mark_manual_edit(self, product: Product) -> None:
        if product.data_source == ProductDataSource.OPEN_FOOD_FACTS:
            product.data_source = ProductDataSource.HYBRID

    def create_product(self, request: ProductCreate) -> Product:
        upc = _validate_upc(request.upc)
        if not self.is_upc_available(upc):
            raise ConflictError(f"Product with UPC '{upc}' already exists")

        product = Product(
            upc=upc,
            name=(request.name or "").strip() or None,
            brand=request.brand,
            category=request.category,
            default_expiration_days=request.default_expiration_days,
        )

        try:
            record = self.upc_client.fetch_product_data(upc)
        except Exception as e:
            logger.warning(f"UPC lookup failed for {upc}, saving as manual entry: {e}")
            product.data_source = ProductDataSource.MANUAL
            product.requires_api_retry = True
            product.retry_attempts = 0
        else:
            self._apply_record(product, record)

        if not product.name:
            product.name = UNKNOWN_PRODUCT_NAME

        self.db.add(product)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DataIntegrityError(f"Failed to save product with UPC '{upc}'") from e

        self.db.refresh(product)
        logger.info(f"Created product {product.id} (UPC {upc}, source {product.data_source.value})")
        return product

    def get_product_by_id(self, product_id: int) -> Product:
        return self._get_product(product_id)

    def get_product_by_upc(self, upc: str) -> Product:
        upc = _validate_upc(upc)
        product = self.db.query(Product).filter(Product.upc == upc).first()
        if product is None:
            raise NotFoundError(f"Product not found with UPC: {upc}")
        return product

    def get_all_products(self, skip: int = 0, limit: int = 100) -> list[Product]:
        return self.db.query(Product).order_by(Product.name, Product.id).offset(skip).limit(limit).all()

    def search_products_by_name(self, term: str) -> list[Product]:
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty")
        return (
            self.db.query(Product)
            .filter(Product.name.icontains(term.strip(), autoescape=True))
            .order_by(Product.name)
            .all()
        )

    def get_products_by_category(self, category: str) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(func.lower(Product.category) == category.strip().lower())
            .order_by(Product.name)
            .all()
        )

    def get_products_by_brand(self, brand: str) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(func.lower(Product.brand) == brand.strip().lower())
            .order_by(Product.name)
            .all()
        )

    def get_products_requiring_retry(self) -> list[Product]:
        return (
            self.db.query(Product)
            .filter(
                Product.requires_api_retry.is_(True),
                Product.retry_attempts < self.max_retry_attempts,
            )
            .order_by(Product.id)
            .all()
        )

    def is_upc_available(self, upc: str) -> bool:
        return self.db.query(Product.id).filter(Product.upc == upc.strip()).first() is None

    def get_product_statistics(self) -> dict[str, int]:
        by_source = dict(
            self.db.query(Product.data_source, func.count(Product.id))
            .group_by(Product.data_source)
            .all()
        )
        requires_retry = (
            self.db.query(func.count(Product.id))
            .filter(Product.requires_api_retry.is_(True))
            .scalar()
        )
        return {
            "total": sum(by_source.values()),
            "manual": by_source.get(ProductDataSource.MANUAL, 0),
            "api": by_source.get(ProductDataSource.OPEN_FOOD_FACTS, 0),
            "hybrid": by_source.get(ProductDataSource.HYBRID, 0),
            "requires_retry": requires_retry or 0,
        }

    def update_product(self, product_id: int, request: ProductUpdate, user: User) -> Product:
        _require_admin(user, "update")
        product = self._get_product(product_id)

        product.name = request.name.strip()
        product.brand = request.brand
        product.category = request.category
        product.default_expiration_days = request.default_expiration_days
        self._mark_manual_edit(product)

        self.db.commit()
        self.db.refresh(product)
        return product

    def patch_product(self, product_id: int, fields: dict[str, Any], user: User) -> Product:
        """Apply a partial update. Unrecognized keys are ignored."""
        _require_admin(user, "patch")
        updates = {key: value for key, value in fields.items() if key in PATCHABLE_FIELDS}
        for key in ("name", "brand", "category"):
            if updates.get(key) is not None and not isinstance(updates[key], str):
                raise ValidationError(f"Product {key} must be a string")
        if "name" in updates and (updates["name"] is None or not updates["name"].strip()):
            raise ValidationError("Product name cannot be empty")
        days = updates.get("default_expiration_days")
        if days is not None and (not isinstance(days, int) or days < 0):
            raise ValidationError("Default expiration days must be a non-negative integer")

        product = self._get_product(product_id)
        for key, value in updates.items():
            setattr(product, key, value.strip() if isinstance(value, str) else value)
        if updates:
            self._mark_manual_edit(product)

        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int, user: User) -> None:
        _require_admin(user, "delete")
        product = self._get_product(product_id)

        self.db.delete(product)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DataIntegrityError(
                f"Cannot delete product {product_id}: it is still stocked in pantry items"
            ) from e
        logger.info(f"User {user.id} deleted product {product_id}")

    def retry_api_enrichment(self) -> int:
        """Retry enrichment for every product still queued. Returns the success count."""
        products = self.get_products_requiring_retry()
        enriched = 0
        for product in products:
            if self._attempt_enrichment(product):
                enriched += 1
            self.db.commit()

        logger.info(f"Enrichment retry run: {enriched}/{len(products)} products enriched")
        return enriched

    def retry_product_enrichment(self, product_id: int, user: User) -> Product:
        _require_admin(user, "retry enrichment for")
        product = self._get_product(product_id)
        if not product.requires_api_retry:
            raise ResourceStateError(f"Product {product_id} is not pending enrichment")

        self._attempt_enrichment(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def bulk_import_products(self, requests: list[ProductCreate], user: User) -> int:
        """Create several products, skipping UPCs that already exist."""
        _require_admin(user, "import")
        for request in requests:
            _validate_upc(request.upc)

        created = 0
        for request in requests:
            try:
                self.create_product(request)
            except ConflictError:
                logger.info(f"Skipping existing UPC {request.upc} during import")
                continue
            created += 1
        return created

    def bulk_delete_products(self, product_ids: list[int], user: User) -> int:
        """Delete several products, skipping ids that do not exist."""
        _require_admin(user, "delete")
        products = self.db.query(Product).filter(Product.id.in_(product_ids)).all()
        for product in products:
            self.db.delete(product)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DataIntegrityError(
                "Cannot delete products: some are still stocked in pantry items"
            ) from e
        return len(products)
