"""Pantry item service: stocking, consolidation and household pantry queries."""

import logging
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from larder.config import get_settings
from larder.exceptions import (
    ConflictError,
    InsufficientPermissionError,
    NotFoundError,
    ValidationError,
)
from larder.models.location import Location
from larder.models.pantry import PantryItem
from larder.models.product import Product
from larder.models.user import User
from larder.schemas.pantry import PantryItemCreate, PantryItemUpdate
from larder.services.access import get_household_or_404, require_membership

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = {"quantity", "unit_of_measure", "expiration_date", "notes", "location_id"}
MAX_NOTES_LENGTH = 500
MAX_UNIT_LENGTH = 50

# Failures that make batch operations skip an item instead of aborting
SKIPPABLE_ERRORS = (NotFoundError, InsufficientPermissionError)


def _validate_quantity(quantity: Any) -> None:
    if quantity is None:
        return
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be an integer")
    if quantity < 0:
        raise ValidationError("Quantity cannot be negative")


def _validate_text(value: Any, label: str, max_length: int) -> None:
    if value is None:
        return
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    if len(value) > max_length:
        raise ValidationError(f"{label} cannot exceed {max_length} characters")


def _validate_create(request: PantryItemCreate) -> None:
    if request.product_id is None:
        raise ValidationError("Product ID cannot be null")
    if request.location_id is None:
        raise ValidationError("Location ID cannot be null")
    _validate_quantity(request.quantity)


def _parse_expiration_date(value: Any) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise ValidationError(f"Invalid expiration date: {value}") from e
    raise ValidationError(f"Invalid expiration date: {value}")


class PantryItemService:
    """Manage stocked products across a household's locations.

    Creating an item that matches an existing (location, product,
    expiration_date) row adds to that row's quantity instead of inserting.
    """

    def __init__(self, db: Session):
        self.db = db
        settings = get_settings()
        self.low_stock_threshold = settings.low_stock_threshold
        self.expiring_soon_days = settings.expiring_soon_days

    # Lookups

    def _find_variant(
        self, location_id: int, product_id: int, expiration_date: date | None
    ) -> PantryItem | None:
        query = self.db.query(PantryItem).filter(
            PantryItem.location_id == location_id,
            PantryItem.product_id == product_id,
        )
        if expiration_date is None:
            query = query.filter(PantryItem.expiration_date.is_(None))
        else:
            query = query.filter(PantryItem.expiration_date == expiration_date)
        return query.first()

    def _get_item(self, item_id: int, user: User) -> PantryItem:
        item = self.db.query(PantryItem).filter(PantryItem.id == item_id).first()
        if item is None:
            raise NotFoundError.for_resource("Pantry item", item_id)
        require_membership(self.db, item.location.household_id, user)
        return item

    def _get_location(self, location_id: int, lock: bool = False) -> Location:
        query = self.db.query(Location).filter(Location.id == location_id)
        if lock:
            query = query.with_for_update()
        location = query.first()
        if location is None:
            raise NotFoundError.for_resource("Location", location_id)
        return location

    def _household_items(self, household_id: int, user: User) -> Query:
        get_household_or_404(self.db, household_id)
        require_membership(self.db, household_id, user)
        return (
            self.db.query(PantryItem)
            .join(Location, PantryItem.location_id == Location.id)
            .join(Product, PantryItem.product_id == Product.id)
            .filter(Location.household_id == household_id)
        )

    def _move(self, item: PantryItem, location_id: int, user: User) -> None:
        """Relocate within the same household only."""
        if location_id == item.location_id:
            return
        target = self._get_location(location_id)
        if target.household_id != item.location.household_id:
            raise InsufficientPermissionError(
                "Cannot move a pantry item to a location in a different household"
            )
        item.location = target

    def _commit_item(self, item: PantryItem) -> PantryItem:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                "A pantry item for this product and expiration date already exists at that location"
            ) from e
        self.db.refresh(item)
        return item

    # Create / consolidate

    def _merge(self, existing: PantryItem, request: PantryItemCreate) -> PantryItem:
        if existing.quantity is not None or request.quantity is not None:
            existing.quantity = (existing.quantity or 0) + (request.quantity or 0)
        if request.unit_of_measure is not None:
            existing.unit_of_measure = request.unit_of_measure
        if request.notes is not None:
            existing.notes = request.notes
        self.db.commit()
        self.db.refresh(existing)
        logger.info(
            f"Consolidated pantry item {existing.id}: +{request.quantity or 0} "
            f"-> {existing.quantity}"
        )
        return existing

    def create_pantry_item(self, request: PantryItemCreate, user: User) -> PantryItem:
        """Stock a product at a location, consolidating with a matching item."""
        _validate_create(request)

        # Row lock on the location serializes concurrent creates into it
        location = self._get_location(request.location_id, lock=True)
        product = self.db.query(Product).filter(Product.id == request.product_id).first()
        if product is None:
            raise NotFoundError.for_resource("Product", request.product_id)
        require_membership(self.db, location.household_id, user)

        existing = self._find_variant(location.id, product.id, request.expiration_date)
        if existing is not None:
            return self._merge(existing, request)

        item = PantryItem(
            location_id=location.id,
            product_id=product.id,
            quantity=request.quantity,
            unit_of_measure=request.unit_of_measure,
            expiration_date=request.expiration_date,
            notes=request.notes,
        )
        self.db.add(item)
        try:
            self.db.commit()
        except IntegrityError:
            # Another writer inserted the same identity first
            self.db.rollback()
            existing = self._find_variant(location.id, product.id, request.expiration_date)
            if existing is None:
                raise
            return self._merge(existing, request)

        self.db.refresh(item)
        logger.info(
            f"User {user.id} stocked product {product.id} at location {location.id} (item {item.id})"
        )
        return item

    # Single-item operations

    def get_pantry_item_by_id(self, item_id: int, user: User) -> PantryItem:
        return self._get_item(item_id, user)

    def update_pantry_item(self, item_id: int, request: PantryItemUpdate, user: User) -> PantryItem:
        """Update the provided fields; fields left as None are unchanged."""
        _validate_quantity(request.quantity)
        item = self._get_item(item_id, user)

        if request.location_id is not None:
            self._move(item, request.location_id, user)
        if request.quantity is not None:
            item.quantity = request.quantity
        if request.unit_of_measure is not None:
            item.unit_of_measure = request.unit_of_measure
        if request.expiration_date is not None:
            item.expiration_date = request.expiration_date
        if request.notes is not None:
            item.notes = request.notes
        return self._commit_item(item)

    def patch_pantry_item(self, item_id: int, fields: dict[str, Any], user: User) -> PantryItem:
        """Apply a partial update.

        Unrecognized keys are ignored. An explicit None clears an optional
        field; ``location_id`` cannot be cleared.
        """
        updates = {key: value for key, value in fields.items() if key in PATCHABLE_FIELDS}
        if "quantity" in updates:
            _validate_quantity(updates["quantity"])
        if "location_id" in updates:
            location_id = updates["location_id"]
            if location_id is None:
                raise ValidationError("Location ID cannot be null")
            if isinstance(location_id, bool) or not isinstance(location_id, int):
                raise ValidationError("Location ID must be an integer")
        if "expiration_date" in updates:
            updates["expiration_date"] = _parse_expiration_date(updates["expiration_date"])
        _validate_text(updates.get("notes"), "Notes", MAX_NOTES_LENGTH)
        _validate_text(updates.get("unit_of_measure"), "Unit of measure", MAX_UNIT_LENGTH)

        item = self._get_item(item_id, user)
        if "location_id" in updates:
            self._move(item, updates.pop("location_id"), user)
        for key, value in updates.items():
            setattr(item, key, value)
        return self._commit_item(item)

    def delete_pantry_item(self, item_id: int, user: User) -> None:
        item = self._get_item(item_id, user)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"User {user.id} deleted pantry item {item_id}")

    # Queries

    def get_pantry_items_by_location(self, location_id: int, user: User) -> list[PantryItem]:
        location = self._get_location(location_id)
        require_membership(self.db, location.household_id, user)
        return (
            self.db.query(PantryItem)
            .join(Product, PantryItem.product_id == Product.id)
            .filter(PantryItem.location_id == location_id)
            .order_by(Product.name, PantryItem.expiration_date.nullslast(), PantryItem.id)
            .all()
        )

    def get_pantry_items_by_household(
        self, household_id: int, user: User, skip: int = 0, limit: int = 100
    ) -> list[PantryItem]:
        return (
            self._household_items(household_id, user)
            .order_by(Product.name, PantryItem.expiration_date.nullslast(), PantryItem.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_low_stock_items(
        self, household_id: int, user: User, threshold: int | None = None
    ) -> list[PantryItem]:
        """Items whose quantity is at or below ``threshold``."""
        threshold = self.low_stock_threshold if threshold is None else threshold
        if threshold < 0:
            raise ValidationError("Threshold cannot be negative")
        return (
            self._household_items(household_id, user)
            .filter(PantryItem.quantity <= threshold)
            .order_by(PantryItem.quantity, Product.name)
            .all()
        )

    def get_expiring_items(
        self,
        household_id: int,
        user: User,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[PantryItem]:
        """Items expiring within [start_date, end_date], soonest first."""
        start_date = start_date or date.today()
        end_date = end_date or start_date + timedelta(days=self.expiring_soon_days)
        if start_date > end_date:
            raise ValidationError("Start date must be before or equal to end date")
        return (
            self._household_items(household_id, user)
            .filter(PantryItem.expiration_date.between(start_date, end_date))
            .order_by(PantryItem.expiration_date, Product.name)
            .all()
        )

    def search_pantry_items(self, household_id: int, term: str, user: User) -> list[PantryItem]:
        """Case-insensitive search over product name, brand and item notes."""
        if not term or not term.strip():
            raise ValidationError("Search term cannot be empty")
        term = term.strip()
        return (
            self._household_items(household_id, user)
            .filter(
                or_(
                    Product.name.icontains(term, autoescape=True),
                    Product.brand.icontains(term, autoescape=True),
                    PantryItem.notes.icontains(term, autoescape=True),
                )
            )
            .order_by(Product.name, PantryItem.expiration_date.nullslast())
            .all()
        )

    def get_pantry_statistics(self, household_id: int, user: User) -> dict[str, int]:
        items = self._household_items(household_id, user)
        today = date.today()
        return {
            "total_items": items.count(),
            "unique_products": items.with_entities(
                func.count(func.distinct(PantryItem.product_id))
            ).scalar()
            or 0,
            "expiring_soon": items.filter(
                PantryItem.expiration_date.between(
                    today, today + timedelta(days=self.expiring_soon_days)
                )
            ).count(),
            "low_stock": items.filter(PantryItem.quantity <= self.low_stock_threshold).count(),
        }

    # Product variants (same product at one location, different expiration dates)

    def get_product_variants_by_location(
        self, location_id: int, product_id: int, user: User
    ) -> list[PantryItem]:
        location = self._get_location(location_id)
        require_membership(self.db, location.household_id, user)
        return (
            self.db.query(PantryItem)
            .filter(PantryItem.location_id == location_id, PantryItem.product_id == product_id)
            .order_by(PantryItem.expiration_date.nullslast(), PantryItem.id)
            .all()
        )

    def product_variant_exists(
        self, location_id: int, product_id: int, expiration_date: date | None, user: User
    ) -> bool:
        location = self._get_location(location_id)
        require_membership(self.db, location.household_id, user)
        return self._find_variant(location_id, product_id, expiration_date) is not None

    def delete_product_variant(
        self, location_id: int, product_id: int, expiration_date: date | None, user: User
    ) -> int:
        location = self._get_location(location_id)
        require_membership(self.db, location.household_id, user)

        variant = self._find_variant(location_id, product_id, expiration_date)
        if variant is None:
            return 0
        self.db.delete(variant)
        self.db.commit()
        return 1

    # Batch operations (best-effort: unreachable or unauthorized items are skipped)

    def create_multiple_pantry_items(self, requests: list[PantryItemCreate], user: User) -> int:
        for request in requests:
            _validate_create(request)

        processed = 0
        for request in requests:
            try:
                self.create_pantry_item(request, user)
            except SKIPPABLE_ERRORS as e:
                logger.info(f"Skipping pantry item for product {request.product_id}: {e.message}")
                continue
            processed += 1
        return processed

    def delete_multiple_pantry_items(self, item_ids: list[int], user: User) -> int:
        processed = 0
        for item_id in item_ids:
            try:
                item = self._get_item(item_id, user)
            except SKIPPABLE_ERRORS as e:
                logger.info(f"Skipping delete of pantry item {item_id}: {e.message}")
                continue
            self.db.delete(item)
            processed += 1

        self.db.commit()
        logger.info(f"User {user.id} deleted {processed}/{len(item_ids)} pantry items")
        return processed

    def update_quantities(self, quantities: dict[int, int], user: User) -> int:
        """Set quantities for several items at once."""
        for quantity in quantities.values():
            if quantity is None:
                raise ValidationError("Quantity cannot be null")
            _validate_quantity(quantity)

        processed = 0
        for item_id, quantity in quantities.items():
            try:
                item = self._get_item(item_id, user)
            except SKIPPABLE_ERRORS as e:
                logger.info(f"Skipping quantity update for pantry item {item_id}: {e.message}")
                continue
            item.quantity = quantity
            processed += 1

        self.db.commit()
        return processed
