"""Tests for pantry item service."""

from datetime import date, timedelta

import pytest

from larder.exceptions import InsufficientPermissionError, NotFoundError, ValidationError
from larder.models.location import Location
from larder.models.pantry import PantryItem
from larder.models.product import Product
from larder.schemas.pantry import PantryItemCreate, PantryItemUpdate
from larder.services.household_service import HouseholdService
from larder.services.pantry_service import PantryItemService


@pytest.fixture
def service(db):
    return PantryItemService(db)


@pytest.fixture
def setup(db, make_user):
    """Two households, each with a location, plus a small product catalog."""
    owner = make_user()
    stranger = make_user()
    households = HouseholdService(db)
    home = households.create_household("Home", owner)
    away = households.create_household("Away", stranger)

    pantry = Location(household_id=home.id, name="Pantry")
    fridge = Location(household_id=home.id, name="Fridge")
    shed = Location(household_id=away.id, name="Shed")
    oats = Product(upc="111", name="Rolled Oats", brand="Acme")
    milk = Product(upc="222", name="Milk", brand="Dairyland")
    db.add_all([pantry, fridge, shed, oats, milk])
    db.commit()

    return {
        "owner": owner,
        "stranger": stranger,
        "home": home,
        "away": away,
        "pantry": pantry,
        "fridge": fridge,
        "shed": shed,
        "oats": oats,
        "milk": milk,
    }


def stock(service, setup, product="oats", location="pantry", user="owner", **kwargs):
    request = PantryItemCreate(
        product_id=setup[product].id, location_id=setup[location].id, **kwargs
    )
    return service.create_pantry_item(request, setup[user])


def test_create_pantry_item(setup, service):
    """Test stocking a product."""
    item = stock(service, setup, quantity=2, unit_of_measure="box", notes="top shelf")

    assert item.quantity == 2
    assert item.unit_of_measure == "box"
    assert item.product.name == "Rolled Oats"
    assert item.location.name == "Pantry"
    assert item.household_id == setup["home"].id


def test_create_consolidates_matching_item(db, setup, service):
    """Test same product, location and expiration add up instead of inserting."""
    expires = date.today() + timedelta(days=30)
    first = stock(service, setup, quantity=2, expiration_date=expires)
    second = stock(service, setup, quantity=3, expiration_date=expires, notes="restocked")

    assert second.id == first.id
    assert second.quantity == 5
    assert second.notes == "restocked"
    assert db.query(PantryItem).count() == 1


def test_create_consolidates_null_expiration_bucket(db, setup, service):
    """Test items without an expiration date consolidate with each other only."""
    undated = stock(service, setup, quantity=1)
    again = stock(service, setup, quantity=4)
    dated = stock(service, setup, quantity=1, expiration_date=date.today())

    assert again.id == undated.id
    assert again.quantity == 5
    assert dated.id != undated.id
    assert db.query(PantryItem).count() == 2


def test_create_different_dates_are_variants(setup, service):
    """Test different expiration dates are kept as separate rows."""
    today = date.today()
    stock(service, setup, quantity=1, expiration_date=today)
    stock(service, setup, quantity=1, expiration_date=today + timedelta(days=1))

    variants = service.get_product_variants_by_location(
        setup["pantry"].id, setup["oats"].id, setup["owner"]
    )
    assert [v.expiration_date for v in variants] == [today, today + timedelta(days=1)]


def test_create_validation_before_lookup(setup, service):
    """Test request validation happens before any entity lookup."""
    with pytest.raises(ValidationError, match="Product ID"):
        service.create_pantry_item(PantryItemCreate(location_id=99999), setup["owner"])
    with pytest.raises(ValidationError, match="Location ID"):
        service.create_pantry_item(PantryItemCreate(product_id=99999), setup["owner"])
    with pytest.raises(ValidationError, match="negative"):
        service.create_pantry_item(
            PantryItemCreate(product_id=99999, location_id=99999, quantity=-1), setup["owner"]
        )


def test_create_missing_entities_and_permission(setup, service):
    """Test unknown ids and foreign households."""
    with pytest.raises(NotFoundError):
        service.create_pantry_item(
            PantryItemCreate(product_id=setup["oats"].id, location_id=99999), setup["owner"]
        )
    with pytest.raises(NotFoundError):
        service.create_pantry_item(
            PantryItemCreate(product_id=99999, location_id=setup["pantry"].id), setup["owner"]
        )
    with pytest.raises(InsufficientPermissionError):
        stock(service, setup, location="shed")


def test_get_pantry_item_requires_membership(setup, service):
    """Test outsiders cannot read an item."""
    item = stock(service, setup, quantity=1)

    assert service.get_pantry_item_by_id(item.id, setup["owner"]).id == item.id
    with pytest.raises(InsufficientPermissionError):
        service.get_pantry_item_by_id(item.id, setup["stranger"])
    with pytest.raises(NotFoundError):
        service.get_pantry_item_by_id(99999, setup["owner"])


def test_update_pantry_item(setup, service):
    """Test update changes provided fields and keeps the rest."""
    item = stock(service, setup, quantity=1, notes="keep")

    updated = service.update_pantry_item(
        item.id, PantryItemUpdate(quantity=7, location_id=setup["fridge"].id), setup["owner"]
    )
    assert updated.quantity == 7
    assert updated.location.name == "Fridge"
    assert updated.notes == "keep"


def test_update_cannot_move_across_households(setup, service):
    """Test moving into another household's location is forbidden."""
    item = stock(service, setup, quantity=1)

    with pytest.raises(InsufficientPermissionError):
        service.update_pantry_item(
            item.id, PantryItemUpdate(location_id=setup["shed"].id), setup["owner"]
        )
    with pytest.raises(InsufficientPermissionError):
        service.patch_pantry_item(item.id, {"location_id": setup["shed"].id}, setup["owner"])


def test_patch_pantry_item(setup, service):
    """Test patch clears optional fields on explicit null and ignores unknown keys."""
    item = stock(
        service, setup, quantity=3, notes="note", expiration_date=date.today(), unit_of_measure="kg"
    )

    patched = service.patch_pantry_item(
        item.id, {"notes": None, "expiration_date": None, "sparkle": True}, setup["owner"]
    )
    assert patched.notes is None
    assert patched.expiration_date is None
    assert patched.unit_of_measure == "kg"
    assert patched.quantity == 3

    patched = service.patch_pantry_item(
        item.id, {"expiration_date": "2030-01-31", "quantity": 0}, setup["owner"]
    )
    assert patched.expiration_date == date(2030, 1, 31)
    assert patched.quantity == 0


def test_patch_pantry_item_validation(setup, service):
    """Test patch rejects bad values."""
    item = stock(service, setup, quantity=3)

    with pytest.raises(ValidationError):
        service.patch_pantry_item(item.id, {"quantity": -2}, setup["owner"])
    with pytest.raises(ValidationError):
        service.patch_pantry_item(item.id, {"quantity": "many"}, setup["owner"])
    with pytest.raises(ValidationError):
        service.patch_pantry_item(item.id, {"location_id": None}, setup["owner"])
    with pytest.raises(ValidationError):
        service.patch_pantry_item(item.id, {"expiration_date": "soon"}, setup["owner"])


def test_delete_pantry_item(db, setup, service):
    """Test deleting an item."""
    item = stock(service, setup, quantity=1)

    with pytest.raises(InsufficientPermissionError):
        service.delete_pantry_item(item.id, setup["stranger"])
    service.delete_pantry_item(item.id, setup["owner"])

    assert db.query(PantryItem).count() == 0


def test_items_by_location_and_household(setup, service):
    """Test listings are scoped and sorted by product name."""
    stock(service, setup, quantity=1)
    stock(service, setup, product="milk", location="fridge", quantity=1)
    stock(service, setup, location="shed", user="stranger", quantity=1)

    by_location = service.get_pantry_items_by_location(setup["pantry"].id, setup["owner"])
    assert [i.product.name for i in by_location] == ["Rolled Oats"]

    by_household = service.get_pantry_items_by_household(setup["home"].id, setup["owner"])
    assert [i.product.name for i in by_household] == ["Milk", "Rolled Oats"]

    with pytest.raises(InsufficientPermissionError):
        service.get_pantry_items_by_household(setup["home"].id, setup["stranger"])


def test_low_stock_items(setup, service):
    """Test the low stock threshold is inclusive."""
    stock(service, setup, quantity=5)
    stock(service, setup, product="milk", quantity=6)

    low = service.get_low_stock_items(setup["home"].id, setup["owner"])
    assert [i.product.name for i in low] == ["Rolled Oats"]

    low = service.get_low_stock_items(setup["home"].id, setup["owner"], threshold=10)
    assert len(low) == 2

    with pytest.raises(ValidationError):
        service.get_low_stock_items(setup["home"].id, setup["owner"], threshold=-1)


def test_expiring_items(setup, service):
    """Test the expiring window defaults to the next week."""
    today = date.today()
    stock(service, setup, quantity=1, expiration_date=today + timedelta(days=3))
    stock(service, setup, product="milk", quantity=1, expiration_date=today + timedelta(days=30))
    stock(service, setup, product="milk", location="fridge", quantity=1)

    expiring = service.get_expiring_items(setup["home"].id, setup["owner"])
    assert [i.product.name for i in expiring] == ["Rolled Oats"]

    expiring = service.get_expiring_items(
        setup["home"].id, setup["owner"], end_date=today + timedelta(days=60)
    )
    assert len(expiring) == 2

    with pytest.raises(ValidationError):
        service.get_expiring_items(
            setup["home"].id, setup["owner"], start_date=today, end_date=today - timedelta(days=1)
        )


def test_search_pantry_items(setup, service):
    """Test search covers product name, brand and notes."""
    stock(service, setup, quantity=1)
    stock(service, setup, product="milk", location="fridge", quantity=1, notes="for coffee")

    assert [i.product.name for i in service.search_pantry_items(setup["home"].id, "oats", setup["owner"])] == [
        "Rolled Oats"
    ]
    assert len(service.search_pantry_items(setup["home"].id, "DAIRY", setup["owner"])) == 1
    assert len(service.search_pantry_items(setup["home"].id, "coffee", setup["owner"])) == 1
    with pytest.raises(ValidationError):
        service.search_pantry_items(setup["home"].id, "", setup["owner"])


def test_pantry_statistics(setup, service):
    """Test aggregate figures for a household."""
    today = date.today()
    stock(service, setup, quantity=1, expiration_date=today + timedelta(days=2))
    stock(service, setup, quantity=20)
    stock(service, setup, product="milk", location="fridge", quantity=8)

    stats = service.get_pantry_statistics(setup["home"].id, setup["owner"])
    assert stats == {"total_items": 3, "unique_products": 2, "expiring_soon": 1, "low_stock": 1}


def test_product_variant_helpers(setup, service):
    """Test variant existence checks and deletion."""
    expires = date.today() + timedelta(days=5)
    stock(service, setup, quantity=1, expiration_date=expires)
    location_id, product_id = setup["pantry"].id, setup["oats"].id

    assert service.product_variant_exists(location_id, product_id, expires, setup["owner"])
    assert not service.product_variant_exists(location_id, product_id, None, setup["owner"])

    assert service.delete_product_variant(location_id, product_id, None, setup["owner"]) == 0
    assert service.delete_product_variant(location_id, product_id, expires, setup["owner"]) == 1
    assert not service.product_variant_exists(location_id, product_id, expires, setup["owner"])

    with pytest.raises(InsufficientPermissionError):
        service.product_variant_exists(location_id, product_id, expires, setup["stranger"])


def test_create_multiple_pantry_items(setup, service):
    """Test batch create skips unreachable items and counts the rest."""
    requests = [
        PantryItemCreate(product_id=setup["oats"].id, location_id=setup["pantry"].id, quantity=1),
        PantryItemCreate(product_id=setup["oats"].id, location_id=setup["pantry"].id, quantity=2),
        PantryItemCreate(product_id=setup["milk"].id, location_id=setup["shed"].id, quantity=1),
        PantryItemCreate(product_id=99999, location_id=setup["pantry"].id, quantity=1),
    ]

    assert service.create_multiple_pantry_items(requests, setup["owner"]) == 2
    items = service.get_pantry_items_by_location(setup["pantry"].id, setup["owner"])
    assert [i.quantity for i in items] == [3]


def test_create_multiple_validates_everything_first(db, setup, service):
    """Test one invalid request aborts the batch before anything is written."""
    requests = [
        PantryItemCreate(product_id=setup["oats"].id, location_id=setup["pantry"].id, quantity=1),
        PantryItemCreate(product_id=setup["oats"].id, quantity=1),
    ]

    with pytest.raises(ValidationError):
        service.create_multiple_pantry_items(requests, setup["owner"])
    assert db.query(PantryItem).count() == 0


def test_delete_multiple_pantry_items(db, setup, service):
    """Test batch delete skips foreign and missing items."""
    mine = stock(service, setup, quantity=1)
    theirs = stock(service, setup, location="shed", user="stranger", quantity=1)

    assert service.delete_multiple_pantry_items([mine.id, theirs.id, 99999], setup["owner"]) == 1
    assert [i.id for i in db.query(PantryItem).all()] == [theirs.id]


def test_update_quantities(setup, service):
    """Test batch quantity updates."""
    oats = stock(service, setup, quantity=1)
    milk = stock(service, setup, product="milk", location="fridge", quantity=1)

    assert service.update_quantities({oats.id: 4, milk.id: 0, 99999: 3}, setup["owner"]) == 2
    assert service.get_pantry_item_by_id(oats.id, setup["owner"]).quantity == 4
    assert service.get_pantry_item_by_id(milk.id, setup["owner"]).quantity == 0

    with pytest.raises(ValidationError):
        service.update_quantities({oats.id: -1}, setup["owner"])


@pytest.mark.parametrize(
    "fields",
    [
        {"notes": 123},
        {"unit_of_measure": 5},
        {"unit_of_measure": "x" * 51},
        {"location_id": "fridge"},
        {"location_id": True},
    ],
)
def test_patch_pantry_item_rejects_wrong_types(setup, service, fields):
    """Test wrong-typed patch values are validation errors, not crashes."""
    item = stock(service, setup, quantity=3, notes="keep")

    with pytest.raises(ValidationError):
        service.patch_pantry_item(item.id, fields, setup["owner"])

    item = service.get_pantry_item_by_id(item.id, setup["owner"])
    assert item.notes == "keep"
    assert item.location.name == "Pantry"


def test_create_consolidates_without_quantities(setup, service):
    """Test merging two items without quantities keeps the quantity unset."""
    first = stock(service, setup)
    second = stock(service, setup, notes="again")

    assert second.id == first.id
    assert second.quantity is None


def test_search_pantry_items_treats_wildcards_literally(setup, service):
    """Test % and _ in a search term only match themselves."""
    stock(service, setup, quantity=1, notes="100% whole grain")
    stock(service, setup, product="milk", location="fridge", quantity=1)

    results = service.search_pantry_items(setup["home"].id, "0%", setup["owner"])
    assert [i.product.name for i in results] == ["Rolled Oats"]
    assert service.search_pantry_items(setup["home"].id, "%", setup["owner"]) == results
    assert service.search_pantry_items(setup["home"].id, "M_lk", setup["owner"]) == []
