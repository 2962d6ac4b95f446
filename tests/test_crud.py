"""Catalog service tests: coffee records and the price history ledger."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app import crud
from app.exceptions import CoffeeNotFound, PersistenceError, ValidationError
from app.models import Coffee, PriceHistory
from app.schemas import CoffeeCreate, CoffeeUpdate


def history_prices(coffee):
    return [entry.price for entry in coffee.price_history]


class TestCreateCoffee:
    """Creating coffees writes the first price history entry."""

    def test_create_writes_single_history_entry(self, make_coffee):
        coffee = make_coffee(current_price=Decimal("12.50"))

        assert coffee.id is not None
        assert history_prices(coffee) == [Decimal("12.50")]
        assert coffee.price_history[0].effective_date is not None

    def test_create_applies_defaults(self, make_coffee):
        coffee = make_coffee()

        assert coffee.weight == 340
        assert coffee.in_stock is True
        assert coffee.tasting_notes == []
        assert coffee.created_at is not None
        assert coffee.updated_at is not None

    def test_tasting_notes_keep_order(self, make_coffee):
        coffee = make_coffee(tasting_notes=["plum", "cocoa", "almond"])

        assert coffee.tasting_notes == ["plum", "cocoa", "almond"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"name": ""},
            {"roaster": "   "},
            {"roast_level": "blonde"},
            {"current_price": Decimal("-1")},
        ],
    )
    def test_invalid_fields_are_rejected(self, overrides):
        data = {
            "name": "House Blend",
            "roaster": "Acme",
            "roast_level": "medium",
            "current_price": Decimal("10.00"),
        }
        data.update(overrides)

        with pytest.raises(ValueError):
            CoffeeCreate(**data)

    def test_failed_commit_leaves_no_rows(self, db, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", broken_commit)
        payload = CoffeeCreate(name="Broken", roaster="Acme", roast_level="dark", current_price=Decimal("9.00"))

        with pytest.raises(PersistenceError):
            crud.create_coffee(db, payload)

        monkeypatch.undo()
        assert db.query(Coffee).count() == 0
        assert db.query(PriceHistory).count() == 0


class TestUpdateCoffee:
    """Price changes are appended to the ledger, nothing else is."""

    def test_price_change_appends_entry(self, db, make_coffee):
        coffee = make_coffee(current_price=Decimal("12.50"))

        updated = crud.update_coffee(db, coffee.id, CoffeeUpdate(current_price=Decimal("14.00")))

        assert updated.current_price == Decimal("14.00")
        assert history_prices(updated) == [Decimal("12.50"), Decimal("14.00")]

    def test_same_price_does_not_append(self, db, make_coffee):
        coffee = make_coffee(current_price=Decimal("12.50"))
        crud.update_coffee(db, coffee.id, CoffeeUpdate(current_price=Decimal("14.00")))

        updated = crud.update_coffee(db, coffee.id, CoffeeUpdate(current_price=Decimal("14.0")))

        assert history_prices(updated) == [Decimal("12.50"), Decimal("14.00")]

    def test_update_without_price_does_not_append(self, db, make_coffee):
        coffee = make_coffee(current_price=Decimal("12.50"))

        updated = crud.update_coffee(db, coffee.id, CoffeeUpdate(in_stock=False))

        assert updated.in_stock is False
        assert history_prices(updated) == [Decimal("12.50")]

    def test_partial_update_keeps_other_fields(self, db, make_coffee):
        coffee = make_coffee(origin="Kenya", description="Juicy")

        updated = crud.update_coffee(
            db, coffee.id, CoffeeUpdate(name="Kenya AA", roast_level="medium-dark")
        )

        assert updated.name == "Kenya AA"
        assert updated.roast_level == "medium-dark"
        assert updated.origin == "Kenya"
        assert updated.description == "Juicy"
        assert updated.roaster == "Acme"

    def test_optional_field_can_be_cleared(self, db, make_coffee):
        coffee = make_coffee(origin="Kenya")

        updated = crud.update_coffee(db, coffee.id, CoffeeUpdate(origin=None))

        assert updated.origin is None

    def test_null_required_field_is_rejected(self, db, make_coffee):
        coffee = make_coffee()

        with pytest.raises(ValidationError, match="name cannot be null"):
            crud.update_coffee(db, coffee.id, CoffeeUpdate(name=None))

    def test_null_tasting_notes_are_rejected(self, db, make_coffee):
        coffee = make_coffee(tasting_notes=["plum"])

        with pytest.raises(ValidationError, match="tastingNotes cannot be null"):
            crud.update_coffee(db, coffee.id, CoffeeUpdate(tasting_notes=None))

        db.expire_all()
        assert crud.get_coffee(db, coffee.id).tasting_notes == ["plum"]

    def test_failed_commit_keeps_price_and_history(self, db, make_coffee, monkeypatch):
        coffee = make_coffee(current_price=Decimal("12.50"))
        coffee_id = coffee.id

        def broken_commit():
            raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db, "commit", broken_commit)

        with pytest.raises(PersistenceError):
            crud.update_coffee(db, coffee_id, CoffeeUpdate(current_price=Decimal("14.00")))

        monkeypatch.undo()
        db.expire_all()
        assert crud.get_coffee(db, coffee_id).current_price == Decimal("12.50")
        assert db.query(PriceHistory).filter(PriceHistory.coffee_id == coffee_id).count() == 1

    def test_update_missing_coffee(self, db):
        with pytest.raises(CoffeeNotFound):
            crud.update_coffee(db, 404, CoffeeUpdate(current_price=Decimal("1.00")))


class TestGetAndDelete:
    def test_get_returns_history_oldest_first(self, db, make_coffee):
        coffee = make_coffee(current_price=Decimal("10.00"))
        for price in ("11.00", "12.00"):
            crud.update_coffee(db, coffee.id, CoffeeUpdate(current_price=Decimal(price)))

        fetched = crud.get_coffee(db, coffee.id)

        assert history_prices(fetched) == [Decimal("10.00"), Decimal("11.00"), Decimal("12.00")]

    def test_get_missing_coffee(self, db):
        with pytest.raises(CoffeeNotFound):
            crud.get_coffee(db, 404)

    def test_delete_removes_history(self, db, make_coffee):
        coffee = make_coffee()
        coffee_id = coffee.id
        crud.update_coffee(db, coffee_id, CoffeeUpdate(current_price=Decimal("20.00")))

        crud.delete_coffee(db, coffee_id)

        with pytest.raises(CoffeeNotFound):
            crud.get_coffee(db, coffee_id)
        assert crud.get_price_history(db, coffee_id) == []
        assert db.query(PriceHistory).filter(PriceHistory.coffee_id == coffee_id).count() == 0

    def test_delete_keeps_other_coffees_history(self, db, make_coffee):
        first = make_coffee(name="First")
        second = make_coffee(name="Second")

        crud.delete_coffee(db, first.id)

        assert len(crud.get_price_history(db, second.id)) == 1

    def test_delete_missing_coffee(self, db):
        with pytest.raises(CoffeeNotFound):
            crud.delete_coffee(db, 404)


class TestListAndLookups:
    """Filtering, ordering and distinct values for filter controls."""

    @pytest.fixture
    def catalog(self, make_coffee):
        make_coffee(name="Yirgacheffe", roaster="Acme", roast_level="light", origin="Ethiopia")
        make_coffee(name="Espresso Forte", roaster="Acme Roasters", roast_level="dark", origin="Brazil")
        make_coffee(name="Decaf", roaster="Bean Co", roast_level="medium", in_stock=False,
                    description="Swiss water process")
        make_coffee(name="Antigua", roaster="Acme", roast_level="medium", origin="Guatemala")

    def test_no_filters_returns_all_sorted_by_name(self, db, catalog):
        names = [c.name for c in crud.get_coffees(db)]

        assert names == ["Antigua", "Decaf", "Espresso Forte", "Yirgacheffe"]

    def test_roaster_is_exact_match(self, db, catalog):
        coffees = crud.get_coffees(db, roaster="Acme")

        assert {c.roaster for c in coffees} == {"Acme"}
        assert len(coffees) == 2

    def test_roast_level_filter(self, db, catalog):
        names = [c.name for c in crud.get_coffees(db, roast_level="medium")]

        assert names == ["Antigua", "Decaf"]

    def test_in_stock_filter(self, db, catalog):
        assert [c.name for c in crud.get_coffees(db, in_stock=False)] == ["Decaf"]
        assert len(crud.get_coffees(db, in_stock=True)) == 3

    def test_search_is_case_insensitive_on_origin(self, db, catalog):
        names = [c.name for c in crud.get_coffees(db, search="ethio")]

        assert names == ["Yirgacheffe"]

    def test_search_covers_description_and_roaster(self, db, catalog):
        assert [c.name for c in crud.get_coffees(db, search="SWISS")] == ["Decaf"]
        assert [c.name for c in crud.get_coffees(db, search="bean")] == ["Decaf"]

    def test_filters_are_combined(self, db, catalog):
        names = [c.name for c in crud.get_coffees(db, roaster="Acme", search="guat")]

        assert names == ["Antigua"]

    def test_distinct_roasters_sorted_without_duplicates(self, db, catalog):
        assert crud.get_all_roasters(db) == ["Acme", "Acme Roasters", "Bean Co"]

    def test_distinct_roast_levels(self, db, catalog):
        assert crud.get_all_roast_levels(db) == ["dark", "light", "medium"]

    def test_price_history_newest_first(self, db, make_coffee):
        coffee = make_coffee(current_price=Decimal("10.00"))
        crud.update_coffee(db, coffee.id, CoffeeUpdate(current_price=Decimal("11.00")))

        prices = [entry.price for entry in crud.get_price_history(db, coffee.id)]

        assert prices == [Decimal("11.00"), Decimal("10.00")]

    def test_price_history_for_unknown_coffee_is_empty(self, db):
        assert crud.get_price_history(db, 404) == []
