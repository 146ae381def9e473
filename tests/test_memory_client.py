"""Tests for the in-memory database client's transaction and constraint handling."""

import pytest
from uuid import uuid4

from bomledger.bom import Bom, BomVersion
from bomledger.errors import ConflictError, NotFoundError, PersistenceError
from bomledger.events import NameChanged
from bomledger.models import Component, CountedComponent, Price
from bomledger.store import MemoryClient


def make_component() -> Component:
    return Component(
        id=uuid4(),
        name="Crystal 16MHz",
        part_number="ABM8-16.000MHZ",
        supplier="Abracon",
        price=Price(value=0.4, currency="USD"),
    )


@pytest.fixture
def db():
    return MemoryClient()


@pytest.fixture
def stored(db):
    """A committed BOM at version 1 with one catalog component."""
    component = make_component()
    bom = Bom(name="Clock board", version=1, components=[CountedComponent(component, 2)])

    db.begin_transaction()
    db.insert_component(component)
    db.insert_bom(bom)
    db.delete_and_reinsert_component_associations(bom.id, bom.components)
    db.insert_version_log_entry(BomVersion(bom_id=bom.id, version=1, changes=[NameChanged("Clock board")]))
    db.commit_transaction()
    return bom


class TestTransactions:

    def test_writes_need_a_transaction(self, db):
        with pytest.raises(RuntimeError, match="No transaction in progress"):
            db.insert_component(make_component())

    def test_nested_transaction_rejected(self, db):
        db.begin_transaction()
        with pytest.raises(RuntimeError, match="already in progress"):
            db.begin_transaction()

    def test_rollback_discards_writes(self, db, stored):
        db.begin_transaction()
        db.update_bom(Bom(id=stored.id, name="Renamed", version=2), expected_version=1)
        assert db.find_bom_by_id(stored.id).name == "Renamed"

        db.rollback_transaction()

        assert db.find_bom_by_id(stored.id).name == "Clock board"
        assert db.find_bom_by_id(stored.id).version == 1


class TestConstraints:

    def test_assembled_bom(self, db, stored):
        loaded = db.find_bom_by_id(stored.id)

        assert loaded.components == stored.components
        assert loaded.created_at == stored.created_at

    def test_compare_and_swap(self, db, stored):
        db.begin_transaction()
        with pytest.raises(ConflictError):
            db.update_bom(Bom(id=stored.id, name="Late", version=3), expected_version=2)
        db.rollback_transaction()

    def test_update_missing_bom(self, db):
        db.begin_transaction()
        with pytest.raises(NotFoundError):
            db.update_bom(Bom(name="Ghost", version=1), expected_version=0)
        db.rollback_transaction()

    def test_association_needs_catalog_entry(self, db, stored):
        db.begin_transaction()
        with pytest.raises(PersistenceError, match="foreign key"):
            db.delete_and_reinsert_component_associations(
                stored.id, [CountedComponent(make_component(), 1)]
            )
        db.rollback_transaction()

    def test_duplicate_version_entry(self, db, stored):
        db.begin_transaction()
        with pytest.raises(PersistenceError, match="unique constraint"):
            db.insert_version_log_entry(BomVersion(bom_id=stored.id, version=1, changes=[]))
        db.rollback_transaction()

    def test_loaded_entries_do_not_share_stored_changes(self, db, stored):
        loaded = db.load_version_log_entries(stored.id, 1)[0]

        loaded.changes.append(NameChanged("Tampered"))
        loaded.changes[0] = NameChanged("Rewritten")

        assert db.load_version_log_entries(stored.id, 1)[0].changes == [NameChanged("Clock board")]

    def test_inserted_entry_is_copied(self, db, stored):
        changes = [NameChanged("v2")]
        db.begin_transaction()
        db.insert_version_log_entry(BomVersion(bom_id=stored.id, version=2, changes=changes))
        db.commit_transaction()

        changes.append(NameChanged("late edit"))

        assert db.load_version_log_entries(stored.id, 2)[1].changes == [NameChanged("v2")]

    def test_load_version_log_is_bounded(self, db, stored):
        db.begin_transaction()
        db.insert_version_log_entry(BomVersion(bom_id=stored.id, version=2, changes=[NameChanged("v2")]))
        db.commit_transaction()

        assert [e.version for e in db.load_version_log_entries(stored.id, 1)] == [1]
        assert [e.version for e in db.load_version_log_entries(stored.id, 5)] == [1, 2]
