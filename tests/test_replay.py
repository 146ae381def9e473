"""Tests for building BOMs from scratch and replaying version logs."""

import pytest
from uuid import uuid4

from bomledger.bom import Bom, BomVersion
from bomledger.errors import ConversionError, ValidationError
from bomledger.events import (
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
    DescriptionChanged,
    NameChanged,
)
from bomledger.models import Component, CountedComponent, Price
from bomledger.replay import build_bom, concat_changes, history_changes, replay
from bomledger.validation import BomChangeEventValidator


def make_component(name: str) -> Component:
    return Component(
        id=uuid4(),
        name=name,
        part_number=f"PN-{name}",
        supplier="Digi-Key",
        price=Price(value=1.5, currency="USD"),
    )


@pytest.fixture
def validator():
    return BomChangeEventValidator()


@pytest.fixture
def parts():
    return make_component("A"), make_component("B")


@pytest.fixture
def log(parts):
    """A three-version history for one BOM."""
    a, b = parts
    bom_id = uuid4()
    return bom_id, [
        BomVersion(bom_id=bom_id, version=1, changes=[NameChanged("TestBom"), ComponentAdded(a, 1)]),
        BomVersion(bom_id=bom_id, version=2, changes=[ComponentUpdated(a.id, 2), ComponentAdded(b, 5)]),
        BomVersion(bom_id=bom_id, version=3, changes=[ComponentRemoved(a), DescriptionChanged("Final")]),
    ]


class TestBuildBom:

    def test_builds_version_one(self, validator, parts):
        a, _ = parts

        bom = build_bom([NameChanged("TestBom"), ComponentAdded(a, 1)], validator)

        assert bom.version == 1
        assert bom.name == "TestBom"
        assert bom.description is None
        assert bom.components == [CountedComponent(a, 1)]

    def test_empty_batch_rejected(self, validator):
        with pytest.raises(ValidationError, match="empty event list"):
            build_bom([], validator)

    def test_batch_without_name_rejected(self, validator, parts):
        a, _ = parts
        with pytest.raises(ValidationError, match="without a name_changed"):
            build_bom([ComponentAdded(a, 1), DescriptionChanged("x")], validator)

    def test_name_may_come_later_in_batch(self, validator, parts):
        """The name guard looks at the whole batch before applying anything."""
        a, _ = parts

        bom = build_bom([ComponentAdded(a, 1), NameChanged("Late name")], validator)

        assert bom.name == "Late name"

    def test_invalid_event_aborts_batch(self, validator, parts):
        a, _ = parts
        with pytest.raises(ValidationError, match="Quantity must be greater than 0"):
            build_bom([NameChanged("TestBom"), ComponentAdded(a, 0)], validator)


class TestReplay:

    def test_concat_orders_by_version(self, log):
        _, entries = log

        events = concat_changes(reversed(entries))

        assert events[0] == NameChanged("TestBom")
        assert events[-1] == DescriptionChanged("Final")
        assert len(events) == 6

    @pytest.mark.parametrize("version", [1, 2, 3])
    def test_version_is_number_of_entries(self, validator, log, version):
        _, entries = log
        assert replay(entries[:version], validator).version == version

    def test_replay_to_each_version(self, validator, log, parts):
        a, b = parts
        _, entries = log

        v1 = replay(entries[:1], validator)
        v2 = replay(entries[:2], validator)
        v3 = replay(entries, validator)

        assert v1.components == [CountedComponent(a, 1)]
        assert v2.components == [CountedComponent(a, 2), CountedComponent(b, 5)]
        assert v3.components == [CountedComponent(b, 5)]
        assert v3.description == "Final"
        assert {v1.name, v2.name, v3.name} == {"TestBom"}

    def test_replay_is_deterministic(self, validator, log):
        _, entries = log

        first = replay(entries, validator)
        second = replay(entries, validator)

        assert first.to_dict()["components"] == second.to_dict()["components"]
        assert (first.name, first.description, first.version) == (second.name, second.description, second.version)

    def test_base_identity_is_kept_and_state_cleared(self, validator, log, parts):
        bom_id, entries = log
        _, b = parts
        base = Bom(id=bom_id, name="Current", description="Current desc", version=3,
                   components=[CountedComponent(b, 99)])

        rebuilt = replay(entries[:1], validator, base=base)

        assert rebuilt.id == bom_id
        assert rebuilt.created_at == base.created_at
        assert rebuilt.name == "TestBom"
        assert rebuilt.description is None
        assert b.id not in {c.component.id for c in rebuilt.components}
        # the base itself is not mutated
        assert base.components == [CountedComponent(b, 99)]

    def test_revert_entry_starts_from_cleared_state(self, validator, log, parts):
        """A revert batch re-adds components; replay must not see them as duplicates."""
        a, _ = parts
        bom_id, entries = log
        revert = BomVersion(
            bom_id=bom_id,
            version=4,
            changes=concat_changes(entries[:1]),
            reverted_to=1,
        )

        bom = replay(entries + [revert], validator)

        assert bom.version == 4
        assert bom.description is None
        assert bom.components == [CountedComponent(a, 1)]

    def test_history_changes_start_at_last_revert(self, log):
        bom_id, entries = log
        revert = BomVersion(bom_id=bom_id, version=4, changes=[NameChanged("Reverted")], reverted_to=1)
        later = BomVersion(bom_id=bom_id, version=5, changes=[DescriptionChanged("After")])

        assert history_changes(entries + [revert, later]) == [NameChanged("Reverted"), DescriptionChanged("After")]
        assert history_changes(entries) == concat_changes(entries)

    def test_gap_in_log_rejected(self, validator, log):
        _, entries = log
        with pytest.raises(ConversionError, match="not contiguous"):
            replay([entries[0], entries[2]], validator)

    def test_entries_of_other_bom_rejected(self, validator, log):
        _, entries = log
        with pytest.raises(ConversionError, match="belongs to BOM"):
            replay(entries, validator, base=Bom(id=uuid4(), name="Other"))

    def test_empty_log_replays_to_empty_bom(self, validator):
        bom = replay([], validator)
        assert bom.version == 0
        assert bom.components == []
