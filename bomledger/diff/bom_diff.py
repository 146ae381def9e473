"""
Diff engine for versioned BOMs.

A diff is computed from a base BOM state plus the ordered events of a diff
window, NOT by comparing two materialized snapshots. Events are processed
strictly in order, and the result reflects only the net effect of the
window:

- Repeated name/description changes collapse to one from -> to pair, where
  "from" is the base value and "to" is the last value applied
- A component added and later removed in the window does not appear at all
- A component updated several times appears once, from its base quantity to
  its final quantity
- A component added and then updated is still "added", with the final
  quantity
- Only a component that was in neither transient set when it is removed is
  reported as removed
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar
from uuid import UUID

from ..bom import Bom
from ..events import (
    ChangeEvent,
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
    DescriptionChanged,
    NameChanged,
)
from ..models import Component, CountedComponent

T = TypeVar("T")


@dataclass
class PartialDiff(Generic[T]):
    """A single from -> to change of one field."""
    from_value: T
    to_value: T


@dataclass
class BomDiff:
    """
    Net change between two version boundaries.

    Never persisted; computed on demand.
    """
    name_changed: Optional[PartialDiff[str]] = None
    description_changed: Optional[PartialDiff[Optional[str]]] = None
    components_added: Dict[UUID, CountedComponent] = field(default_factory=dict)
    components_updated: Dict[UUID, PartialDiff[CountedComponent]] = field(default_factory=dict)
    components_removed: List[Component] = field(default_factory=list)

    def is_empty(self) -> bool:
        return (
            self.name_changed is None and
            self.description_changed is None and
            not self.components_added and
            not self.components_updated and
            not self.components_removed
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        def _partial(diff: Optional[PartialDiff]) -> Optional[Dict[str, Any]]:
            if diff is None:
                return None
            return {"from": diff.from_value, "to": diff.to_value}

        return {
            "name_changed": _partial(self.name_changed),
            "description_changed": _partial(self.description_changed),
            "components_added": {
                str(component_id): counted.to_dict()
                for component_id, counted in self.components_added.items()
            },
            "components_removed": [c.to_dict() for c in self.components_removed],
            "components_updated": {
                str(component_id): {
                    "from": change.from_value.to_dict(),
                    "to": change.to_value.to_dict(),
                }
                for component_id, change in self.components_updated.items()
            },
        }


def diff_bom(base: Bom, events: Sequence[ChangeEvent]) -> BomDiff:
    """
    Compute the net diff of an event window applied on top of ``base``.

    ``base`` is only read, never mutated. Events are not validated here;
    they come from the version log, where they were validated on write.

    Args:
        base: BOM state at the start of the window
        events: Ordered events of the window

    Returns:
        BomDiff describing the net effect of the window

    Example:
        >>> diff = diff_bom(bom_v1, [ComponentUpdated(c.id, 2), NameChanged("New")])
        >>> diff.name_changed.to_value
        'New'
    """
    diff = BomDiff()

    for event in events:
        match event:
            case NameChanged(name=name):
                diff.name_changed = PartialDiff(from_value=base.name, to_value=name)

            case DescriptionChanged(description=description):
                diff.description_changed = PartialDiff(
                    from_value=base.description,
                    to_value=description,
                )

            case ComponentAdded(component=component, quantity=quantity):
                diff.components_added[component.id] = CountedComponent(component, quantity)

            case ComponentUpdated(component_id=component_id, quantity=quantity):
                existing = base.find_component(component_id)
                if existing is not None:
                    diff.components_updated[component_id] = PartialDiff(
                        from_value=CountedComponent(existing.component, existing.quantity),
                        to_value=CountedComponent(existing.component, quantity),
                    )
                elif component_id in diff.components_added:
                    diff.components_added[component_id].quantity = quantity

            case ComponentRemoved(component=component):
                was_added = diff.components_added.pop(component.id, None) is not None
                was_updated = diff.components_updated.pop(component.id, None) is not None
                if not was_added and not was_updated:
                    diff.components_removed.append(component)

    return diff


def diff_snapshots(before: Bom, after: Bom) -> BomDiff:
    """
    Compare two materialized BOM states field by field.

    Used for windows that contain a revert entry: a revert replaces the
    whole content, so its event batch does not describe a change relative
    to the state it was applied on. Identity is the component id.

    Args:
        before: State at the start of the window
        after: State at the end of the window

    Returns:
        BomDiff with the same shape as diff_bom produces
    """
    diff = BomDiff()

    if before.name != after.name:
        diff.name_changed = PartialDiff(from_value=before.name, to_value=after.name)
    if before.description != after.description:
        diff.description_changed = PartialDiff(
            from_value=before.description,
            to_value=after.description,
        )

    old = {c.component.id: c for c in before.components}
    new = {c.component.id: c for c in after.components}

    for component_id, counted in new.items():
        previous = old.get(component_id)
        if previous is None:
            diff.components_added[component_id] = CountedComponent(counted.component, counted.quantity)
        elif previous.quantity != counted.quantity:
            diff.components_updated[component_id] = PartialDiff(
                from_value=CountedComponent(previous.component, previous.quantity),
                to_value=CountedComponent(previous.component, counted.quantity),
            )

    for component_id, counted in old.items():
        if component_id not in new:
            diff.components_removed.append(counted.component)

    return diff
