"""
The BOM aggregate and its version log entries.

A Bom is a mutable projection of its version log. The only way its content
changes is ``apply_change``: validate one event, then reduce it into state.
Callers bump the version once per committed batch, never per event.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from .errors import ValidationError
from .events import (
    ChangeEvent,
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
    DescriptionChanged,
    NameChanged,
    change_events_to_list,
)
from .models import CountedComponent
from .validation import Validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Bom:
    """
    BOM aggregate.

    Invariants:
    - version equals the number of version log entries applied
    - no two entries in ``components`` share a component id
    - every quantity is > 0
    """
    id: UUID = field(default_factory=uuid4)
    name: str = ""
    description: Optional[str] = None
    version: int = 0
    components: List[CountedComponent] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def find_component(self, component_id: UUID) -> Optional[CountedComponent]:
        for counted in self.components:
            if counted.component.id == component_id:
                return counted
        return None

    def apply_change(self, event: ChangeEvent, validator: Validator) -> None:
        """
        Validate one event and reduce it into this aggregate.

        Args:
            event: The change to apply
            validator: Gate consulted before any mutation

        Raises:
            ValidationError: If the validator rejects the event, or a
                ComponentAdded names a component that is already present.
                The aggregate is left unchanged.
        """
        validator.validate(event)

        match event:
            case NameChanged(name=name):
                self.name = name
            case DescriptionChanged(description=description):
                self.description = description
            case ComponentAdded(component=component, quantity=quantity):
                if self.find_component(component.id) is not None:
                    raise ValidationError(
                        f"Component {component.id} is already in the BOM; "
                        "update its quantity instead"
                    )
                self.components.append(CountedComponent(component, quantity))
            case ComponentRemoved(component=component):
                self.components = [
                    c for c in self.components if c.component.id != component.id
                ]
            case ComponentUpdated(component_id=component_id, quantity=quantity):
                counted = self.find_component(component_id)
                if counted is not None:
                    counted.quantity = quantity

    def increment_version(self) -> None:
        self.version += 1

    def clean_for_revert(self) -> None:
        """Drop description and components so a replay rebuilds them exactly."""
        self.description = None
        self.components = []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "components": [c.to_dict() for c in self.components],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass
class BomVersion:
    """
    One version log entry: the ordered batch of events that produced
    ``version`` of BOM ``bom_id``. Entries are never mutated.

    ``reverted_to`` is set on entries written by a revert. Their batch is the
    full history up to that version and is applied to a cleaned aggregate.
    """
    bom_id: UUID
    version: int
    changes: List[ChangeEvent]
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utc_now)
    reverted_to: Optional[int] = None

    @property
    def is_revert(self) -> bool:
        return self.reverted_to is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "bom_id": str(self.bom_id),
            "version": self.version,
            "changes": change_events_to_list(self.changes),
            "reverted_to": self.reverted_to,
            "created_at": self.created_at.isoformat(),
        }
