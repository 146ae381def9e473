"""
Change events for versioned BOMs.

A change event is an atomic, immutable description of one mutation of a BOM.
The set of event kinds is closed:

- NameChanged(name)
- DescriptionChanged(description)
- ComponentAdded(component, quantity)
- ComponentRemoved(component)
- ComponentUpdated(component_id, quantity)

Events are the only durable record of history. Each one carries everything
needed to replay it (component payloads are embedded, not referenced by id),
so a stored batch can be folded back into a BOM without touching the catalog.

WIRE FORMAT:
    {"type": "<snake_case kind>", "data": <payload>}

    name_changed         "New name"
    description_changed  "New description"
    component_added      [<component>, <quantity>]
    component_removed    <component>
    component_updated    ["<component uuid>", <quantity>]

The same format is used for the bom_versions.changes column and for request
and response bodies.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, List, Union
from uuid import UUID

from ..errors import ValidationError
from ..models import Component


# =============================================================================
# EVENT TAXONOMY
# =============================================================================

class ChangeEventType(Enum):
    """Wire tags for each event kind."""
    NAME_CHANGED = "name_changed"
    DESCRIPTION_CHANGED = "description_changed"
    COMPONENT_ADDED = "component_added"
    COMPONENT_REMOVED = "component_removed"
    COMPONENT_UPDATED = "component_updated"


# =============================================================================
# EVENT TYPES
# =============================================================================

@dataclass(frozen=True)
class NameChanged:
    name: str

    event_type: ClassVar[ChangeEventType] = ChangeEventType.NAME_CHANGED

    def payload(self) -> Any:
        return self.name

    def __str__(self) -> str:
        return f"NameChanged({self.name})"


@dataclass(frozen=True)
class DescriptionChanged:
    description: str

    event_type: ClassVar[ChangeEventType] = ChangeEventType.DESCRIPTION_CHANGED

    def payload(self) -> Any:
        return self.description

    def __str__(self) -> str:
        return f"DescriptionChanged({self.description})"


@dataclass(frozen=True)
class ComponentAdded:
    component: Component
    quantity: int

    event_type: ClassVar[ChangeEventType] = ChangeEventType.COMPONENT_ADDED

    def payload(self) -> Any:
        return [self.component.to_dict(), self.quantity]

    def __str__(self) -> str:
        return f"ComponentAdded({self.component.name}, {self.quantity})"


@dataclass(frozen=True)
class ComponentRemoved:
    component: Component

    event_type: ClassVar[ChangeEventType] = ChangeEventType.COMPONENT_REMOVED

    def payload(self) -> Any:
        return self.component.to_dict()

    def __str__(self) -> str:
        return f"ComponentRemoved({self.component.name})"


@dataclass(frozen=True)
class ComponentUpdated:
    component_id: UUID
    quantity: int

    event_type: ClassVar[ChangeEventType] = ChangeEventType.COMPONENT_UPDATED

    def payload(self) -> Any:
        return [str(self.component_id), self.quantity]

    def __str__(self) -> str:
        return f"ComponentUpdated({self.component_id}, {self.quantity})"


ChangeEvent = Union[
    NameChanged,
    DescriptionChanged,
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
]


# =============================================================================
# ENCODING
# =============================================================================

def change_event_to_dict(event: ChangeEvent) -> Dict[str, Any]:
    """Serialize one event to its tagged wire form."""
    return {"type": event.event_type.value, "data": event.payload()}


def change_events_to_list(events: Iterable[ChangeEvent]) -> List[Dict[str, Any]]:
    return [change_event_to_dict(e) for e in events]


def change_events_to_json(events: Iterable[ChangeEvent]) -> str:
    return json.dumps(change_events_to_list(events))


# =============================================================================
# DECODING
# =============================================================================

def _quantity(value: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Quantity must be an integer, got {value!r}")
    return value


def _pair(data: Any, kind: str) -> List[Any]:
    if not isinstance(data, (list, tuple)) or len(data) != 2:
        raise ValidationError(f"{kind} payload must be a two-element array, got {data!r}")
    return list(data)


def _string(data: Any, kind: str) -> str:
    if not isinstance(data, str):
        raise ValidationError(f"{kind} payload must be a string, got {data!r}")
    return data


def change_event_from_dict(raw: Dict[str, Any]) -> ChangeEvent:
    """
    Decode one tagged event.

    Args:
        raw: Dictionary with "type" and "data" keys

    Returns:
        The matching ChangeEvent instance

    Raises:
        ValidationError: If the tag is unknown or the payload is malformed
    """
    if not isinstance(raw, dict) or "type" not in raw or "data" not in raw:
        raise ValidationError(f"Change event must be an object with 'type' and 'data', got {raw!r}")

    try:
        event_type = ChangeEventType(raw["type"])
    except ValueError:
        raise ValidationError(f"Unknown change event type: {raw['type']!r}") from None

    data = raw["data"]
    kind = event_type.value

    match event_type:
        case ChangeEventType.NAME_CHANGED:
            return NameChanged(_string(data, kind))
        case ChangeEventType.DESCRIPTION_CHANGED:
            return DescriptionChanged(_string(data, kind))
        case ChangeEventType.COMPONENT_ADDED:
            component, quantity = _pair(data, kind)
            return ComponentAdded(Component.from_dict(component), _quantity(quantity))
        case ChangeEventType.COMPONENT_REMOVED:
            return ComponentRemoved(Component.from_dict(data))
        case ChangeEventType.COMPONENT_UPDATED:
            component_id, quantity = _pair(data, kind)
            try:
                parsed_id = UUID(str(component_id))
            except ValueError:
                raise ValidationError(f"Invalid component id: {component_id!r}") from None
            return ComponentUpdated(parsed_id, _quantity(quantity))


def change_events_from_list(raw_events: Any) -> List[ChangeEvent]:
    if not isinstance(raw_events, list):
        raise ValidationError("Change events must be a JSON array")
    return [change_event_from_dict(raw) for raw in raw_events]


def change_events_from_json(payload: Union[str, bytes]) -> List[ChangeEvent]:
    try:
        raw_events = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Change events are not valid JSON: {e}") from e
    return change_events_from_list(raw_events)
