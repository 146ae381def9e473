"""Change events and their wire codec."""

from .change_events import (
    ChangeEventType,
    ChangeEvent,
    NameChanged,
    DescriptionChanged,
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
    change_event_to_dict,
    change_events_to_list,
    change_events_to_json,
    change_event_from_dict,
    change_events_from_list,
    change_events_from_json,
)

__all__ = [
    "ChangeEventType",
    "ChangeEvent",
    "NameChanged",
    "DescriptionChanged",
    "ComponentAdded",
    "ComponentRemoved",
    "ComponentUpdated",
    "change_event_to_dict",
    "change_events_to_list",
    "change_events_to_json",
    "change_event_from_dict",
    "change_events_from_list",
    "change_events_from_json",
]
