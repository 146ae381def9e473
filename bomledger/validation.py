"""
Validation rules for BOM change events.

Validators are stateless: they look at one event in isolation and either
return None or raise ValidationError. Anything with a compatible
``validate(event)`` method can stand in for BomChangeEventValidator, which is
how tests exercise the reducer without the real rules.
"""

import regex

from .errors import ValidationError
from .events import (
    ChangeEvent,
    ComponentAdded,
    ComponentRemoved,
    ComponentUpdated,
    DescriptionChanged,
    NameChanged,
)

# Characters rejected in names and descriptions
FORBIDDEN_CHARACTERS = frozenset('/()"<>\\{}')

# Names and descriptions must be shorter than this many grapheme clusters
MAX_GRAPHEMES = 255

_GRAPHEME = regex.compile(r"\X")

# Unicode White_Space, the set trimmed from both ends before the emptiness check
_EDGE_WHITESPACE = regex.compile(r"^\p{White_Space}+|\p{White_Space}+$")


class Validator:
    """
    Validator interface.

    Implement ``validate`` to accept (return None) or reject (raise
    ValidationError) a single change event.
    """

    def validate(self, event: ChangeEvent) -> None:
        raise NotImplementedError


def grapheme_count(value: str) -> int:
    """Count user-perceived characters (extended grapheme clusters)."""
    return len(_GRAPHEME.findall(value))


def is_valid_string(value: str) -> bool:
    """
    Check a name or description.

    Valid strings are non-empty after trimming, shorter than MAX_GRAPHEMES
    grapheme clusters, and contain none of FORBIDDEN_CHARACTERS.
    """
    if not _EDGE_WHITESPACE.sub("", value):
        return False
    if grapheme_count(value) >= MAX_GRAPHEMES:
        return False
    return not any(ch in FORBIDDEN_CHARACTERS for ch in value)


class BomChangeEventValidator(Validator):
    """Domain rules for every change event kind."""

    def validate(self, event: ChangeEvent) -> None:
        match event:
            case NameChanged(name=name):
                if not is_valid_string(name):
                    raise ValidationError("Invalid name input")
            case DescriptionChanged(description=description):
                if not is_valid_string(description):
                    raise ValidationError("Invalid description input")
            case ComponentAdded(quantity=quantity) | ComponentUpdated(quantity=quantity):
                if quantity <= 0:
                    raise ValidationError("Quantity must be greater than 0")
            case ComponentRemoved():
                # removal is idempotent
                return None
            case _:
                raise ValidationError(f"Unsupported change event: {event!r}")
        return None
