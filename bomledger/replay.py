"""
Rebuilding BOM state from its version log.

The log is the source of truth: replay folds event batches through
``Bom.apply_change`` starting from a cleared aggregate, and derives the
resulting version from the number of entries consumed rather than trusting
stored metadata.

Entries written by a revert carry the whole history up to their target
version, so the aggregate is cleared again before such an entry is folded.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from .bom import Bom, BomVersion
from .errors import ConversionError, ValidationError
from .events import ChangeEvent, NameChanged
from .validation import Validator

logger = logging.getLogger(__name__)


def concat_changes(entries: Iterable[BomVersion]) -> List[ChangeEvent]:
    """Flatten version log entries into one ordered event list."""
    events: List[ChangeEvent] = []
    for entry in sorted(entries, key=lambda e: e.version):
        events.extend(entry.changes)
    return events


def history_changes(entries: Iterable[BomVersion]) -> List[ChangeEvent]:
    """
    Events that rebuild the state after the last entry from a cleared BOM.

    Starts at the most recent revert entry, since everything before it is
    already contained in that entry's batch.
    """
    ordered = sorted(entries, key=lambda e: e.version)
    start = 0
    for index, entry in enumerate(ordered):
        if entry.is_revert:
            start = index
    return concat_changes(ordered[start:])


def build_bom(events: Sequence[ChangeEvent], validator: Validator) -> Bom:
    """
    Construct a BOM from scratch.

    A default Bom is folded through every event in order. The creation guard
    runs once, before anything is applied.

    Args:
        events: Candidate creation batch
        validator: Gate for each event

    Returns:
        New aggregate at version 1

    Raises:
        ValidationError: If the batch is empty, has no NameChanged event,
            or any event is rejected
    """
    if not events:
        raise ValidationError("Cannot create a BOM from an empty event list")
    if not any(isinstance(e, NameChanged) for e in events):
        raise ValidationError("Cannot create a BOM without a name_changed event")

    bom = Bom()
    for event in events:
        bom.apply_change(event, validator)
    bom.increment_version()
    return bom


def replay(
    entries: Sequence[BomVersion],
    validator: Validator,
    base: Optional[Bom] = None,
) -> Bom:
    """
    Reconstruct a BOM by folding version log entries.

    Args:
        entries: Log entries of one BOM; must form the contiguous prefix
            1..n once sorted by version
        validator: Gate for each replayed event
        base: Aggregate whose identity (id, timestamps) and name are kept.
            Its description and components are cleared before folding.

    Returns:
        Aggregate at version len(entries)

    Raises:
        ConversionError: If the entries have gaps, duplicates, or belong to
            another BOM
        ValidationError: If a stored event no longer passes validation
    """
    ordered = sorted(entries, key=lambda e: e.version)

    expected = list(range(1, len(ordered) + 1))
    found = [e.version for e in ordered]
    if found != expected:
        raise ConversionError(f"Version log is not contiguous: expected {expected}, found {found}")

    bom = Bom() if base is None else Bom(
        id=base.id,
        name=base.name,
        created_at=base.created_at,
        updated_at=base.updated_at,
    )
    for entry in ordered:
        if entry.bom_id != bom.id and base is not None:
            raise ConversionError(f"Version log entry {entry.id} belongs to BOM {entry.bom_id}, not {bom.id}")

    bom.clean_for_revert()
    for entry in ordered:
        if entry.is_revert:
            bom.clean_for_revert()
        for event in entry.changes:
            bom.apply_change(event, validator)
    bom.version = len(ordered)

    logger.debug(f"Replayed BOM {bom.id} to version {bom.version} from {len(ordered)} log entries")
    return bom
