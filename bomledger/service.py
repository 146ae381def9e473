"""
Boundary operations for versioned BOMs.

BomService is what a request layer calls. Every write follows the same flow:

1. Load the current aggregate (or start from scratch for create)
2. Fold the candidate events through Bom.apply_change, validating each
3. In ONE transaction: write the snapshot row, replace the component
   associations, append one version log entry

Any failure rolls the whole transaction back. Nothing here retries; a
ConflictError means another writer won and the caller may reload and retry.

History is never rewritten. A revert appends a new version whose content
matches an older one.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from .bom import Bom, BomVersion, utc_now
from .diff import BomDiff, diff_bom, diff_snapshots
from .errors import (
    BadRangeError,
    ConflictError,
    ConversionError,
    NotFoundError,
    ValidationError,
)
from .events import ChangeEvent
from .models import Component, NewComponent
from .replay import build_bom, concat_changes, history_changes, replay
from .store.database_client import DatabaseClient
from .validation import BomChangeEventValidator, Validator

logger = logging.getLogger(__name__)


class BomService:
    """
    Versioned BOM operations on top of a DatabaseClient.

    Args:
        db: Persistence gateway
        validator: Change event gate (defaults to BomChangeEventValidator)
    """

    def __init__(self, db: DatabaseClient, validator: Optional[Validator] = None):
        self.db = db
        self.validator = validator or BomChangeEventValidator()

    # =========================================================================
    # READS
    # =========================================================================

    def get_current(self, bom_id: UUID) -> Bom:
        """
        Raises:
            NotFoundError: If the BOM does not exist
        """
        return self.db.find_bom_by_id(bom_id)

    def find_all_boms(self) -> List[Bom]:
        return self.db.find_all_boms()

    def get_at_version(self, bom_id: UUID, version: int) -> Bom:
        """
        Reconstruct a BOM as it was at ``version`` by replaying its log.

        Raises:
            NotFoundError: If the BOM does not exist or the version is
                outside 1..current version
        """
        current = self.db.find_bom_by_id(bom_id)
        self._check_version(current, version)

        entries = self._load_history(bom_id, version)
        return replay(entries, self.validator, base=current)

    def diff(self, bom_id: UUID, from_version: int, to_version: int) -> BomDiff:
        """
        Net diff between two versions.

        ``from_version`` may be 0, meaning "an empty BOM", so that the first
        version can be diffed as a whole. A window that contains a revert is
        compared state to state, since a revert batch replaces the content.

        Raises:
            BadRangeError: If from_version >= to_version or from_version < 0
            NotFoundError: If the BOM does not exist or to_version exceeds
                its history
        """
        if from_version < 0 or from_version >= to_version:
            raise BadRangeError(
                f"Invalid version range {from_version}..{to_version}: 'from' must be >= 0 and < 'to'"
            )

        current = self.db.find_bom_by_id(bom_id)
        self._check_version(current, to_version)

        entries = self._load_history(bom_id, to_version)
        if from_version == 0:
            base = Bom(id=current.id, created_at=current.created_at, updated_at=current.updated_at)
        else:
            base = replay(entries[:from_version], self.validator, base=current)
        window_entries = entries[from_version:]
        window = concat_changes(window_entries)

        if any(entry.is_revert for entry in window_entries):
            target = replay(entries, self.validator, base=current)
            diff = diff_snapshots(base, target)
        else:
            diff = diff_bom(base, window)
        logger.debug(
            f"Diff BOM {bom_id} {from_version}..{to_version}: {len(window)} events, "
            f"{len(diff.components_added)} added, {len(diff.components_updated)} updated, "
            f"{len(diff.components_removed)} removed"
        )
        return diff

    # =========================================================================
    # WRITES
    # =========================================================================

    def create(self, events: Sequence[ChangeEvent]) -> Bom:
        """
        Create a BOM from a batch of change events.

        Raises:
            ValidationError: If the batch is empty, has no name_changed event,
                or any event is rejected
        """
        events = list(events)
        bom = build_bom(events, self.validator)

        self._in_transaction(
            f"create BOM {bom.id}",
            lambda: self._write_new(bom, events),
        )
        logger.info(f"Created BOM {bom.id} '{bom.name}' with {len(bom.components)} components")
        return self.db.find_bom_by_id(bom.id)

    def update(
        self,
        bom_id: UUID,
        events: Sequence[ChangeEvent],
        expected_version: Optional[int] = None
    ) -> Bom:
        """
        Apply a batch of change events as one new version.

        Args:
            bom_id: BOM to update
            events: Ordered change events; at least one
            expected_version: If given, fail with ConflictError unless the
                BOM is still at this version

        Raises:
            ValidationError: If the batch is empty or any event is rejected
            NotFoundError: If the BOM does not exist
            ConflictError: If another writer committed first
        """
        events = list(events)
        if not events:
            raise ValidationError("Cannot update a BOM with an empty event list")

        bom = self._in_transaction(
            f"update BOM {bom_id}",
            lambda: self._write_update(bom_id, events, expected_version),
        )
        logger.info(f"Updated BOM {bom_id} to version {bom.version} ({len(events)} events)")
        return self.db.find_bom_by_id(bom_id)

    def revert(self, bom_id: UUID, target_version: int) -> Bom:
        """
        Restore the content of ``target_version`` as a NEW version.

        The result's name, description and components equal the target
        version's, and its version is current + 1.

        Raises:
            NotFoundError: If the BOM does not exist or target_version is
                outside its history
        """
        current = self.db.find_bom_by_id(bom_id)
        self._check_version(current, target_version)

        entries = self._load_history(bom_id, target_version)
        target = replay(entries, self.validator, base=current)
        events = history_changes(entries)

        def work() -> Bom:
            bom = self._write_update(bom_id, events, current.version, reverted_to=target_version)
            if not _same_content(bom, target):
                raise ConversionError(
                    f"Revert of BOM {bom_id} to version {target_version} did not reproduce its content"
                )
            return bom

        reverted = self._in_transaction(f"revert BOM {bom_id} to version {target_version}", work)

        logger.info(
            f"Reverted BOM {bom_id} to the content of version {target_version} "
            f"as version {reverted.version}"
        )
        return self.db.find_bom_by_id(bom_id)

    # =========================================================================
    # COMPONENT CATALOG
    # =========================================================================

    def find_all_components(self) -> List[Component]:
        return self.db.find_all_components()

    def find_component_by_id(self, component_id: UUID) -> Component:
        return self.db.find_component_by_id(component_id)

    def insert_component(self, new_component: NewComponent) -> Component:
        component = new_component.with_id()
        return self._in_transaction(
            f"insert component {component.id}",
            lambda: self.db.insert_component(component),
        )

    def update_component(self, component: Component) -> Component:
        return self._in_transaction(
            f"update component {component.id}",
            lambda: self.db.update_component(component),
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _in_transaction(self, description: str, work):
        """
        Run ``work`` inside one database transaction.

        Commits on success; rolls back and re-raises if ``work`` fails. A
        failed commit ends the transaction inside the client, so it is only
        logged and re-raised.
        """
        self.db.begin_transaction()

        try:
            result = work()

        except (ValidationError, NotFoundError, ConflictError) as e:
            self.db.rollback_transaction()
            logger.warning(f"Rolled back {description}: {e}")
            raise

        except Exception as e:
            self.db.rollback_transaction()
            logger.error(f"Rolled back {description}: {e}", exc_info=True)
            raise

        try:
            self.db.commit_transaction()
        except Exception as e:
            logger.error(f"Commit failed for {description}: {e}", exc_info=True)
            raise

        return result

    def _write_new(self, bom: Bom, events: List[ChangeEvent]) -> Bom:
        self.db.insert_bom(bom)
        self.db.delete_and_reinsert_component_associations(bom.id, bom.components)
        self.db.insert_version_log_entry(BomVersion(bom_id=bom.id, version=bom.version, changes=events))
        return bom

    def _write_update(
        self,
        bom_id: UUID,
        events: List[ChangeEvent],
        expected_version: Optional[int],
        reverted_to: Optional[int] = None
    ) -> Bom:
        bom = self.db.find_bom_by_id(bom_id)
        read_version = bom.version
        if expected_version is not None and expected_version != read_version:
            raise ConflictError(bom_id, expected_version)

        if reverted_to is not None:
            bom.clean_for_revert()
        bom.increment_version()

        for event in events:
            bom.apply_change(event, self.validator)
        bom.updated_at = utc_now()

        self.db.update_bom(bom, expected_version=read_version)
        self.db.delete_and_reinsert_component_associations(bom_id, bom.components)
        self.db.insert_version_log_entry(BomVersion(
            bom_id=bom_id,
            version=bom.version,
            changes=events,
            reverted_to=reverted_to,
        ))
        return bom

    @staticmethod
    def _check_version(current: Bom, version: int) -> None:
        if version < 1 or version > current.version:
            raise NotFoundError(
                f"Version {version} not found. Your latest version is {current.version}"
            )

    def _load_history(self, bom_id: UUID, version: int) -> List[BomVersion]:
        entries = self.db.load_version_log_entries(bom_id, version)
        if len(entries) != version:
            raise ConversionError(
                f"BOM {bom_id} has {len(entries)} version log entries up to version {version}"
            )
        return entries


def _same_content(a: Bom, b: Bom) -> bool:
    """Compare name, description and components, ignoring order and identity metadata."""
    def _components(bom: Bom):
        return sorted((str(c.component.id), c.quantity) for c in bom.components)

    return (
        a.name == b.name and
        a.description == b.description and
        _components(a) == _components(b)
    )
