"""
Persistence gateway for versioned BOMs.

Three logical tables back the aggregate:

- boms:            id, name, description, version, created_at, updated_at
- boms_components: (bom_id, component_id) -> quantity
- bom_versions:    id, bom_id, version, changes (JSON event array), reverted_to,
                   created_at

plus the components catalog that boms_components joins against.

The snapshot row, the component associations and the new version log entry
of one operation must be written in one transaction: a snapshot without its
log entry (or the reverse) corrupts replay.
"""

from typing import List
from uuid import UUID

from ..bom import Bom, BomVersion
from ..models import Component, CountedComponent


class DatabaseClient:
    """
    Abstract database client interface.

    Implement this interface with your actual database client (see
    PostgresClient and MemoryClient). Write methods are only valid between
    begin_transaction() and commit_transaction()/rollback_transaction().
    """

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def begin_transaction(self) -> None:
        """Begin a database transaction."""
        raise NotImplementedError

    def commit_transaction(self) -> None:
        """Commit the current transaction."""
        raise NotImplementedError

    def rollback_transaction(self) -> None:
        """Rollback the current transaction."""
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # BOM snapshot rows
    # -------------------------------------------------------------------------

    def insert_bom(self, bom: Bom) -> None:
        """
        Insert the snapshot row of a new BOM (components are written separately).

        Args:
            bom: Aggregate at version 1
        """
        raise NotImplementedError

    def update_bom(self, bom: Bom, expected_version: int) -> None:
        """
        Overwrite the snapshot row of an existing BOM.

        The write only succeeds if the stored version still equals
        ``expected_version`` (compare-and-swap).

        Args:
            bom: Aggregate carrying the new version
            expected_version: Version the caller read before applying changes

        Raises:
            NotFoundError: If the BOM does not exist
            ConflictError: If the stored version differs from expected_version
        """
        raise NotImplementedError

    def delete_and_reinsert_component_associations(
        self,
        bom_id: UUID,
        components: List[CountedComponent]
    ) -> None:
        """
        Replace every boms_components row of a BOM.

        Args:
            bom_id: BOM ID
            components: New (component, quantity) pairs; quantities are > 0
        """
        raise NotImplementedError

    def find_bom_by_id(self, bom_id: UUID) -> Bom:
        """
        Load the current snapshot of a BOM.

        Returns:
            The BOM row with its components joined to the catalog

        Raises:
            NotFoundError: If the BOM does not exist
            ConversionError: If an association references a missing component
        """
        raise NotImplementedError

    def find_all_boms(self) -> List[Bom]:
        """Load the current snapshot of every BOM."""
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Version log
    # -------------------------------------------------------------------------

    def insert_version_log_entry(self, entry: BomVersion) -> None:
        """Append one version log entry."""
        raise NotImplementedError

    def load_version_log_entries(self, bom_id: UUID, max_version: int) -> List[BomVersion]:
        """
        Load version log entries of a BOM.

        Args:
            bom_id: BOM ID
            max_version: Highest entry version to include

        Returns:
            Entries with version <= max_version, ordered by version ascending
        """
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Component catalog
    # -------------------------------------------------------------------------

    def find_all_components(self) -> List[Component]:
        raise NotImplementedError

    def find_component_by_id(self, component_id: UUID) -> Component:
        """
        Raises:
            NotFoundError: If the component does not exist
        """
        raise NotImplementedError

    def insert_component(self, component: Component) -> Component:
        raise NotImplementedError

    def update_component(self, component: Component) -> Component:
        """
        Raises:
            NotFoundError: If the component does not exist
        """
        raise NotImplementedError
