"""
In-process implementation of DatabaseClient.

Keeps the same contract as PostgresClient (transactions, compare-and-swap on
version, catalog foreign keys) so the service layer can run without a
database server.
"""

import copy
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..bom import Bom, BomVersion, utc_now
from ..errors import ConflictError, ConversionError, NotFoundError, PersistenceError
from ..models import Component, CountedComponent
from .database_client import DatabaseClient

logger = logging.getLogger(__name__)


def _copy_entry(entry: BomVersion) -> BomVersion:
    # stored entries never share their change list with callers
    return BomVersion(
        bom_id=entry.bom_id,
        version=entry.version,
        changes=list(entry.changes),
        id=entry.id,
        created_at=entry.created_at,
        reverted_to=entry.reverted_to,
    )


class MemoryClient(DatabaseClient):
    """
    Dictionary-backed database client.

    A transaction works on a private copy of the tables; commit swaps the
    copy in, rollback discards it.
    """

    def __init__(self):
        self._tables: Dict[str, Dict[Any, Any]] = {
            "components": {},       # component_id -> Component
            "boms": {},             # bom_id -> row dict
            "boms_components": {},  # bom_id -> {component_id: quantity}
            "bom_versions": {},     # bom_id -> [BomVersion]
        }
        self._pending: Optional[Dict[str, Dict[Any, Any]]] = None

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def begin_transaction(self) -> None:
        if self._pending is not None:
            raise RuntimeError("Transaction already in progress")
        self._pending = copy.deepcopy(self._tables)

    def commit_transaction(self) -> None:
        if self._pending is None:
            raise RuntimeError("No transaction in progress")
        self._tables = self._pending
        self._pending = None

    def rollback_transaction(self) -> None:
        if self._pending is None:
            raise RuntimeError("No transaction in progress")
        self._pending = None
        logger.debug("In-memory transaction rolled back")

    def _write_tables(self) -> Dict[str, Dict[Any, Any]]:
        if self._pending is None:
            raise RuntimeError("No transaction in progress. Call begin_transaction() first.")
        return self._pending

    def _read_tables(self) -> Dict[str, Dict[Any, Any]]:
        # reads inside a transaction see its own uncommitted writes
        return self._pending if self._pending is not None else self._tables

    # -------------------------------------------------------------------------
    # BOM snapshot rows
    # -------------------------------------------------------------------------

    @staticmethod
    def _row(bom: Bom) -> Dict[str, Any]:
        return {
            "id": bom.id,
            "name": bom.name,
            "description": bom.description,
            "version": bom.version,
            "created_at": bom.created_at,
            "updated_at": bom.updated_at,
        }

    def insert_bom(self, bom: Bom) -> None:
        tables = self._write_tables()
        if bom.id in tables["boms"]:
            raise PersistenceError(f"duplicate key value violates unique constraint: boms.id={bom.id}")
        tables["boms"][bom.id] = self._row(bom)

    def update_bom(self, bom: Bom, expected_version: int) -> None:
        tables = self._write_tables()
        row = tables["boms"].get(bom.id)
        if row is None:
            raise NotFoundError(f"BOM {bom.id} not found")
        if row["version"] != expected_version:
            raise ConflictError(bom.id, expected_version)

        new_row = self._row(bom)
        new_row["created_at"] = row["created_at"]
        new_row["updated_at"] = utc_now()
        tables["boms"][bom.id] = new_row

    def delete_and_reinsert_component_associations(
        self,
        bom_id: UUID,
        components: List[CountedComponent]
    ) -> None:
        tables = self._write_tables()
        associations: Dict[UUID, int] = {}
        for counted in components:
            component_id = counted.component.id
            if component_id not in tables["components"]:
                raise PersistenceError(
                    f"insert on boms_components violates foreign key: component {component_id} not in catalog"
                )
            if component_id in associations:
                raise PersistenceError(
                    f"duplicate key value violates unique constraint: ({bom_id}, {component_id})"
                )
            if counted.quantity <= 0:
                raise PersistenceError(f"check constraint violated: quantity {counted.quantity} <= 0")
            associations[component_id] = counted.quantity
        tables["boms_components"][bom_id] = associations

    def _assemble(self, tables: Dict[str, Dict[Any, Any]], row: Dict[str, Any]) -> Bom:
        components = []
        for component_id, quantity in tables["boms_components"].get(row["id"], {}).items():
            component = tables["components"].get(component_id)
            if component is None:
                raise ConversionError(
                    f"BOM {row['id']} references component {component_id} missing from the catalog"
                )
            components.append(CountedComponent(component, quantity))

        return Bom(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            version=row["version"],
            components=components,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def find_bom_by_id(self, bom_id: UUID) -> Bom:
        tables = self._read_tables()
        row = tables["boms"].get(bom_id)
        if row is None:
            raise NotFoundError(f"BOM {bom_id} not found")
        return self._assemble(tables, row)

    def find_all_boms(self) -> List[Bom]:
        tables = self._read_tables()
        return [self._assemble(tables, row) for row in tables["boms"].values()]

    # -------------------------------------------------------------------------
    # Version log
    # -------------------------------------------------------------------------

    def insert_version_log_entry(self, entry: BomVersion) -> None:
        tables = self._write_tables()
        if entry.bom_id not in tables["boms"]:
            raise PersistenceError(f"insert on bom_versions violates foreign key: BOM {entry.bom_id}")
        log = tables["bom_versions"].setdefault(entry.bom_id, [])
        if any(existing.version == entry.version for existing in log):
            raise PersistenceError(
                f"duplicate key value violates unique constraint: ({entry.bom_id}, {entry.version})"
            )
        log.append(_copy_entry(entry))

    def load_version_log_entries(self, bom_id: UUID, max_version: int) -> List[BomVersion]:
        log = self._read_tables()["bom_versions"].get(bom_id, [])
        return sorted(
            (_copy_entry(entry) for entry in log if entry.version <= max_version),
            key=lambda e: e.version
        )

    # -------------------------------------------------------------------------
    # Component catalog
    # -------------------------------------------------------------------------

    def find_all_components(self) -> List[Component]:
        return list(self._read_tables()["components"].values())

    def find_component_by_id(self, component_id: UUID) -> Component:
        component = self._read_tables()["components"].get(component_id)
        if component is None:
            raise NotFoundError(f"Component {component_id} not found")
        return component

    def insert_component(self, component: Component) -> Component:
        tables = self._write_tables()
        if component.id in tables["components"]:
            raise PersistenceError(f"duplicate key value violates unique constraint: components.id={component.id}")
        tables["components"][component.id] = component
        return component

    def update_component(self, component: Component) -> Component:
        tables = self._write_tables()
        if component.id not in tables["components"]:
            raise NotFoundError(f"Component {component.id} not found")
        tables["components"][component.id] = component
        return component
