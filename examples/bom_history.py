#!/usr/bin/env python3
"""Example: Create, update, diff and revert a BOM.

Runs against an in-memory store by default. Pass --postgres to use the
database configured through BOMLEDGER_DB_URL (or a .env file).
"""

import json

from bomledger import BomService, NewComponent, Price
from bomledger.config import configure_logging, load_settings
from bomledger.events import ComponentAdded, ComponentUpdated, NameChanged
from bomledger.store import MemoryClient, PostgresClient


def walk_through_history(service: BomService):
    """Build a short history and print each view of it.

    1. Register two catalog parts
    2. Create a BOM (version 1)
    3. Update quantities and the name (version 2)
    4. Diff version 1 against version 2
    5. Revert to version 1 (stored as version 3)
    """
    resistor = service.insert_component(NewComponent(
        name="Resistor 10k",
        part_number="RC0603FR-0710KL",
        supplier="Yageo",
        price=Price(value=0.01, currency="USD"),
    ))
    capacitor = service.insert_component(NewComponent(
        name="Capacitor 100n",
        part_number="GRM188R71H104KA93D",
        supplier="Murata",
        price=Price(value=0.02, currency="USD"),
    ))

    bom = service.create([NameChanged("TestBom"), ComponentAdded(resistor, 1)])
    print(f"✓ Created '{bom.name}' at version {bom.version}")

    bom = service.update(bom.id, [
        ComponentUpdated(resistor.id, 2),
        ComponentAdded(capacitor, 4),
        NameChanged("UpdatedName"),
    ])
    print(f"✓ Updated to version {bom.version}")

    diff = service.diff(bom.id, 1, 2)
    print("\nDiff 1 -> 2:")
    print(json.dumps(diff.to_dict(), indent=2))

    bom = service.revert(bom.id, 1)
    print(f"\n✓ Reverted to the content of version 1 as version {bom.version}")
    for counted in bom.components:
        print(f"  {counted.component.name}: {counted.quantity}")

    return bom


if __name__ == "__main__":
    import sys

    settings = load_settings()
    configure_logging(settings.log_level)

    if "--postgres" in sys.argv:
        if not settings.db_url:
            print("Set BOMLEDGER_DB_URL to use --postgres")
            sys.exit(1)
        db = PostgresClient.from_settings(settings)
        db.begin_transaction()
        db.create_schema()
        db.commit_transaction()
    else:
        db = MemoryClient()

    walk_through_history(BomService(db))
