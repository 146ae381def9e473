"""
Catalog value types shared by events, aggregates and diffs.

A Component is the immutable catalog entry. Change events embed a full copy
of it so that replaying history never depends on the current catalog.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from .errors import ValidationError


@dataclass(frozen=True)
class Price:
    value: float
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Price":
        try:
            return cls(value=float(data["value"]), currency=str(data["currency"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid price payload: {data!r}") from e


@dataclass(frozen=True)
class Component:
    """
    A catalog part.

    Equality is structural, so two copies of the same catalog row compare
    equal even when one came from an event payload and one from the database.
    """
    id: UUID
    name: str
    part_number: str
    supplier: str
    price: Price
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "name": self.name,
            "part_number": self.part_number,
            "description": self.description,
            "supplier": self.supplier,
            "price": self.price.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Component":
        if not isinstance(data, dict):
            raise ValidationError(f"Component payload must be an object, got {data!r}")
        try:
            return cls(
                id=UUID(str(data["id"])),
                name=data["name"],
                part_number=data["part_number"],
                description=data.get("description"),
                supplier=data["supplier"],
                price=Price.from_dict(data["price"]),
            )
        except (KeyError, ValueError) as e:
            raise ValidationError(f"Invalid component payload: {e}") from e


@dataclass(frozen=True)
class NewComponent:
    """Catalog entry that has not been assigned an id yet."""
    name: str
    part_number: str
    supplier: str
    price: Price
    description: Optional[str] = None

    def with_id(self, component_id: Optional[UUID] = None) -> Component:
        return Component(
            id=component_id or uuid4(),
            name=self.name,
            part_number=self.part_number,
            description=self.description,
            supplier=self.supplier,
            price=self.price,
        )


@dataclass
class CountedComponent:
    component: Component
    quantity: int

    def to_dict(self) -> Dict[str, Any]:
        return {"component": self.component.to_dict(), "quantity": self.quantity}
