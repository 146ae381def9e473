from .bom import Bom, BomVersion
from .models import Component, CountedComponent, NewComponent, Price
from .service import BomService
from .validation import BomChangeEventValidator, Validator

__all__ = [
    "Bom",
    "BomVersion",
    "Component",
    "CountedComponent",
    "NewComponent",
    "Price",
    "BomService",
    "BomChangeEventValidator",
    "Validator",
]
