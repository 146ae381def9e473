"""
Error taxonomy for versioned BOM operations.

- ValidationError: user-correctable input problem, never retried
- NotFoundError: referenced BOM, component or version does not exist
- BadRangeError: diff range is not ascending
- ConflictError: the BOM version changed between read and write
- ConversionError: internal invariant broken while assembling a result
- PersistenceError: database or transport failure (transaction rolled back)
"""


class BomLedgerError(Exception):
    """Base class for all bomledger errors."""


class ValidationError(BomLedgerError):
    """A change event or event batch violates a domain rule."""


class NotFoundError(BomLedgerError):
    """A BOM, component or version does not exist."""


class BadRangeError(BomLedgerError):
    """A version range is empty or reversed."""


class ConflictError(BomLedgerError):
    """Another writer committed a new version first."""

    def __init__(self, bom_id, expected_version: int):
        super().__init__(
            f"BOM {bom_id} is no longer at version {expected_version}; reload and retry"
        )
        self.bom_id = bom_id
        self.expected_version = expected_version


class ConversionError(BomLedgerError):
    """Stored data could not be assembled into a domain object."""


class PersistenceError(BomLedgerError):
    """The storage layer failed; the surrounding transaction was rolled back."""
