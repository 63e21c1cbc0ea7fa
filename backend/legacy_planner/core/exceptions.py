"""
Error types raised by the estate allocation engine.

Routers translate these into HTTP responses; services never build
user-facing strings beyond the exception message.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import InterfaceError, OperationalError


class EstateEngineError(Exception):
    """Base class for every engine failure."""

    code = "estate_error"

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context


# Validation ---------------------------------------------------------------

class ValidationError(EstateEngineError):
    code = "validation_error"


class AllocationExceededError(ValidationError):
    """Total of the translated allocations is above 100%."""

    code = "allocation_exceeded"

    def __init__(self, total: float, asset_id: Optional[str] = None):
        target = f"asset {asset_id}" if asset_id else "residue"
        super().__init__(
            f"Total allocation for {target} is {total:g}%, which exceeds 100%",
            total=total,
            asset_id=asset_id,
        )
        self.total = total
        self.asset_id = asset_id


class InvalidPercentageError(ValidationError):
    code = "invalid_percentage"


class InvalidDebtHandlingMethodError(ValidationError):
    code = "invalid_debt_handling_method"


class DebtHandlingNotApplicableError(ValidationError):
    """Debt handling only applies to vehicles and property."""

    code = "debt_handling_not_applicable"


# Lookups ------------------------------------------------------------------

class NotFoundError(EstateEngineError):
    code = "not_found"


class ProfileNotFoundError(NotFoundError):
    code = "profile_not_found"


class BeneficiaryNotFoundError(NotFoundError):
    code = "beneficiary_not_found"


class AssetNotFoundError(NotFoundError):
    code = "asset_not_found"


# Conflicts ----------------------------------------------------------------

class DuplicateError(EstateEngineError):
    code = "duplicate"


class DuplicateBeneficiaryError(DuplicateError):
    code = "duplicate_beneficiary"


# Store --------------------------------------------------------------------

class TransientIOError(EstateEngineError):
    """The database could not be reached. Not retried here."""

    code = "store_unavailable"


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise connectivity failures from SQLAlchemy as TransientIOError."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        raise TransientIOError(f"Data store unavailable during {operation}", operation=operation) from e
