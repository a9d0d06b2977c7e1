"""
Typed Exception Hierarchy for the Field Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every rejection the engine produces is shown verbatim to a dispatcher or a
technician, and is also handled programmatically by the host application.
Callers therefore catch by TYPE and read structured ATTRIBUTES, never parse
message strings:

    try:
        coordinator.transfer(request, actor="dispatch")
    except InsufficientStockError as e:
        show_toast(str(e))                   # user-facing message
        api_response(code=e.code,            # machine-readable
                     shortfall=e.shortfall)  # structured data

Rules:
  1. Every error has a typed exception class.
  2. Every exception has a class-level CODE attribute.
  3. Exceptions carry structured data, not just a message string.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FieldStockError (base)
    |
    +-- ValidationError
    |   +-- InactiveUnitError
    |
    +-- InvalidTransferError
    +-- InvalidQuantityError
    +-- InsufficientStockError
    +-- NotFoundError
    +-- ConflictError
    +-- ImmutabilityViolationError
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                   | When Raised
-----------------------|------------------------------------------------------
VALIDATION_ERROR       | Malformed or duplicate input (SKU, negative numbers)
INACTIVE_UNIT          | Transfer destination unit is inactive
INVALID_TRANSFER       | Source and destination are the same location
INVALID_QUANTITY       | Quantity <= 0 on a transfer line or removal
INSUFFICIENT_STOCK     | Not enough stock at source (carries shortfall)
NOT_FOUND              | Unknown item, unit, lot or transfer record
CONFLICT               | Item deletion blocked by deployed lots
IMMUTABILITY_VIOLATION | Attempt to edit or delete a transfer record
CONFIGURATION_ERROR    | Invalid YAML configuration value

None of these are fatal to the process. There is no automatic retry: a
rejected operation has had no effect and must be resubmitted by the caller.
"""


class FieldStockError(Exception):
    """
    Base exception for all field stock errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FIELDSTOCK_ERROR"


class ValidationError(FieldStockError):
    """Malformed or duplicate input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InactiveUnitError(ValidationError):
    """Stock cannot be sent to a unit that is out of service."""

    code: str = "INACTIVE_UNIT"

    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        super().__init__(
            f"Mobile unit {unit_id} is inactive and cannot receive stock",
            field="destination_location",
        )


class InvalidTransferError(FieldStockError):
    """Source and destination are the same location."""

    code: str = "INVALID_TRANSFER"

    def __init__(self, location: str):
        self.location = location
        super().__init__(
            f"Source and destination cannot be the same ({location})"
        )


class InvalidQuantityError(FieldStockError):
    """Quantity on a transfer line or removal is not a positive whole number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: int, item_id: str | None = None):
        self.quantity = quantity
        self.item_id = item_id
        target = f" for item {item_id}" if item_id else ""
        super().__init__(
            f"Quantity must be a whole number greater than zero{target}, got {quantity!r}"
        )


class InsufficientStockError(FieldStockError):
    """
    Not enough stock at the source location.

    Carries the shortfall so the caller can tell the user exactly how many
    units are missing.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        item_id: str,
        location: str,
        requested: int,
        available: int,
        item_name: str | None = None,
    ):
        self.item_id = item_id
        self.item_name = item_name
        self.location = location
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        label = item_name or item_id
        super().__init__(
            f"Only {available} units of {label} available at {location}; "
            f"requested {requested} (short by {self.shortfall})"
        )


class NotFoundError(FieldStockError):
    """Unknown item, unit, lot or transfer record."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} not found: {entity_id}")


class ConflictError(FieldStockError):
    """Operation blocked by existing state (e.g. deployed lots)."""

    code: str = "CONFLICT"

    def __init__(self, entity_id: str, reason: str):
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Conflict on {entity_id}: {reason}")


class ImmutabilityViolationError(FieldStockError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


class ConfigurationError(FieldStockError):
    """Configuration file or value is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for '{key}': {reason}")
