import enum


class MedicineForm(str, enum.Enum):
    TABLET = "TABLET"
    CAPSULE = "CAPSULE"
    GEL = "GEL"
    EYE_DROPS = "EYE_DROPS"
    POWDER = "POWDER"
    GEL_CAPSULE = "GEL_CAPSULE"
    CREAM = "CREAM"


class ReasonCode(str, enum.Enum):
    PURCHASE = "PURCHASE"
    DISPENSATION = "DISPENSATION"
    ADJUSTMENT = "ADJUSTMENT"
    TRANSFER = "TRANSFER"
    EXPIRED = "EXPIRED"
    DAMAGED = "DAMAGED"
    RETURN = "RETURN"
    DISPOSE = "DISPOSE"


# DISPOSE is written only by the dispose operation.
MANUAL_REASON_CODES = tuple(code for code in ReasonCode if code is not ReasonCode.DISPOSE)

RECENT_MOVEMENTS_LIMIT = 10

# Largest value an SQLite INTEGER column holds; applies to deltas and stock.
MAX_QUANTITY = 2**63 - 1


class SnapshotSortField(str, enum.Enum):
    NAME = "name"
    STOCK = "stock"
    FORM = "form"
    EXPIRY_DATE = "expiry_date"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"
