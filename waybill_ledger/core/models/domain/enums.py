"""Domain enums for fleet and stock accounting."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Roles a user can hold inside an organization."""

    admin = "admin"
    accountant = "accountant"
    dispatcher = "dispatcher"
    driver = "driver"


class Permission(str, Enum):
    """Granular permissions checked by API endpoints."""

    waybill_read = "waybill.read"
    waybill_create = "waybill.create"
    waybill_edit = "waybill.edit"
    waybill_post = "waybill.post"
    waybill_cancel = "waybill.cancel"
    waybill_delete = "waybill.delete"
    waybill_override_norm = "waybill.override_norm"

    stock_read = "stock.read"
    stock_write = "stock.write"
    stock_void = "stock.void"

    blank_read = "blank.read"
    blank_manage = "blank.manage"

    period_lock = "period.lock"
    period_unlock = "period.unlock"

    dictionary_read = "dictionary.read"
    dictionary_write = "dictionary.write"

    settings_write = "settings.write"
    audit_read = "audit.read"
    user_manage = "user.manage"


_READ_ONLY = {
    Permission.waybill_read,
    Permission.stock_read,
    Permission.blank_read,
    Permission.dictionary_read,
}

ROLE_PERMISSIONS: dict[UserRole, frozenset[Permission]] = {
    UserRole.admin: frozenset(Permission),
    UserRole.accountant: frozenset(
        _READ_ONLY
        | {
            Permission.waybill_create,
            Permission.waybill_edit,
            Permission.waybill_post,
            Permission.waybill_cancel,
            Permission.waybill_delete,
            Permission.waybill_override_norm,
            Permission.stock_write,
            Permission.stock_void,
            Permission.blank_manage,
            Permission.period_lock,
            Permission.dictionary_write,
            Permission.audit_read,
        }
    ),
    UserRole.dispatcher: frozenset(
        _READ_ONLY
        | {
            Permission.waybill_create,
            Permission.waybill_edit,
            Permission.waybill_post,
            Permission.waybill_cancel,
            Permission.blank_manage,
        }
    ),
    UserRole.driver: frozenset(
        {
            Permission.waybill_read,
            Permission.waybill_create,
            Permission.waybill_edit,
            Permission.blank_read,
            Permission.dictionary_read,
        }
    ),
}


class WaybillStatus(str, Enum):
    """Lifecycle status of a waybill."""

    draft = "DRAFT"
    submitted = "SUBMITTED"
    posted = "POSTED"
    cancelled = "CANCELLED"


class FuelCalculationMethod(str, Enum):
    """How the planned fuel of a waybill is derived."""

    boiler = "BOILER"  # From the odometer distance.
    segments = "SEGMENTS"  # Sum over route segments.
    mixed = "MIXED"  # Route segments, checked against the odometer.


class FuelSourceType(str, Enum):
    """Where a refuel recorded on a waybill line came from."""

    fuel_card = "FUEL_CARD"
    warehouse = "WAREHOUSE"


class StockMovementType(str, Enum):
    income = "INCOME"
    expense = "EXPENSE"
    transfer = "TRANSFER"
    adjustment = "ADJUSTMENT"


class StockLocationType(str, Enum):
    warehouse = "WAREHOUSE"
    fuel_card = "FUEL_CARD"
    vehicle_tank = "VEHICLE_TANK"


class StockDocumentType(str, Enum):
    """Document types that stock movements can be attached to."""

    waybill = "WAYBILL"
    fuel_card_reset = "FUEL_CARD_RESET"
    fuel_card_topup = "FUEL_CARD_TOPUP"
    correction = "CORRECTION"
    manual = "MANUAL"


# Movements of these documents are only reversed through storno
SYSTEM_DOCUMENT_TYPES = frozenset(
    {
        StockDocumentType.waybill.value,
        StockDocumentType.fuel_card_reset.value,
        StockDocumentType.fuel_card_topup.value,
    }
)


class BlankStatus(str, Enum):
    """Lifecycle status of a strict-accountability blank."""

    available = "AVAILABLE"
    issued = "ISSUED"
    reserved = "RESERVED"
    used = "USED"
    spoiled = "SPOILED"


class BlankSpoilReason(str, Enum):
    damaged = "damaged"
    misprint = "misprint"
    lost = "lost"
    other = "other"


class BlankAction(str, Enum):
    """What happens to the blank of a deleted waybill."""

    release = "return"
    spoil = "spoil"


class AuditAction(str, Enum):
    create = "CREATE"
    update = "UPDATE"
    delete = "DELETE"
    status_change = "STATUS_CHANGE"
    blank_spoil = "BLANK_SPOIL"


class AuditEntity(str, Enum):
    waybill = "WAYBILL"
    blank = "BLANK"
    stock_movement = "STOCK_MOVEMENT"
    period_lock = "PERIOD_LOCK"


class ResetFrequency(str, Enum):
    """How often a fuel card reset rule falls due."""

    monthly = "MONTHLY"
    quarterly = "QUARTERLY"
    yearly = "YEARLY"
    manual = "MANUAL"


class ResetScope(str, Enum):
    all_cards = "ALL_CARDS"
    specific_cards = "SPECIFIC_CARDS"


class ResetMode(str, Enum):
    """What happens to the balance left on a card."""

    transfer_to_warehouse = "TRANSFER_TO_WAREHOUSE"
    expire_expense = "EXPIRE_EXPENSE"
