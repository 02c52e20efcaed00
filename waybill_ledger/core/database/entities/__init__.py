"""
Database entity models.

This package contains all database entity models organized by business domain
and table relationships. Importing it registers every table on the metadata.

Modules:
- organizations: Organizations and their users
- drivers: Drivers
- vehicles: Vehicles with consumption norms and synced readings
- fuel_cards: Fuel cards
- stock: Stock items, locations and the movement ledger
- blanks: Blank batches and numbered blanks
- waybills: Waybills with fuel lines and routes
- period_locks: Closed accounting periods
- reset_rules: Fuel card reset rules
- audit_log: Audit trail
- app_settings: Per-organization key/value settings
"""

from . import (
    app_settings,
    audit_log,
    blanks,
    drivers,
    fuel_cards,
    organizations,
    period_locks,
    reset_rules,
    stock,
    vehicles,
    waybills,
)

__all__ = [
    "app_settings",
    "audit_log",
    "blanks",
    "drivers",
    "fuel_cards",
    "organizations",
    "period_locks",
    "reset_rules",
    "stock",
    "vehicles",
    "waybills",
]
