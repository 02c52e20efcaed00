"""
Database repository layer using SQLModel.

This package contains all repository classes organized by business domain
and table relationships. Each module provides type-safe data access
operations for its corresponding SQLModel entity models.

Modules:
- base: BaseRepository interface, the generic SQLModel implementation and QueryBuilder
- organizations: Organizations and users
- drivers, vehicles, fuel_cards, stock_items: Dictionaries
- stock_locations: Stock locations
- stock_movements: Stock ledger and balance aggregation
- blanks: Blank batches and blanks
- waybills: Waybills, fuel lines and routes
- period_locks: Closed periods
- reset_rules: Fuel card reset rules
- audit_log: Audit trail
- app_settings: Key/value settings
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
    stock_items,
    stock_locations,
    stock_movements,
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
    "stock_items",
    "stock_locations",
    "stock_movements",
    "vehicles",
    "waybills",
]
