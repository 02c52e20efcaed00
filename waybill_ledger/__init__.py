"""Waybill Ledger.

Backend service for fleet accounting: organizations, drivers, vehicles,
fuel cards, fuel stock and waybill documents.

Core subpackages
----------------

- ``waybill_ledger.core``:

  - Database entities and repositories (SQLModel, async SQLAlchemy).
  - Domain rules: fuel norm calculation, season detection and the waybill
    status machine.
  - Services: the stock movement ledger, blank accounting, waybill posting
    and period locks.

- ``waybill_ledger.server``:

  - The FastAPI application, JWT authentication and the REST endpoints.

Typical workflow
----------------

1. Stock fuel with an ``INCOME`` movement into a warehouse.
2. Create a waybill for a vehicle and driver. A blank is reserved for it.
3. Post the waybill. Refuels become ``TRANSFER`` movements into the vehicle
   tank, consumption becomes an ``EXPENSE`` and the blank is marked used.
4. Return the waybill to draft to correct it. Its movements are reversed
   (storno) and the vehicle readings are rolled back.
"""
