"""Core domain, persistence and service layer of Waybill Ledger."""
