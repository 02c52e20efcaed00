"""
Middleware modules for the Waybill Ledger server.

This package contains custom middleware for request/response logging and
request correlation.
"""

from .request_logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
