"""
Exception handlers for the Waybill Ledger server.

This package contains the handler that maps application errors to HTTP
responses, the global handler for unexpected errors and a setup function
to register them with the FastAPI application.
"""

from .global_handler import app_error_handler, global_exception_handler, setup_exception_handlers

__all__ = ["app_error_handler", "global_exception_handler", "setup_exception_handlers"]
