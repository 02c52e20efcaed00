"""Unit tests for the database utilities and repositories.

All tests use in-memory SQLite so no external database service is needed.
"""
