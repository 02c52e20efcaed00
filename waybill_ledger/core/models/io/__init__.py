"""I/O schemas for API requests and responses."""
