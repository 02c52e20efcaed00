"""Domain models and I/O schemas."""
