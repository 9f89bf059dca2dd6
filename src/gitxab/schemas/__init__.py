"""Wire schemas for backend payloads."""
