"""Core models: I/O schemas for the API and domain types shared across layers."""
