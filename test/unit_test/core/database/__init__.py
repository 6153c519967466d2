"""Unit tests for the database layer in mortiscope/core/database.

Repositories run against an in-memory SQLite database; the engine helpers are
checked without connecting anywhere.
"""
