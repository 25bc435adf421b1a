"""
Store Module

Key-value storage and persistence layer.

This module provides:
- SQLite connection scope with guaranteed release
- Shared in-memory database selected by ':memory:'
- Versioned schema installer for the kvstore table
- Row mapper for select, insert-if-absent and update statements
- Immediate transactions for read-modify-write updates
"""

__version__ = "0.1.0"
