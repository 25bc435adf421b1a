"""
KVStore CLI Module

Command-line interface for the key-value store.

This module provides:
- list-keys, get, set and exists commands
- YAML-based configuration (database path, log level, lock timeout)
- Logging setup
- Mapping of operation results to exit codes
"""

__version__ = "0.1.0"
