"""
Database Package

Provides ledger store access for the FinDash application.
"""

from findash.database.base import BaseDatabase
from findash.database.main import Database

__all__ = ["Database", "BaseDatabase"]
