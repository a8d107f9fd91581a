"""
Database Module
Dokument-Collections (PostgreSQL/JSONB), Manager, Store und Reconciliation
"""

from .document_store import DocumentStore
from .manager import DatabaseManager
from .reconciliation import merge_season_stats, reconcile_player_stats
from .schema import COLLECTIONS, Base

__all__ = [
    "DatabaseManager",
    "DocumentStore",
    "Base",
    "COLLECTIONS",
    "merge_season_stats",
    "reconcile_player_stats",
]
