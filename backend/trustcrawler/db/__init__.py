"""
Database package initialization.
"""

from trustcrawler.db.database import (
    Base,
    check_database_health,
    close_db,
    configure_database,
    get_db_session,
    get_engine,
    get_session_maker,
    init_db,
)
from trustcrawler.db.models import BusinessModel, VerificationLogModel
from trustcrawler.db.store import (
    RecordFilter,
    RecordStore,
    SqlAlchemyRecordStore,
    VerificationLogEntry,
)

__all__ = [
    # Database
    "Base",
    "configure_database",
    "get_engine",
    "get_session_maker",
    "get_db_session",
    "init_db",
    "close_db",
    "check_database_health",
    # Models
    "BusinessModel",
    "VerificationLogModel",
    # Store
    "RecordFilter",
    "RecordStore",
    "SqlAlchemyRecordStore",
    "VerificationLogEntry",
]
