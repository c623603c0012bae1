"""
Storage Services Package

Provides abstract interfaces and concrete implementations for chat history
and audit storage. Backends: in-memory, Google Sheets, Supabase (PostgREST).
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    MessageStorageInterface,
    StorageError,
)
from src.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryMessageStorage,
)
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMessageStorage,
)
from src.services.storage.supabase_rest import SupabaseMessageStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "MessageStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryMessageStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsMessageStorage",
    # Supabase implementation
    "SupabaseMessageStorage",
]
