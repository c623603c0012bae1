"""Services package."""

from src.services.identity import (
    IdentityResolverInterface,
    StaticIdentityResolver,
    SupabaseIdentityResolver,
)
from src.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsMessageStorage,
    InMemoryAuditStorage,
    InMemoryMessageStorage,
    MessageStorageInterface,
    StorageError,
    SupabaseMessageStorage,
)

__all__ = [
    # Identity services
    "IdentityResolverInterface",
    "StaticIdentityResolver",
    "SupabaseIdentityResolver",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsMessageStorage",
    "InMemoryAuditStorage",
    "InMemoryMessageStorage",
    "MessageStorageInterface",
    "StorageError",
    "SupabaseMessageStorage",
]
