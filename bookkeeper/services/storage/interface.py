"""
Abstract Storage Interface

DESIGN DECISION: The record store is EXTERNAL to the core.
The core only reads snapshots and hands back new records; this interface
is the boundary a real backend (device storage, a sync service, a
database) implements. This allows us to:
1. Use in-memory storage for testing
2. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations the bookkeeping flows need.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from bookkeeper.models.audit import AuditEvent
from bookkeeper.models.records import (
    CreditRecord,
    ExpenseRecord,
    RecordSnapshot,
    SaleRecord,
)


class RecordStoreInterface(ABC):
    """
    Abstract interface for record storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def load_snapshot(self) -> RecordSnapshot:
        """
        Read everything the store holds as one normalised snapshot.

        Implementations holding legacy payloads run them through
        `bookkeeper.snapshot.load_snapshot`.
        """
        pass

    @abstractmethod
    async def get_sale(self, sale_id: str) -> Optional[SaleRecord]:
        pass

    @abstractmethod
    async def save_sale(self, sale: SaleRecord) -> bool:
        """
        Create a sale.

        Raises:
            DuplicateError: If a sale with this id exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_sale(self, sale: SaleRecord) -> bool:
        """
        Replace an existing sale.

        Raises:
            NotFoundError: If sale doesn't exist
        """
        pass

    @abstractmethod
    async def delete_sale(self, sale_id: str) -> bool:
        """
        Delete a sale by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def save_expense(self, expense: ExpenseRecord) -> bool:
        pass

    @abstractmethod
    async def get_credit(self, credit_id: str) -> Optional[CreditRecord]:
        pass

    @abstractmethod
    async def save_credit(self, credit: CreditRecord) -> bool:
        pass

    @abstractmethod
    async def update_credit(self, credit: CreditRecord) -> bool:
        """
        Replace an existing credit (e.g. after a repayment).

        Raises:
            NotFoundError: If credit doesn't exist
        """
        pass

    @abstractmethod
    async def delete_credit(self, credit_id: str) -> bool:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one magic note flow).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific record.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
