"""
In-Memory Storage

Dictionary-backed implementations of the storage interfaces, used by the
tests and for running the flows without a backend.

The record store accepts raw payloads in any historical shape at
construction time; they are normalised when read, exactly as a real
backend's data would be.
"""

from typing import Any, Iterable, Optional
from uuid import UUID

from bookkeeper.models.audit import AuditEvent
from bookkeeper.models.records import (
    CreditRecord,
    ExpenseRecord,
    RecordSnapshot,
    SaleRecord,
)
from bookkeeper.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    RecordStoreInterface,
)
from bookkeeper.snapshot.migration import (
    load_snapshot,
    normalize_credit,
    normalize_sale,
)


def _keyed(raws: Iterable[Any]) -> dict[str, Any]:
    keyed = {}
    for raw in raws:
        record_id = raw.id if hasattr(raw, "id") else raw.get("id")
        keyed[str(record_id)] = raw
    return keyed


class InMemoryRecordStore(RecordStoreInterface):
    """
    Record store backed by plain dictionaries.

    Insertion order is preserved, so snapshots list records in the order
    they were saved.
    """

    def __init__(
        self,
        sales: Iterable[Any] = (),
        expenses: Iterable[Any] = (),
        credits: Iterable[Any] = (),
        products: Iterable[Any] = (),
    ):
        self._sales = _keyed(sales)
        self._expenses = _keyed(expenses)
        self._credits = _keyed(credits)
        self._products = list(products)

    async def load_snapshot(self) -> RecordSnapshot:
        return load_snapshot(
            sales=list(self._sales.values()),
            expenses=list(self._expenses.values()),
            credits=list(self._credits.values()),
            products=self._products,
        )

    async def get_sale(self, sale_id: str) -> Optional[SaleRecord]:
        raw = self._sales.get(sale_id)
        return normalize_sale(raw) if raw is not None else None

    async def save_sale(self, sale: SaleRecord) -> bool:
        if sale.id in self._sales:
            raise DuplicateError(f"Sale {sale.id} already exists")
        self._sales[sale.id] = sale
        return True

    async def update_sale(self, sale: SaleRecord) -> bool:
        if sale.id not in self._sales:
            raise NotFoundError(f"Sale {sale.id} not found")
        self._sales[sale.id] = sale
        return True

    async def delete_sale(self, sale_id: str) -> bool:
        return self._sales.pop(sale_id, None) is not None

    async def save_expense(self, expense: ExpenseRecord) -> bool:
        if expense.id in self._expenses:
            raise DuplicateError(f"Expense {expense.id} already exists")
        self._expenses[expense.id] = expense
        return True

    async def get_credit(self, credit_id: str) -> Optional[CreditRecord]:
        raw = self._credits.get(credit_id)
        return normalize_credit(raw) if raw is not None else None

    async def save_credit(self, credit: CreditRecord) -> bool:
        if credit.id in self._credits:
            raise DuplicateError(f"Credit {credit.id} already exists")
        self._credits[credit.id] = credit
        return True

    async def update_credit(self, credit: CreditRecord) -> bool:
        if credit.id not in self._credits:
            raise NotFoundError(f"Credit {credit.id} not found")
        self._credits[credit.id] = credit
        return True

    async def delete_credit(self, credit_id: str) -> bool:
        return self._credits.pop(credit_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
