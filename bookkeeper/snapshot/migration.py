"""
Snapshot Migration

Raw payloads from the store come in several historical shapes:
- camelCase keys from the mobile app (`customerName`, `totalAmount`, ...)
- sales that only carry `paidAmount`, or only `totalAmount`, or only `amount`
- payment method "UPI" instead of "Digital"
- credits whose `status` disagrees with their paid amount

DESIGN DECISION: All of that is resolved HERE, once, into the canonical
record models. No other module looks at raw dicts or branches on which
fields happen to be present.

Resolution is silent from the caller's point of view (these are data
inconsistencies, not errors) but every correction is logged.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

import structlog
from pydantic import ValidationError

from bookkeeper.models.records import (
    CreditDirection,
    CreditPayment,
    CreditRecord,
    ExpenseRecord,
    PaymentMethod,
    Product,
    RecordSnapshot,
    SaleRecord,
)


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")

_DIGITAL_ALIASES = {"digital", "upi", "online", "card", "bank"}


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    """Value of the first key present with a non-None value."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _record_id(raw: Mapping[str, Any]) -> str:
    value = _first(raw, "id")
    if value is None or not str(value).strip():
        raise ValueError("Record has no id")
    return str(value).strip()


def to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce a stored number; None for missing, NaN or unparseable values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_date(value: Any) -> date:
    """Accept date/datetime objects and ISO strings (with or without time)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) >= 10:
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Unrecognised date: {value!r}")


def parse_payment_method(value: Any) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    if value is None:
        return PaymentMethod.CASH
    normalised = str(value).strip().lower()
    if normalised in _DIGITAL_ALIASES:
        return PaymentMethod.DIGITAL
    if normalised != "cash":
        logger.info("unknown_payment_method_defaulted", value=str(value))
    return PaymentMethod.CASH


def resolve_sale_amounts(
    total_amount: Any,
    paid_amount: Any,
    legacy_amount: Any = None,
) -> tuple[Decimal, Decimal]:
    """
    Fallback precedence for sale amounts.

    total = totalAmount ?? paidAmount ?? amount ?? 0
    paid  = paidAmount ?? totalAmount ?? amount ?? 0
    """
    total = to_decimal(total_amount)
    paid = to_decimal(paid_amount)
    legacy = to_decimal(legacy_amount)

    resolved_total = next((v for v in (total, paid, legacy) if v is not None), ZERO)
    resolved_paid = next((v for v in (paid, total, legacy) if v is not None), ZERO)
    return resolved_total, resolved_paid


def normalize_sale(raw: Union[SaleRecord, Mapping[str, Any]]) -> SaleRecord:
    """Convert a raw sale payload into a canonical SaleRecord."""
    if isinstance(raw, SaleRecord):
        return raw

    sale_id = _record_id(raw)
    total, paid = resolve_sale_amounts(
        _first(raw, "totalAmount", "total_amount"),
        _first(raw, "paidAmount", "paid_amount"),
        _first(raw, "amount"),
    )

    if total < 0 or paid < 0:
        logger.warning("legacy_sale_negative_amount_clamped", sale_id=sale_id)
        total, paid = max(total, ZERO), max(paid, ZERO)
    if paid > total:
        logger.warning(
            "legacy_sale_overpaid_clamped",
            sale_id=sale_id,
            total_amount=str(total),
            paid_amount=str(paid),
        )
        paid = total

    return SaleRecord(
        id=sale_id,
        date=parse_date(_first(raw, "date")),
        counterparty_name=str(
            _first(raw, "counterpartyName", "counterparty_name", "customerName", "customer_name")
            or ""
        ),
        total_amount=total,
        paid_amount=paid,
        payment_method=parse_payment_method(
            _first(raw, "paymentMethod", "payment_method", "paymentMode")
        ),
        note=str(_first(raw, "note") or ""),
        invoice_number=_first(raw, "invoiceNumber", "invoice_number"),
    )


def normalize_expense(raw: Union[ExpenseRecord, Mapping[str, Any]]) -> ExpenseRecord:
    """Convert a raw expense payload into a canonical ExpenseRecord."""
    if isinstance(raw, ExpenseRecord):
        return raw

    amount = to_decimal(_first(raw, "amount"))
    if amount is None or amount < 0:
        logger.info("legacy_expense_amount_defaulted", expense_id=_record_id(raw))
        amount = ZERO

    return ExpenseRecord(
        id=_record_id(raw),
        date=parse_date(_first(raw, "date")),
        counterparty_name=str(
            _first(raw, "counterpartyName", "counterparty_name", "vendorName", "vendor_name")
            or ""
        ),
        category=str(_first(raw, "category") or "Other"),
        amount=amount,
        note=str(_first(raw, "note") or ""),
        payment_method=parse_payment_method(
            _first(raw, "paymentMethod", "payment_method", "paymentMode")
        ),
    )


def normalize_credit(raw: Union[CreditRecord, Mapping[str, Any]]) -> CreditRecord:
    """
    Convert a raw credit payload into a canonical CreditRecord.

    The paid amount falls back to the sum of recorded payments, and the
    status is always re-derived from the amounts.
    """
    if isinstance(raw, CreditRecord):
        return raw

    credit_id = _record_id(raw)
    amount = to_decimal(_first(raw, "amount"))
    if amount is None or amount < 0:
        logger.info("legacy_credit_amount_defaulted", credit_id=credit_id)
        amount = ZERO

    payments = []
    for index, raw_payment in enumerate(_first(raw, "payments") or []):
        payment_amount = to_decimal(_first(raw_payment, "amount"))
        if payment_amount is None or payment_amount <= 0:
            logger.info("legacy_credit_payment_skipped", credit_id=credit_id, index=index)
            continue
        payments.append(CreditPayment(
            id=str(_first(raw_payment, "id") or f"{credit_id}-payment-{index + 1}"),
            amount=payment_amount,
            date=parse_date(_first(raw_payment, "date") or _first(raw, "date")),
            payment_method=parse_payment_method(
                _first(raw_payment, "paymentMethod", "payment_method", "paymentMode")
            ),
            note=_first(raw_payment, "note"),
        ))

    paid = to_decimal(_first(raw, "paidAmount", "paid_amount"))
    if paid is None:
        paid = sum((p.amount for p in payments), ZERO)
    if paid > amount:
        logger.warning(
            "legacy_credit_overpaid_clamped",
            credit_id=credit_id,
            amount=str(amount),
            paid_amount=str(paid),
        )
        paid = amount
    paid = max(paid, ZERO)

    status = CreditRecord.settlement_status(amount, paid)
    raw_status = _first(raw, "status")
    if raw_status is not None and str(raw_status) != status.value:
        logger.info(
            "legacy_credit_status_rederived",
            credit_id=credit_id,
            stored_status=str(raw_status),
            derived_status=status.value,
        )

    return CreditRecord(
        id=credit_id,
        date=parse_date(_first(raw, "date")),
        party=str(_first(raw, "party") or "Unknown"),
        direction=CreditDirection(str(_first(raw, "direction", "type") or "given")),
        amount=amount,
        paid_amount=paid,
        status=status,
        payments=payments,
        linked_sale_id=_first(raw, "linkedSaleId", "linked_sale_id"),
    )


def normalize_product(raw: Union[Product, Mapping[str, Any]]) -> Product:
    if isinstance(raw, Product):
        return raw
    price = to_decimal(_first(raw, "unitPrice", "unit_price", "price"))
    stock = _first(raw, "stock")
    return Product(
        id=_record_id(raw),
        name=str(_first(raw, "name") or ""),
        unit_price=price if price is not None and price >= 0 else ZERO,
        stock=int(stock) if stock is not None else None,
    )


def _normalize_all(kind: str, raws: Iterable[Any], normalizer) -> tuple:
    """Normalise every payload, skipping (and logging) ones that cannot be read."""
    records = []
    for index, raw in enumerate(raws):
        try:
            records.append(normalizer(raw))
        except (ValidationError, ValueError, TypeError, AttributeError) as e:
            logger.warning(
                "unreadable_record_skipped",
                record_kind=kind,
                index=index,
                error=str(e),
            )
    return tuple(records)


def load_snapshot(
    sales: Iterable[Any] = (),
    expenses: Iterable[Any] = (),
    credits: Iterable[Any] = (),
    products: Iterable[Any] = (),
) -> RecordSnapshot:
    """
    Build a RecordSnapshot from raw store payloads.

    Records that cannot be read at all (no id, no parseable date) are
    skipped with a warning rather than failing the whole snapshot.
    """
    return RecordSnapshot(
        sales=_normalize_all("sale", sales, normalize_sale),
        expenses=_normalize_all("expense", expenses, normalize_expense),
        credits=_normalize_all("credit", credits, normalize_credit),
        products=_normalize_all("product", products, normalize_product),
    )
