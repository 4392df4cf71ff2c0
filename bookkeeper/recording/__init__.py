"""Building records from confirmed input."""

from bookkeeper.recording.credits import (
    DELETE_LINKED_MESSAGE,
    EDIT_LINKED_MESSAGE,
    CreditPaymentError,
    LinkedCreditError,
    apply_credit_payment,
    ensure_not_linked,
)
from bookkeeper.recording.factory import (
    build_record,
    new_record_id,
    prepare_sale,
    resolve_amount_input,
    revise_credit,
    revise_sale,
)

__all__ = [
    "DELETE_LINKED_MESSAGE",
    "EDIT_LINKED_MESSAGE",
    "CreditPaymentError",
    "LinkedCreditError",
    "apply_credit_payment",
    "build_record",
    "ensure_not_linked",
    "new_record_id",
    "prepare_sale",
    "resolve_amount_input",
    "revise_credit",
    "revise_sale",
]
