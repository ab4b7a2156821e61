"""Form validation for payments and repairs"""

from typing import Any, Optional, Tuple

from rentdesk.domain.exceptions import OverpayError, ValidationError
from rentdesk.domain.models import BILLED_KINDS, PeriodStatus
from rentdesk.domain.money import format_idr, parse_number_loose

# Float slack when comparing an amount against the remaining due
OVERPAY_TOLERANCE = 0.0001


def require_positive_amount(value: Any, message: str = "Nominal tidak valid.") -> float:
    amount = parse_number_loose(value)
    if amount is None or amount <= 0:
        raise ValidationError(message)
    return amount


def payment_limit(kind: str, status: Optional[PeriodStatus], current_amount: float = 0.0) -> Optional[float]:
    """
    Highest amount a payment may carry.

    Only rent and water are capped; the cap is the remaining due plus the
    amount the payment already holds (when editing). None means unlimited.
    """
    if kind not in BILLED_KINDS or status is None:
        return None
    return max(status.due + current_amount, 0.0)


def check_overpay(
    amount: float,
    limit: Optional[float],
    allow_overpay: bool,
    confirmed: bool = False,
    message: Optional[str] = None,
) -> None:
    """
    Reject amounts above the limit.

    With overpay allowed the caller must confirm explicitly; otherwise the
    amount is refused outright. The default message quotes the limit.
    """
    if limit is None or amount <= limit + OVERPAY_TOLERANCE:
        return
    message = message or f"Nominal melebihi tunggakan ({format_idr(limit)})."
    if not allow_overpay:
        raise OverpayError(message, limit)
    if not confirmed:
        raise OverpayError(f"{message} Tetap simpan?", limit, requires_confirmation=True)


def validate_repair(amount: Any, description: Optional[str]) -> Tuple[float, str]:
    parsed = require_positive_amount(amount, "Nominal harus lebih besar dari 0.")
    text = (description or "").strip()
    if not text:
        raise ValidationError("Deskripsi wajib diisi.")
    return parsed, text
