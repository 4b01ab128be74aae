"""
StealthPay - Input Validators
===============================
Validazione amount, memo e campi di un transfer record.
"""

import math
from typing import Optional

from stealth_pay.constants import VIEW_TAG_SPACE
from stealth_pay.errors import InvalidFormatError


# ============================================================================
# AMOUNT VALIDATION
# ============================================================================

def validate_amount(amount) -> bool:
    """
    Valida amount in chiaro.

    Accetta int o float finiti e non negativi. bool è rifiutato
    (è sottoclasse di int ma non è un importo). Altri numeri
    (Fraction, Decimal) non hanno un testo JSON e sono rifiutati.

    Raises:
        InvalidFormatError: If invalid

    Examples:
        >>> validate_amount(0.1)
        True
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidFormatError(
            f"Amount must be int or float, got {type(amount).__name__}",
            details={"field": "amount"}
        )

    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidFormatError("Amount must be finite", details={"field": "amount"})

    if amount < 0:
        raise InvalidFormatError(f"Amount cannot be negative: {amount}", details={"field": "amount"})

    return True


# ============================================================================
# MEMO VALIDATION
# ============================================================================

def validate_memo(memo: Optional[str], max_bytes: int) -> bool:
    """
    Valida memo opzionale.

    None = nessun memo; "" è un memo valido (vuoto).

    Raises:
        InvalidFormatError: If invalid
    """
    if memo is None:
        return True

    if not isinstance(memo, str):
        raise InvalidFormatError(
            f"Memo must be a string, got {type(memo).__name__}",
            details={"field": "memo"}
        )

    try:
        size = len(memo.encode("utf-8"))
    except UnicodeEncodeError:
        # Surrogati isolati: stringa non rappresentabile in UTF-8
        raise InvalidFormatError("Memo is not valid UTF-8 text", details={"field": "memo"})
    if size > max_bytes:
        raise InvalidFormatError(
            f"Memo too long: {size} bytes (max {max_bytes})",
            details={"field": "memo", "size": size, "max": max_bytes}
        )

    return True


# ============================================================================
# RECORD FIELDS
# ============================================================================

def validate_view_tag(view_tag) -> bool:
    """View tag: intero in [0, 255]"""
    if isinstance(view_tag, bool) or not isinstance(view_tag, int):
        raise InvalidFormatError(
            f"View tag must be int, got {type(view_tag).__name__}",
            details={"field": "view_tag"}
        )
    if not 0 <= view_tag < VIEW_TAG_SPACE:
        raise InvalidFormatError(
            f"View tag out of range: {view_tag}",
            details={"field": "view_tag"}
        )
    return True


def validate_timestamp(timestamp) -> bool:
    """Timestamp: numero finito (int o float)"""
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        raise InvalidFormatError(
            f"Timestamp must be a number, got {type(timestamp).__name__}",
            details={"field": "timestamp"}
        )
    if isinstance(timestamp, float) and not math.isfinite(timestamp):
        raise InvalidFormatError("Timestamp must be finite", details={"field": "timestamp"})
    return True


__all__ = [
    "validate_amount",
    "validate_memo",
    "validate_view_tag",
    "validate_timestamp",
]
