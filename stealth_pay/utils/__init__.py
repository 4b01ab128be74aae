"""
StealthPay - Utilities Package
================================
Encoding e validatori comuni.
"""

from stealth_pay.utils.encoding import encode_bytes, decode_bytes
from stealth_pay.utils.validators import (
    validate_amount,
    validate_memo,
    validate_view_tag,
    validate_timestamp,
)

__all__ = [
    # Encoding
    "encode_bytes",
    "decode_bytes",

    # Validators
    "validate_amount",
    "validate_memo",
    "validate_view_tag",
    "validate_timestamp",
]
