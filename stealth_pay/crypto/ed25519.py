"""
StealthPay - Ed25519 Group Operations
=======================================
Wrapper validati attorno alle primitive di gruppo di libsodium (PyNaCl).

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

Tutta l'aritmetica di curva è delegata a libsodium:
- decode/validazione punti (canonico, sottogruppo primo, non small-order)
- addizione di punti
- moltiplicazione scalare (base e generica) senza clamping
- riduzione e addizione di scalari mod L

Convenzioni:
- Punti: encoding Edwards compresso, 32 bytes
- Scalari: 32 bytes little-endian, canonici (0 < s < L)
"""

import nacl.bindings
import nacl.exceptions

from stealth_pay.constants import CURVE_ORDER, POINT_SIZE, SCALAR_SIZE
from stealth_pay.crypto.crypto_core import generate_random_bytes
from stealth_pay.errors import (
    CryptoError,
    InvalidFormatError,
    InvalidPointError,
    format_field_error,
)


ZERO_SCALAR = bytes(SCALAR_SIZE)


# ============================================================================
# POINTS
# ============================================================================

def is_valid_point(point: bytes) -> bool:
    """
    Check se bytes rappresentano un punto Ed25519 utilizzabile.

    Rifiuta encoding non canonici, punti fuori dal sottogruppo primo
    e punti di ordine piccolo (identità inclusa).
    """
    if not isinstance(point, (bytes, bytearray)) or len(point) != POINT_SIZE:
        return False
    try:
        return bool(nacl.bindings.crypto_core_ed25519_is_valid_point(bytes(point)))
    except (nacl.exceptions.CryptoError, ValueError, TypeError):
        return False


def decode_point(point, field: str = "point") -> bytes:
    """
    Valida un punto prima di qualunque operazione di curva.

    Raises:
        InvalidFormatError: Tipo o lunghezza errati
        InvalidPointError: Bytes che non decodificano a un punto valido
    """
    if not isinstance(point, (bytes, bytearray)):
        raise format_field_error(field, type(point).__name__, "bytes")
    if len(point) != POINT_SIZE:
        raise format_field_error(field, f"{len(point)} bytes", f"{POINT_SIZE} bytes")
    if not is_valid_point(point):
        raise InvalidPointError(
            f"'{field}' is not a valid Ed25519 point",
            details={"field": field}
        )
    return bytes(point)


def point_add(p: bytes, q: bytes) -> bytes:
    """Addizione di punti: P + Q."""
    try:
        return nacl.bindings.crypto_core_ed25519_add(p, q)
    except (nacl.exceptions.CryptoError, ValueError, TypeError) as e:
        raise CryptoError(f"Point addition failed: {e}", code="POINT_ADD_FAILED")


def scalarmult_base(scalar: bytes) -> bytes:
    """Moltiplicazione per il base point: s * B."""
    try:
        return nacl.bindings.crypto_scalarmult_ed25519_base_noclamp(scalar)
    except (nacl.exceptions.CryptoError, ValueError, TypeError) as e:
        raise CryptoError(f"Base point multiplication failed: {e}", code="SCALARMULT_FAILED")


def scalarmult(scalar: bytes, point: bytes) -> bytes:
    """
    Moltiplicazione scalare: s * P.

    libsodium rifiuta risultati nell'identità, quindi uno scalare nullo
    o un punto degenere producono CryptoError.
    """
    try:
        return nacl.bindings.crypto_scalarmult_ed25519_noclamp(scalar, point)
    except (nacl.exceptions.CryptoError, ValueError, TypeError) as e:
        raise CryptoError(f"Scalar multiplication failed: {e}", code="SCALARMULT_FAILED")


# ============================================================================
# SCALARS
# ============================================================================

def scalar_to_int(scalar: bytes) -> int:
    return int.from_bytes(scalar, "little")


def int_to_scalar(value: int) -> bytes:
    return (value % CURVE_ORDER).to_bytes(SCALAR_SIZE, "little")


def is_zero_scalar(scalar: bytes) -> bool:
    return scalar == ZERO_SCALAR


def validate_scalar(scalar, field: str = "scalar") -> bytes:
    """
    Valida uno scalare privato: 32 bytes, canonico, non nullo.

    Raises:
        InvalidFormatError: Se lo scalare non è utilizzabile
    """
    if not isinstance(scalar, (bytes, bytearray)):
        raise format_field_error(field, type(scalar).__name__, "bytes")
    if len(scalar) != SCALAR_SIZE:
        raise format_field_error(field, f"{len(scalar)} bytes", f"{SCALAR_SIZE} bytes")

    value = scalar_to_int(scalar)
    if value == 0 or value >= CURVE_ORDER:
        raise InvalidFormatError(
            f"'{field}' is not a canonical non-zero scalar",
            details={"field": field}
        )
    return bytes(scalar)


def reduce_scalar(data: bytes) -> bytes:
    """
    Riduce un valore little-endian (fino a 64 bytes) mod L.

    Un digest da 32 bytes viene esteso con zeri a 64 bytes prima della
    riduzione, quindi è interpretato come intero little-endian.
    """
    if len(data) > 64:
        raise CryptoError("Scalar reduction input longer than 64 bytes")
    wide = bytes(data) + bytes(64 - len(data))
    return nacl.bindings.crypto_core_ed25519_scalar_reduce(wide)


def scalar_add(a: bytes, b: bytes) -> bytes:
    """(a + b) mod L."""
    return nacl.bindings.crypto_core_ed25519_scalar_add(a, b)


def random_scalar() -> bytes:
    """
    Scalare uniforme in [1, L).

    64 bytes dal CSPRNG ridotti mod L: bias trascurabile (~2^-259).

    Raises:
        RandomnessFailureError: CSPRNG non disponibile
    """
    while True:
        scalar = reduce_scalar(generate_random_bytes(64))
        if not is_zero_scalar(scalar):
            return scalar


def public_from_scalar(scalar: bytes) -> bytes:
    """Punto pubblico: scalar * B."""
    return scalarmult_base(scalar)


__all__ = [
    "ZERO_SCALAR",
    "is_valid_point",
    "decode_point",
    "point_add",
    "scalarmult_base",
    "scalarmult",
    "scalar_to_int",
    "int_to_scalar",
    "is_zero_scalar",
    "validate_scalar",
    "reduce_scalar",
    "scalar_add",
    "random_scalar",
    "public_from_scalar",
]
