"""
StealthPay - Core Constants
=============================
Costanti immutabili del protocollo stealth payment.

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

IMPORTANTE: mittente e destinatario devono usare gli stessi valori.
Cambiare un domain tag o un formato rompe l'interoperabilità con tutti
i transfer già registrati.
"""

from enum import Enum
from typing import Final


# ============================================================================
# IDENTIFICAZIONE PROGETTO
# ============================================================================

PROJECT_NAME: Final[str] = "StealthPay"
PROTOCOL_VERSION: Final[int] = 1


# ============================================================================
# CURVA ED25519
# ============================================================================

# Ordine del sottogruppo primo (L)
CURVE_ORDER: Final[int] = 2**252 + 27742317777372353535851937790883648493

# Primo del campo
FIELD_PRIME: Final[int] = 2**255 - 19

POINT_SIZE: Final[int] = 32
SCALAR_SIZE: Final[int] = 32

# Meta-address = spending_public || viewing_public
META_ADDRESS_SIZE: Final[int] = 2 * POINT_SIZE


# ============================================================================
# DOMAIN SEPARATION
# ============================================================================

STEALTH_DOMAIN: Final[bytes] = b"stealthpay-stealth"
ENCRYPT_DOMAIN: Final[bytes] = b"stealthpay-encrypt"

HASH_SIZE: Final[int] = 32
SYMMETRIC_KEY_SIZE: Final[int] = 32


# ============================================================================
# AEAD
# ============================================================================

class PayloadCipherAlgorithm(str, Enum):
    """Algoritmi AEAD supportati per amount/memo"""
    XCHACHA20_POLY1305 = "xchacha20poly1305"
    AES_256_GCM = "aes-256-gcm"


NONCE_SIZES: Final[dict] = {
    PayloadCipherAlgorithm.XCHACHA20_POLY1305: 24,
    PayloadCipherAlgorithm.AES_256_GCM: 12,
}

AEAD_TAG_SIZE: Final[int] = 16

DEFAULT_PAYLOAD_CIPHER: Final[str] = PayloadCipherAlgorithm.XCHACHA20_POLY1305.value

# Limite memo (bytes UTF-8)
DEFAULT_MEMO_MAX_BYTES: Final[int] = 1024


# ============================================================================
# WIRE ENCODING
# ============================================================================

class WireEncoding(str, Enum):
    """Encoding testuale dei campi binari scambiati con i collaboratori"""
    HEX = "hex"
    BASE64 = "base64"


DEFAULT_WIRE_ENCODING: Final[str] = WireEncoding.HEX.value


# ============================================================================
# VIEW TAG
# ============================================================================

VIEW_TAG_SPACE: Final[int] = 256


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "PROJECT_NAME",
    "PROTOCOL_VERSION",
    "CURVE_ORDER",
    "FIELD_PRIME",
    "POINT_SIZE",
    "SCALAR_SIZE",
    "META_ADDRESS_SIZE",
    "STEALTH_DOMAIN",
    "ENCRYPT_DOMAIN",
    "HASH_SIZE",
    "SYMMETRIC_KEY_SIZE",
    "PayloadCipherAlgorithm",
    "NONCE_SIZES",
    "AEAD_TAG_SIZE",
    "DEFAULT_PAYLOAD_CIPHER",
    "DEFAULT_MEMO_MAX_BYTES",
    "WireEncoding",
    "DEFAULT_WIRE_ENCODING",
    "VIEW_TAG_SPACE",
]
