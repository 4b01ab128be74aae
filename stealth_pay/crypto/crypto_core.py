"""
StealthPay - Cryptographic Core Layer
=======================================
Primitive crittografiche di basso livello: hash, CSPRNG, AEAD.

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

SECURITY NOTICE:
Questo modulo espone solo primitive di librerie auditate.
Nessun algoritmo crittografico è implementato qui.

Algorithms:
- Hash: SHA-256
- AEAD: XChaCha20-Poly1305 (libsodium), AES-256-GCM (cryptography)
- RNG: secrets (CSPRNG del sistema operativo)

Dependencies:
- PyNaCl (>=1.5.0)
- cryptography (>=41.0.0)
- hashlib (stdlib)
"""

import hashlib
import hmac
import secrets
from typing import Optional

import nacl.bindings
import nacl.exceptions
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.exceptions import InvalidTag

from stealth_pay.constants import SYMMETRIC_KEY_SIZE
from stealth_pay.errors import (
    CryptoError,
    AuthenticationFailureError,
    RandomnessFailureError,
)
from stealth_pay.logging_setup import get_logger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("crypto")


# ============================================================================
# HASH FUNCTIONS
# ============================================================================

def compute_sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.

    Usato per:
    - hash dello shared secret (view tag)
    - tweak scalare della stealth address
    - chiave simmetrica del payload

    Examples:
        >>> compute_sha256(b"").hex()
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    if not isinstance(data, (bytes, bytearray)):
        raise CryptoError(
            f"compute_sha256 requires bytes, got {type(data).__name__}",
            code="INVALID_INPUT_TYPE"
        )
    return hashlib.sha256(data).digest()


def constant_time_equal(a: bytes, b: bytes) -> bool:
    """Confronto a tempo costante."""
    return hmac.compare_digest(a, b)


# ============================================================================
# RANDOM NUMBER GENERATION
# ============================================================================

def generate_random_bytes(length: int) -> bytes:
    """
    Genera bytes casuali crittograficamente sicuri.

    Ogni chiamata è un'estrazione indipendente dal CSPRNG.

    Raises:
        RandomnessFailureError: CSPRNG non disponibile (fatale, mai ritentato)

    Examples:
        >>> len(generate_random_bytes(32))
        32
    """
    if length <= 0:
        raise CryptoError("Length must be positive")

    try:
        return secrets.token_bytes(length)
    except (OSError, NotImplementedError) as e:
        logger.critical("Secure random source unavailable", extra_data={"error": str(e)})
        raise RandomnessFailureError(f"Secure random source unavailable: {e}")


# ============================================================================
# AEAD: XCHACHA20-POLY1305
# ============================================================================

XCHACHA_NONCE_SIZE = nacl.bindings.crypto_aead_xchacha20poly1305_ietf_NPUBBYTES


def encrypt_xchacha20poly1305(
    plaintext: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: Optional[bytes] = None
) -> bytes:
    """
    Seal XChaCha20-Poly1305.

    Returns:
        bytes: ciphertext || tag (16 bytes)
    """
    if len(key) != SYMMETRIC_KEY_SIZE:
        raise CryptoError(f"XChaCha20-Poly1305 requires 32-byte key, got {len(key)}")
    if len(nonce) != XCHACHA_NONCE_SIZE:
        raise CryptoError(f"XChaCha20-Poly1305 requires {XCHACHA_NONCE_SIZE}-byte nonce, got {len(nonce)}")

    return nacl.bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
        plaintext, associated_data, nonce, key
    )


def decrypt_xchacha20poly1305(
    ciphertext: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: Optional[bytes] = None
) -> bytes:
    """
    Open XChaCha20-Poly1305.

    Raises:
        AuthenticationFailureError: Tag non valido (dati manomessi o chiave errata)
    """
    if len(key) != SYMMETRIC_KEY_SIZE:
        raise CryptoError(f"XChaCha20-Poly1305 requires 32-byte key, got {len(key)}")
    if len(nonce) != XCHACHA_NONCE_SIZE:
        raise CryptoError(f"XChaCha20-Poly1305 requires {XCHACHA_NONCE_SIZE}-byte nonce, got {len(nonce)}")

    try:
        return nacl.bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
            ciphertext, associated_data, nonce, key
        )
    except nacl.exceptions.CryptoError:
        raise AuthenticationFailureError(
            "Authentication tag verification failed. Data may be corrupted or tampered."
        )


# ============================================================================
# AEAD: AES-256-GCM
# ============================================================================

AES_GCM_NONCE_SIZE = 12


def encrypt_aes_gcm(
    plaintext: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: Optional[bytes] = None
) -> bytes:
    """
    Seal AES-256-GCM.

    Returns:
        bytes: ciphertext || tag (16 bytes)

    Security:
        - Nonce DEVE essere unico per ogni encryption con stessa chiave
    """
    if len(key) != SYMMETRIC_KEY_SIZE:
        raise CryptoError(
            f"AES-256 requires 32-byte key, got {len(key)}",
            code="INVALID_KEY_LENGTH"
        )
    if len(nonce) != AES_GCM_NONCE_SIZE:
        raise CryptoError(f"GCM requires 12-byte nonce, got {len(nonce)}")

    return AESGCM(key).encrypt(nonce, plaintext, associated_data)


def decrypt_aes_gcm(
    ciphertext: bytes,
    key: bytes,
    nonce: bytes,
    associated_data: Optional[bytes] = None
) -> bytes:
    """
    Open AES-256-GCM.

    Raises:
        AuthenticationFailureError: Tag non valido
    """
    if len(key) != SYMMETRIC_KEY_SIZE:
        raise CryptoError(f"AES-256 requires 32-byte key, got {len(key)}")
    if len(nonce) != AES_GCM_NONCE_SIZE:
        raise CryptoError(f"GCM requires 12-byte nonce, got {len(nonce)}")

    try:
        return AESGCM(key).decrypt(nonce, ciphertext, associated_data)
    except InvalidTag:
        raise AuthenticationFailureError(
            "Authentication tag verification failed. Data may be corrupted or tampered."
        )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "compute_sha256",
    "constant_time_equal",
    "generate_random_bytes",
    "XCHACHA_NONCE_SIZE",
    "encrypt_xchacha20poly1305",
    "decrypt_xchacha20poly1305",
    "AES_GCM_NONCE_SIZE",
    "encrypt_aes_gcm",
    "decrypt_aes_gcm",
]
