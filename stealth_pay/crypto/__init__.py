"""
StealthPay - Crypto Package
=============================
Primitive auditate: gruppo Ed25519 (libsodium), SHA-256, AEAD, CSPRNG.
"""

from stealth_pay.crypto.crypto_core import (
    compute_sha256,
    constant_time_equal,
    generate_random_bytes,
    encrypt_xchacha20poly1305,
    decrypt_xchacha20poly1305,
    encrypt_aes_gcm,
    decrypt_aes_gcm,
)
from stealth_pay.crypto.ed25519 import (
    is_valid_point,
    decode_point,
    validate_scalar,
    random_scalar,
    public_from_scalar,
)

__all__ = [
    "compute_sha256",
    "constant_time_equal",
    "generate_random_bytes",
    "encrypt_xchacha20poly1305",
    "decrypt_xchacha20poly1305",
    "encrypt_aes_gcm",
    "decrypt_aes_gcm",
    "is_valid_point",
    "decode_point",
    "validate_scalar",
    "random_scalar",
    "public_from_scalar",
]
