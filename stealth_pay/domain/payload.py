"""
StealthPay - Payload Encryption
=================================
Cifratura di amount e memo verso il destinatario.

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

Chiave simmetrica derivata dallo stesso shared secret della stealth
address:

    K = SHA256(S || ENCRYPT_DOMAIN)

Ogni campo presente ha il proprio nonce casuale:

    field = nonce || ciphertext || tag

Amount serializzato come testo JSON del numero (es. "0.1", "42"),
memo come UTF-8.
"""

import json
import math
from typing import Optional, Tuple, Union

from stealth_pay.constants import (
    AEAD_TAG_SIZE,
    DEFAULT_MEMO_MAX_BYTES,
    DEFAULT_PAYLOAD_CIPHER,
    ENCRYPT_DOMAIN,
    NONCE_SIZES,
    PayloadCipherAlgorithm,
)
from stealth_pay.crypto.crypto_core import (
    compute_sha256,
    decrypt_aes_gcm,
    decrypt_xchacha20poly1305,
    encrypt_aes_gcm,
    encrypt_xchacha20poly1305,
    generate_random_bytes,
)
from stealth_pay.crypto.ed25519 import decode_point, validate_scalar
from stealth_pay.domain.keypairs import parse_meta_address
from stealth_pay.domain.models import Amount, DecryptedPayload, EncryptedPayload, StealthAddress
from stealth_pay.domain.stealth import compute_shared_secret, derive_address_with_ephemeral
from stealth_pay.errors import InvalidFormatError, format_field_error
from stealth_pay.logging_setup import get_logger
from stealth_pay.utils.validators import validate_amount, validate_memo


logger = get_logger("payload")


# ============================================================================
# KEY DERIVATION
# ============================================================================

def derive_payload_key(shared_secret: bytes) -> bytes:
    """K = SHA256(S || ENCRYPT_DOMAIN)"""
    return compute_sha256(shared_secret + ENCRYPT_DOMAIN)


def _sender_key(ephemeral_private: bytes, recipient_viewing_public: bytes) -> bytes:
    scalar = validate_scalar(ephemeral_private, "ephemeral_private")
    viewing = decode_point(recipient_viewing_public, "viewing_public")
    return derive_payload_key(compute_shared_secret(scalar, viewing))


def _recipient_key(ephemeral_public_key: bytes, viewing_private: bytes) -> bytes:
    ephemeral = decode_point(ephemeral_public_key, "ephemeral_public_key")
    scalar = validate_scalar(viewing_private, "viewing_private")
    return derive_payload_key(compute_shared_secret(scalar, ephemeral))


# ============================================================================
# AMOUNT CODEC
# ============================================================================

def _encode_amount(amount: Amount) -> bytes:
    validate_amount(amount)
    return json.dumps(amount).encode("ascii")


def _decode_amount(plaintext: bytes) -> Amount:
    try:
        amount = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        raise InvalidFormatError("Decrypted amount is not a JSON number", details={"field": "amount"})

    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidFormatError("Decrypted amount is not a number", details={"field": "amount"})
    if isinstance(amount, float) and not math.isfinite(amount):
        raise InvalidFormatError("Decrypted amount is not finite", details={"field": "amount"})
    if amount < 0:
        raise InvalidFormatError("Decrypted amount is negative", details={"field": "amount"})

    return amount


# ============================================================================
# PAYLOAD CIPHER
# ============================================================================

class PayloadCipher:
    """
    Cifratura AEAD di amount e memo.

    Algoritmi:
    - xchacha20poly1305 (default, nonce 24 bytes, libsodium)
    - aes-256-gcm (nonce 12 bytes, cryptography)

    Mittente e destinatario devono usare lo stesso algoritmo.

    Examples:
        >>> cipher = PayloadCipher()
        >>> stealth, payload = cipher.prepare_payment(identity.meta_address, 0.1, "coffee")
    """

    def __init__(
        self,
        algorithm: Union[str, PayloadCipherAlgorithm] = DEFAULT_PAYLOAD_CIPHER,
        memo_max_bytes: int = DEFAULT_MEMO_MAX_BYTES
    ):
        try:
            self.algorithm = PayloadCipherAlgorithm(algorithm)
        except ValueError:
            raise InvalidFormatError(
                f"Unsupported payload cipher: {algorithm}",
                details={"supported": [a.value for a in PayloadCipherAlgorithm]}
            )

        self.nonce_size = NONCE_SIZES[self.algorithm]
        self.memo_max_bytes = memo_max_bytes

    @classmethod
    def from_settings(cls, settings) -> "PayloadCipher":
        return cls(algorithm=settings.payload_cipher, memo_max_bytes=settings.memo_max_bytes)

    def __repr__(self) -> str:
        return f"PayloadCipher(algorithm={self.algorithm.value}, memo_max_bytes={self.memo_max_bytes})"

    # ------------------------------------------------------------------
    # Field sealing
    # ------------------------------------------------------------------

    def _seal(self, plaintext: bytes, key: bytes) -> bytes:
        nonce = generate_random_bytes(self.nonce_size)
        if self.algorithm is PayloadCipherAlgorithm.AES_256_GCM:
            return nonce + encrypt_aes_gcm(plaintext, key, nonce)
        return nonce + encrypt_xchacha20poly1305(plaintext, key, nonce)

    def _open(self, sealed: bytes, key: bytes, field: str) -> bytes:
        if not isinstance(sealed, (bytes, bytearray)):
            raise format_field_error(field, type(sealed).__name__, "bytes")

        minimum = self.nonce_size + AEAD_TAG_SIZE
        if len(sealed) < minimum:
            raise format_field_error(field, f"{len(sealed)} bytes", f"at least {minimum} bytes")

        nonce = bytes(sealed[:self.nonce_size])
        ciphertext = bytes(sealed[self.nonce_size:])

        if self.algorithm is PayloadCipherAlgorithm.AES_256_GCM:
            return decrypt_aes_gcm(ciphertext, key, nonce)
        return decrypt_xchacha20poly1305(ciphertext, key, nonce)

    # ------------------------------------------------------------------
    # Sender
    # ------------------------------------------------------------------

    def encrypt_payload(
        self,
        amount: Amount,
        memo: Optional[str],
        ephemeral_private: bytes,
        recipient_viewing_public: bytes
    ) -> EncryptedPayload:
        """
        Cifra amount (e memo opzionale) per il destinatario.

        Args:
            amount: int/float finito non negativo
            memo: Testo opzionale; "" viene cifrato, None = nessun memo
            ephemeral_private: Stesso e usato per derivare la stealth address
            recipient_viewing_public: K_view del destinatario

        Returns:
            EncryptedPayload: Campi nonce || ciphertext || tag

        Raises:
            InvalidFormatError: Amount/memo/chiavi non validi
            InvalidPointError: Viewing public non valida
            RandomnessFailureError: CSPRNG non disponibile
        """
        amount_bytes = _encode_amount(amount)
        validate_memo(memo, self.memo_max_bytes)

        key = _sender_key(ephemeral_private, recipient_viewing_public)

        encrypted_amount = self._seal(amount_bytes, key)
        encrypted_memo = self._seal(memo.encode("utf-8"), key) if memo is not None else None

        logger.debug(
            "Payload encrypted",
            extra_data={"algorithm": self.algorithm.value, "has_memo": memo is not None}
        )

        return EncryptedPayload(encrypted_amount=encrypted_amount, encrypted_memo=encrypted_memo)

    def prepare_payment(
        self,
        meta_address: Union[bytes, str],
        amount: Amount,
        memo: Optional[str] = None,
        encoding: str = "hex"
    ) -> Tuple[StealthAddress, EncryptedPayload]:
        """
        Deriva address e cifra il payload con un unico scalare effimero.

        Lo scalare effimero non esce da questa funzione.
        """
        # Validazione prima di consumare entropia
        validate_amount(amount)
        validate_memo(memo, self.memo_max_bytes)

        stealth, ephemeral_private = derive_address_with_ephemeral(meta_address, encoding)
        _, viewing_public = parse_meta_address(meta_address, encoding)

        payload = self.encrypt_payload(amount, memo, ephemeral_private, viewing_public)
        return stealth, payload

    # ------------------------------------------------------------------
    # Recipient
    # ------------------------------------------------------------------

    def decrypt_amount(
        self,
        encrypted_amount: bytes,
        ephemeral_public_key: bytes,
        viewing_private: bytes
    ) -> Amount:
        """
        Decifra il solo amount.

        Raises:
            AuthenticationFailureError: Tag non valido o chiave errata
            InvalidFormatError: Campo troncato o plaintext non numerico
        """
        key = _recipient_key(ephemeral_public_key, viewing_private)
        return _decode_amount(self._open(encrypted_amount, key, "encrypted_amount"))

    def decrypt_memo(
        self,
        encrypted_memo: Optional[bytes],
        ephemeral_public_key: bytes,
        viewing_private: bytes
    ) -> Optional[str]:
        """Decifra il solo memo (None se assente)."""
        if encrypted_memo is None:
            return None

        key = _recipient_key(ephemeral_public_key, viewing_private)
        plaintext = self._open(encrypted_memo, key, "encrypted_memo")
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise InvalidFormatError("Decrypted memo is not valid UTF-8", details={"field": "memo"})

    def decrypt_payload(
        self,
        encrypted_amount: bytes,
        encrypted_memo: Optional[bytes],
        ephemeral_public_key: bytes,
        viewing_private: bytes
    ) -> DecryptedPayload:
        """
        Decifra amount e memo.

        Raises:
            AuthenticationFailureError: Tag non valido su uno dei campi
            InvalidFormatError: Campo troncato o amount non valido
        """
        amount = self.decrypt_amount(encrypted_amount, ephemeral_public_key, viewing_private)
        memo = self.decrypt_memo(encrypted_memo, ephemeral_public_key, viewing_private)
        return DecryptedPayload(amount=amount, memo=memo)


# ============================================================================
# MODULE-LEVEL API (default cipher)
# ============================================================================

_default_cipher = PayloadCipher()


def encrypt_payload(
    amount: Amount,
    memo: Optional[str],
    ephemeral_private: bytes,
    recipient_viewing_public: bytes
) -> EncryptedPayload:
    """Cifra con il cipher di default (XChaCha20-Poly1305)."""
    return _default_cipher.encrypt_payload(amount, memo, ephemeral_private, recipient_viewing_public)


def decrypt_payload(
    encrypted_amount: bytes,
    encrypted_memo: Optional[bytes],
    ephemeral_public_key: bytes,
    viewing_private: bytes
) -> DecryptedPayload:
    """Decifra con il cipher di default (XChaCha20-Poly1305)."""
    return _default_cipher.decrypt_payload(
        encrypted_amount, encrypted_memo, ephemeral_public_key, viewing_private
    )


def prepare_payment(
    meta_address: Union[bytes, str],
    amount: Amount,
    memo: Optional[str] = None,
    cipher: Optional[PayloadCipher] = None,
    encoding: str = "hex"
) -> Tuple[StealthAddress, EncryptedPayload]:
    """
    Address + payload con un solo scalare effimero.

    Examples:
        >>> stealth, payload = prepare_payment(identity.meta_address, 0.1)
    """
    return (cipher or _default_cipher).prepare_payment(meta_address, amount, memo, encoding)


__all__ = [
    "PayloadCipher",
    "derive_payload_key",
    "encrypt_payload",
    "decrypt_payload",
    "prepare_payment",
]
