"""
StealthPay - Stealth Addresses
================================
Derivazione one-time address (mittente) e verifica ownership (destinatario).

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

Schema dual-key con ECDH su Ed25519:

    Mittente (conosce meta-address = K_spend || K_view):
        e random, E = e*B
        S = encode(e * K_view)
        h = SHA256(S), view_tag = h[0]
        t = SHA256(h || STEALTH_DOMAIN) mod L
        P = K_spend + t*B

    Destinatario (conosce k_view, k_spend):
        S = encode(k_view * E)       (stesso S del mittente)
        P' = K_spend + t*B, owner se P' == P
        spend scalar = k_spend + t   (spend_scalar * B == P)
"""

from typing import Optional, Tuple, Union

from stealth_pay.constants import STEALTH_DOMAIN
from stealth_pay.crypto.crypto_core import compute_sha256, constant_time_equal
from stealth_pay.crypto.ed25519 import (
    decode_point,
    is_zero_scalar,
    point_add,
    random_scalar,
    reduce_scalar,
    scalar_add,
    scalarmult,
    scalarmult_base,
    validate_scalar,
)
from stealth_pay.domain.keypairs import parse_meta_address
from stealth_pay.domain.models import StealthAddress
from stealth_pay.errors import StealthPayException
from stealth_pay.logging_setup import get_logger


logger = get_logger("stealth")


# ============================================================================
# SHARED SECRET
# ============================================================================

def compute_shared_secret(private_scalar: bytes, public_point: bytes) -> bytes:
    """
    ECDH: S = encode(private * public).

    Simmetrico: encode(e * V) == encode(v * E).

    Args:
        private_scalar: Scalare canonico non nullo
        public_point: Punto già validato con decode_point()

    Returns:
        bytes: Encoding compresso del punto condiviso (32 bytes)
    """
    return scalarmult(private_scalar, public_point)


def _hash_shared_secret(shared_secret: bytes) -> bytes:
    return compute_sha256(shared_secret)


def derive_tweak(secret_hash: bytes) -> bytes:
    """Tweak scalare: SHA256(h || STEALTH_DOMAIN) interpretato little-endian mod L."""
    # Convenzione Ed25519/libsodium. Una lettura big-endian del digest
    # darebbe un tweak diverso e address non interoperabili.
    return reduce_scalar(compute_sha256(secret_hash + STEALTH_DOMAIN))


def _tweak_public(spending_public: bytes, tweak: bytes) -> bytes:
    # Tweak nullo (probabilità ~2^-252): t*B è l'identità, P = K_spend
    if is_zero_scalar(tweak):
        return spending_public
    return point_add(spending_public, scalarmult_base(tweak))


def _derive_from_secret(shared_secret: bytes, spending_public: bytes) -> Tuple[bytes, int]:
    secret_hash = _hash_shared_secret(shared_secret)
    stealth_public = _tweak_public(spending_public, derive_tweak(secret_hash))
    return stealth_public, secret_hash[0]


# ============================================================================
# SENDER SIDE
# ============================================================================

def derive_address_with_ephemeral(
    meta_address: Union[bytes, str],
    encoding: str = "hex"
) -> Tuple[StealthAddress, bytes]:
    """
    Deriva stealth address e restituisce anche lo scalare effimero.

    Lo scalare effimero serve al mittente solo per cifrare il payload
    con lo stesso shared secret; va scartato subito dopo.

    Args:
        meta_address: Meta-address del destinatario (64 bytes o codificato)
        encoding: Encoding del meta-address se stringa

    Returns:
        Tuple[StealthAddress, bytes]: (stealth address, ephemeral_private)

    Raises:
        InvalidFormatError: Meta-address di lunghezza errata
        InvalidPointError: Chiave pubblica non valida nel meta-address
        RandomnessFailureError: CSPRNG non disponibile
    """
    spending_public, viewing_public = parse_meta_address(meta_address, encoding)

    ephemeral_private = random_scalar()
    ephemeral_public = scalarmult_base(ephemeral_private)

    shared_secret = compute_shared_secret(ephemeral_private, viewing_public)
    stealth_public, view_tag = _derive_from_secret(shared_secret, spending_public)

    stealth = StealthAddress(
        address=stealth_public,
        ephemeral_public_key=ephemeral_public,
        view_tag=view_tag,
    )

    logger.debug(
        "Stealth address derived",
        extra_data={"address": stealth_public.hex()[:16], "view_tag": view_tag}
    )

    return stealth, ephemeral_private


def derive_address(meta_address: Union[bytes, str], encoding: str = "hex") -> StealthAddress:
    """
    Deriva una nuova one-time address per il destinatario.

    Ogni chiamata estrae un nuovo scalare effimero: due chiamate con lo
    stesso meta-address producono address non collegabili.

    Examples:
        >>> identity = generate_identity()
        >>> a = derive_address(identity.meta_address)
        >>> b = derive_address(identity.meta_address)
        >>> a.address != b.address
        True
    """
    stealth, _ = derive_address_with_ephemeral(meta_address, encoding)
    return stealth


# ============================================================================
# RECIPIENT SIDE
# ============================================================================

def _recipient_secret(ephemeral_public_key: bytes, viewing_private: bytes) -> bytes:
    ephemeral = decode_point(ephemeral_public_key, "ephemeral_public_key")
    view_scalar = validate_scalar(viewing_private, "viewing_private")
    return compute_shared_secret(view_scalar, ephemeral)


def compute_view_tag(viewing_private: bytes, ephemeral_public_key: bytes) -> int:
    """
    View tag atteso per una ephemeral key: primo byte di SHA256(v*E).

    Fase 1 dello scan: costa una sola moltiplicazione scalare e scarta
    ~255/256 dei record estranei.

    Raises:
        InvalidFormatError / InvalidPointError: Input non validi
    """
    return _hash_shared_secret(_recipient_secret(ephemeral_public_key, viewing_private))[0]


def recover_stealth_public(
    ephemeral_public_key: bytes,
    viewing_private: bytes,
    spending_public: bytes
) -> bytes:
    """
    Ricalcola P = K_spend + t*B dal lato destinatario.

    Raises:
        InvalidFormatError / InvalidPointError: Input non validi
    """
    spend_point = decode_point(spending_public, "spending_public")
    shared_secret = _recipient_secret(ephemeral_public_key, viewing_private)
    stealth_public, _ = _derive_from_secret(shared_secret, spend_point)
    return stealth_public


def is_owner(
    stealth_address: bytes,
    ephemeral_public_key: bytes,
    viewing_private: bytes,
    spending_public: bytes
) -> bool:
    """
    Verifica se una stealth address appartiene al destinatario.

    Non solleva mai eccezioni: qualunque input non decodificabile
    (punto invalido, lunghezza errata, tipo errato) produce False.
    Il confronto finale è constant-time.

    Returns:
        bool: True se stealth_address == K_spend + t*B
    """
    if not isinstance(stealth_address, (bytes, bytearray)):
        return False

    try:
        expected = recover_stealth_public(ephemeral_public_key, viewing_private, spending_public)
    except StealthPayException:
        return False

    return constant_time_equal(expected, bytes(stealth_address))


def derive_spend_scalar(
    ephemeral_public_key: bytes,
    viewing_private: bytes,
    spending_private: bytes
) -> bytes:
    """
    Scalare one-time che controlla la stealth address.

    spend_scalar = (k_spend + t) mod L, quindi spend_scalar * B == P
    per ogni record di cui is_owner() è True.

    Security:
        - Il risultato è segreto quanto la spending key: mai loggarlo

    Raises:
        InvalidFormatError: Scalari non validi
        InvalidPointError: Ephemeral key non valida
    """
    spend_scalar = validate_scalar(spending_private, "spending_private")
    secret_hash = _hash_shared_secret(_recipient_secret(ephemeral_public_key, viewing_private))
    return scalar_add(spend_scalar, derive_tweak(secret_hash))


def owns_record(
    view_tag: int,
    stealth_address: bytes,
    ephemeral_public_key: bytes,
    viewing_private: bytes,
    spending_public: bytes
) -> Optional[bool]:
    """
    Check a due fasi usato dallo scanner.

    Returns:
        None se il record non è valutabile (ephemeral key invalida),
        False se il view tag o l'address non corrispondono, True altrimenti
    """
    try:
        tag = compute_view_tag(viewing_private, ephemeral_public_key)
    except StealthPayException:
        return None

    if tag != view_tag:
        return False

    return is_owner(stealth_address, ephemeral_public_key, viewing_private, spending_public)


__all__ = [
    "compute_shared_secret",
    "derive_tweak",
    "derive_address",
    "derive_address_with_ephemeral",
    "compute_view_tag",
    "recover_stealth_public",
    "is_owner",
    "derive_spend_scalar",
    "owns_record",
]
