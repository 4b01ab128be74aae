"""
StealthPay - Key Material
===========================
Coppie di chiavi Ed25519 e identità dual-key (spending + viewing).

Security Level: CRITICAL
Last Updated: 2026-10-18
Version: 1.0.0

Features:
- KeyPair immutabile (scalare privato + punto pubblico)
- Identity: due KeyPair indipendenti
- Meta-address: spending_public || viewing_public (64 bytes)
- Parsing meta-address con validazione dei punti
- Import identità da chiavi private in custodia
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, Tuple, Union

from stealth_pay.constants import META_ADDRESS_SIZE, POINT_SIZE
from stealth_pay.crypto.ed25519 import (
    decode_point,
    public_from_scalar,
    random_scalar,
    validate_scalar,
)
from stealth_pay.errors import format_field_error
from stealth_pay.logging_setup import get_logger
from stealth_pay.utils.encoding import encode_bytes, decode_bytes


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("keypairs")


# ============================================================================
# KEYPAIR CLASS
# ============================================================================

@dataclass(frozen=True)
class KeyPair:
    """
    Coppia di chiavi Ed25519 immutabile.

    Attributes:
        private_scalar (bytes): Scalare privato, 32 bytes little-endian, 0 < s < L
        public_point (bytes): private_scalar * B, 32 bytes

    Security:
        - Lo scalare privato non compare in repr()
        - Non viene mai persistito da questo pacchetto: la custodia
          è responsabilità del chiamante
    """

    private_scalar: bytes = field(repr=False)
    public_point: bytes

    def to_dict(self, encoding: str = "hex") -> Dict[str, str]:
        return {
            "private": encode_bytes(self.private_scalar, encoding),
            "public": encode_bytes(self.public_point, encoding),
        }


def generate_keypair() -> KeyPair:
    """
    Genera KeyPair con scalare uniforme dal CSPRNG.

    Raises:
        RandomnessFailureError: CSPRNG non disponibile (fatale)

    Examples:
        >>> kp = generate_keypair()
        >>> len(kp.public_point)
        32
    """
    scalar = random_scalar()
    return KeyPair(private_scalar=scalar, public_point=public_from_scalar(scalar))


def keypair_from_private(private_scalar: bytes, field_name: str = "private_scalar") -> KeyPair:
    """
    Ricostruisce KeyPair da uno scalare privato esistente.

    Raises:
        InvalidFormatError: Scalare non canonico, nullo o di lunghezza errata
    """
    scalar = validate_scalar(private_scalar, field_name)
    return KeyPair(private_scalar=scalar, public_point=public_from_scalar(scalar))


# ============================================================================
# IDENTITY
# ============================================================================

@dataclass(frozen=True)
class Identity:
    """
    Identità capace di ricevere pagamenti privati.

    Due KeyPair indipendenti:
    - spending: controlla la spesa dei fondi ricevuti
    - viewing: permette di riconoscere i pagamenti (scan) e decifrarli

    Examples:
        >>> identity = generate_identity()
        >>> len(identity.meta_address)
        64
    """

    spending: KeyPair
    viewing: KeyPair

    @property
    def meta_address(self) -> bytes:
        """Meta-address pubblico: spending_public || viewing_public."""
        return encode_meta_address(self.spending.public_point, self.viewing.public_point)

    def meta_address_str(self, encoding: str = "hex") -> str:
        return encode_bytes(self.meta_address, encoding)

    def export_keys(self, encoding: str = "hex") -> Dict[str, str]:
        """
        Esporta chiavi per la custodia del chiamante.

        Returns:
            dict: spending/viewing public e private + meta_address
        """
        return {
            "spending_public": encode_bytes(self.spending.public_point, encoding),
            "viewing_public": encode_bytes(self.viewing.public_point, encoding),
            "spending_private": encode_bytes(self.spending.private_scalar, encoding),
            "viewing_private": encode_bytes(self.viewing.private_scalar, encoding),
            "meta_address": self.meta_address_str(encoding),
        }

    @classmethod
    def from_private_keys(
        cls,
        spending_private: Union[bytes, str],
        viewing_private: Union[bytes, str],
        encoding: str = "hex"
    ) -> Identity:
        """
        Importa identità da chiavi private in custodia.

        Raises:
            InvalidFormatError: Chiavi non valide
        """
        spending = keypair_from_private(
            decode_bytes(spending_private, encoding, "spending_private"), "spending_private"
        )
        viewing = keypair_from_private(
            decode_bytes(viewing_private, encoding, "viewing_private"), "viewing_private"
        )

        logger.info("Identity imported from private keys")

        return cls(spending=spending, viewing=viewing)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], encoding: str = "hex") -> Identity:
        for key in ("spending_private", "viewing_private"):
            if key not in data:
                raise format_field_error(key, "missing", "encoded scalar")
        return cls.from_private_keys(data["spending_private"], data["viewing_private"], encoding)


def generate_identity() -> Identity:
    """
    Genera nuova identità con due scalari estratti indipendentemente.

    Raises:
        RandomnessFailureError: CSPRNG non disponibile (fatale)
    """
    identity = Identity(spending=generate_keypair(), viewing=generate_keypair())

    logger.info(
        "Identity generated",
        extra_data={
            "spending_pub": identity.spending.public_point.hex()[:16],
            "viewing_pub": identity.viewing.public_point.hex()[:16],
        }
    )

    return identity


# ============================================================================
# META-ADDRESS
# ============================================================================

def encode_meta_address(spending_public: bytes, viewing_public: bytes) -> bytes:
    """Concatena spending e viewing public (64 bytes)."""
    if len(spending_public) != POINT_SIZE:
        raise format_field_error("spending_public", f"{len(spending_public)} bytes", f"{POINT_SIZE} bytes")
    if len(viewing_public) != POINT_SIZE:
        raise format_field_error("viewing_public", f"{len(viewing_public)} bytes", f"{POINT_SIZE} bytes")
    return bytes(spending_public) + bytes(viewing_public)


def parse_meta_address(
    meta_address: Union[bytes, str],
    encoding: str = "hex"
) -> Tuple[bytes, bytes]:
    """
    Scompone un meta-address nelle due chiavi pubbliche.

    La lunghezza è verificata prima di qualunque operazione di curva;
    entrambe le metà devono poi decodificare a punti validi.

    Args:
        meta_address: 64 bytes raw, o stringa codificata (128 hex / 88 base64)
        encoding: Encoding della stringa

    Returns:
        Tuple[bytes, bytes]: (spending_public, viewing_public)

    Raises:
        InvalidFormatError: Lunghezza o encoding errati
        InvalidPointError: Una delle due metà non è un punto valido
    """
    raw = decode_bytes(meta_address, encoding, "meta_address", META_ADDRESS_SIZE)

    spending_public = decode_point(raw[:POINT_SIZE], "spending_public")
    viewing_public = decode_point(raw[POINT_SIZE:], "viewing_public")

    return spending_public, viewing_public


__all__ = [
    "KeyPair",
    "Identity",
    "generate_keypair",
    "keypair_from_private",
    "generate_identity",
    "encode_meta_address",
    "parse_meta_address",
]
