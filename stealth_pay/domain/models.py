"""
StealthPay - Domain Models
============================
Strutture dati del protocollo: stealth address, payload cifrato,
transfer record.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Tutti i campi binari sono bytes raw; to_dict()/from_dict() li
codificano per il trasporto (hex o base64) in modo lossless.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, Union
import time
import uuid

from stealth_pay.constants import POINT_SIZE
from stealth_pay.errors import InvalidFormatError
from stealth_pay.utils.encoding import encode_bytes, decode_bytes
from stealth_pay.utils.validators import validate_view_tag, validate_timestamp


Amount = Union[int, float]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _require(data: Dict[str, Any], key: str):
    if key not in data or data[key] is None:
        raise InvalidFormatError(f"Missing field '{key}'", details={"field": key})
    return data[key]


# ============================================================================
# STEALTH ADDRESS
# ============================================================================

@dataclass(frozen=True)
class StealthAddress:
    """
    One-time address prodotta dal mittente per un singolo pagamento.

    Attributes:
        address: Punto pubblico one-time (32 bytes)
        ephemeral_public_key: E = e*B (32 bytes)
        view_tag: Primo byte di SHA256(S), filtro veloce per lo scan
    """

    address: bytes
    ephemeral_public_key: bytes
    view_tag: int

    def __post_init__(self):
        if len(self.address) != POINT_SIZE:
            raise InvalidFormatError("Stealth address must be 32 bytes", details={"field": "address"})
        if len(self.ephemeral_public_key) != POINT_SIZE:
            raise InvalidFormatError(
                "Ephemeral public key must be 32 bytes",
                details={"field": "ephemeral_public_key"}
            )
        validate_view_tag(self.view_tag)

    def to_dict(self, encoding: str = "hex") -> Dict[str, Any]:
        return {
            "address": encode_bytes(self.address, encoding),
            "ephemeral_public_key": encode_bytes(self.ephemeral_public_key, encoding),
            "view_tag": self.view_tag,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], encoding: str = "hex") -> StealthAddress:
        return cls(
            address=decode_bytes(_require(data, "address"), encoding, "address", POINT_SIZE),
            ephemeral_public_key=decode_bytes(
                _require(data, "ephemeral_public_key"), encoding, "ephemeral_public_key", POINT_SIZE
            ),
            view_tag=_require(data, "view_tag"),
        )

    def __str__(self) -> str:
        return f"StealthAddress({self.address.hex()[:16]}..., tag={self.view_tag})"


# ============================================================================
# PAYLOAD
# ============================================================================

@dataclass(frozen=True)
class EncryptedPayload:
    """
    Amount e memo cifrati, ciascuno come nonce || ciphertext || tag.

    encrypted_memo è None quando il transfer non ha memo.
    """

    encrypted_amount: bytes
    encrypted_memo: Optional[bytes] = None

    def to_dict(self, encoding: str = "hex") -> Dict[str, Any]:
        data = {"encrypted_amount": encode_bytes(self.encrypted_amount, encoding)}
        if self.encrypted_memo is not None:
            data["encrypted_memo"] = encode_bytes(self.encrypted_memo, encoding)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], encoding: str = "hex") -> EncryptedPayload:
        memo = data.get("encrypted_memo")
        return cls(
            encrypted_amount=decode_bytes(_require(data, "encrypted_amount"), encoding, "encrypted_amount"),
            encrypted_memo=decode_bytes(memo, encoding, "encrypted_memo") if memo is not None else None,
        )


@dataclass(frozen=True)
class DecryptedPayload:
    """Amount e memo in chiaro (solo lato destinatario)."""

    amount: Amount
    memo: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"amount": self.amount}
        if self.memo is not None:
            data["memo"] = self.memo
        return data


@dataclass(frozen=True)
class ClaimResult:
    """
    Risultato di un claim: payload decifrato + scalare one-time per spendere.

    spend_scalar è segreto: non va mai loggato.
    """

    amount: Amount
    memo: Optional[str]
    spend_scalar: bytes = field(repr=False)

    def to_dict(self, encoding: str = "hex") -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "amount": self.amount,
            "spend_scalar": encode_bytes(self.spend_scalar, encoding),
        }
        if self.memo is not None:
            data["memo"] = self.memo
        return data


# ============================================================================
# TRANSFER RECORD
# ============================================================================

@dataclass(frozen=True)
class TransferRecord:
    """
    Transfer privato pubblicato nel registry.

    Immutabile dopo la creazione. Più record possono riferirsi allo
    stesso destinatario senza essere collegabili tra loro.

    Attributes:
        id: Identificativo univoco nel registry
        stealth_address: Punto one-time (32 bytes)
        ephemeral_public_key: E (32 bytes)
        view_tag: 0..255
        encrypted_amount: nonce || ciphertext
        encrypted_memo: nonce || ciphertext, opzionale
        sender_hint: Hint opzionale in chiaro sull'identità del mittente
        timestamp: Epoch in millisecondi (o qualunque unità coerente del chiamante)
    """

    id: str
    stealth_address: bytes
    ephemeral_public_key: bytes
    view_tag: int
    encrypted_amount: bytes
    encrypted_memo: Optional[bytes] = None
    sender_hint: Optional[str] = None
    timestamp: Union[int, float] = field(default_factory=_now_ms)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise InvalidFormatError("Transfer id must be a non-empty string", details={"field": "id"})
        for name in ("stealth_address", "ephemeral_public_key", "encrypted_amount"):
            if not isinstance(getattr(self, name), bytes):
                raise InvalidFormatError(f"'{name}' must be bytes", details={"field": name})
        if self.encrypted_memo is not None and not isinstance(self.encrypted_memo, bytes):
            raise InvalidFormatError("'encrypted_memo' must be bytes", details={"field": "encrypted_memo"})
        validate_view_tag(self.view_tag)
        validate_timestamp(self.timestamp)

    @classmethod
    def create(
        cls,
        stealth: StealthAddress,
        payload: EncryptedPayload,
        sender_hint: Optional[str] = None,
        timestamp: Optional[Union[int, float]] = None,
        transfer_id: Optional[str] = None,
    ) -> TransferRecord:
        """
        Assembla un record da stealth address e payload cifrato.

        Examples:
            >>> record = TransferRecord.create(stealth, payload)
            >>> len(record.id)
            32
        """
        return cls(
            id=transfer_id or uuid.uuid4().hex,
            stealth_address=stealth.address,
            ephemeral_public_key=stealth.ephemeral_public_key,
            view_tag=stealth.view_tag,
            encrypted_amount=payload.encrypted_amount,
            encrypted_memo=payload.encrypted_memo,
            sender_hint=sender_hint,
            timestamp=_now_ms() if timestamp is None else timestamp,
        )

    @property
    def payload(self) -> EncryptedPayload:
        return EncryptedPayload(self.encrypted_amount, self.encrypted_memo)

    def to_dict(self, encoding: str = "hex") -> Dict[str, Any]:
        """
        Serializza record per collaboratori / storage.

        Examples:
            >>> data = record.to_dict()
            >>> len(data["stealth_address"])
            64
        """
        data: Dict[str, Any] = {
            "id": self.id,
            "stealth_address": encode_bytes(self.stealth_address, encoding),
            "ephemeral_public_key": encode_bytes(self.ephemeral_public_key, encoding),
            "view_tag": self.view_tag,
            "encrypted_amount": encode_bytes(self.encrypted_amount, encoding),
            "timestamp": self.timestamp,
        }
        if self.encrypted_memo is not None:
            data["encrypted_memo"] = encode_bytes(self.encrypted_memo, encoding)
        if self.sender_hint is not None:
            data["sender_hint"] = self.sender_hint
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], encoding: str = "hex") -> TransferRecord:
        """
        Deserializza record.

        Lunghezze di stealth address ed ephemeral key NON sono verificate
        qui: un record estraneo o malformato deve poter stare nel registry
        ed essere semplicemente scartato dallo scan.

        Raises:
            InvalidFormatError: Campi mancanti o non decodificabili
        """
        memo = data.get("encrypted_memo")
        return cls(
            id=_require(data, "id"),
            stealth_address=decode_bytes(_require(data, "stealth_address"), encoding, "stealth_address"),
            ephemeral_public_key=decode_bytes(
                _require(data, "ephemeral_public_key"), encoding, "ephemeral_public_key"
            ),
            view_tag=_require(data, "view_tag"),
            encrypted_amount=decode_bytes(_require(data, "encrypted_amount"), encoding, "encrypted_amount"),
            encrypted_memo=decode_bytes(memo, encoding, "encrypted_memo") if memo is not None else None,
            sender_hint=data.get("sender_hint"),
            timestamp=_require(data, "timestamp"),
        )

    def __str__(self) -> str:
        return f"TransferRecord(id={self.id[:12]}, to={self.stealth_address.hex()[:16]}..., ts={self.timestamp})"


__all__ = [
    "Amount",
    "StealthAddress",
    "EncryptedPayload",
    "DecryptedPayload",
    "ClaimResult",
    "TransferRecord",
]
