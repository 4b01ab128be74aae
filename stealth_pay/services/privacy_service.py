"""
StealthPay - Privacy Service
==============================
Interfaccia esterna del protocollo, indipendente dal trasporto.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Campi binari in ingresso e in uscita codificati secondo
settings.wire_encoding (hex di default). Nessuna chiave privata viene
memorizzata: il chiamante le custodisce e le passa a ogni operazione.
"""

from typing import Any, Dict, List, Optional, Union

from stealth_pay.config import StealthSettings, get_settings
from stealth_pay.constants import POINT_SIZE, SCALAR_SIZE
from stealth_pay.crypto.ed25519 import public_from_scalar, validate_scalar
from stealth_pay.domain.keypairs import generate_identity
from stealth_pay.domain.models import Amount, ClaimResult, TransferRecord
from stealth_pay.domain.payload import PayloadCipher
from stealth_pay.domain.stealth import (
    derive_address_with_ephemeral,
    derive_spend_scalar,
    is_owner,
)
from stealth_pay.errors import CryptoError, InvalidFormatError, StorageError
from stealth_pay.logging_setup import AuditLogger, get_logger
from stealth_pay.storage import TransferRegistry, create_registry
from stealth_pay.utils.encoding import decode_bytes, encode_bytes


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("services.privacy")


RecordInput = Union[TransferRecord, Dict[str, Any], str]


# ============================================================================
# PRIVACY SERVICE
# ============================================================================

class PrivacyService:
    """
    Service per pagamenti privati con stealth address.

    Features:
    - Creazione identità (spending + viewing)
    - Derivazione one-time address
    - Cifratura amount/memo
    - Registrazione e scan dei transfer
    - Claim (decifratura + spend scalar)

    Attributes:
        registry: Backend del registry
        settings: Configurazione
        cipher: PayloadCipher configurato

    Examples:
        >>> service = PrivacyService()
        >>> keys = service.create_identity()
        >>> service.send(keys["meta_address"], 0.1, memo="coffee")
        >>> found = service.scan(keys["viewing_private"], keys["spending_public"])
    """

    def __init__(
        self,
        registry: Optional[TransferRegistry] = None,
        settings: Optional[StealthSettings] = None
    ):
        self.settings = settings or get_settings()
        self.registry = registry if registry is not None else create_registry(self.settings)
        self.cipher = PayloadCipher.from_settings(self.settings)
        self.encoding = self.settings.wire_encoding

        self.audit: Optional[AuditLogger] = None
        if self.settings.audit_log_enabled:
            self.audit = AuditLogger(self.settings.log_dir)

        logger.info(
            "Privacy service initialized",
            extra_data={
                "registry": type(self.registry).__name__,
                "cipher": self.cipher.algorithm.value,
                "encoding": self.encoding,
            }
        )

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _decode(self, value, field: str, size: Optional[int] = None) -> bytes:
        return decode_bytes(value, self.encoding, field, size)

    def _encode(self, value: bytes) -> str:
        return encode_bytes(value, self.encoding)

    def _resolve_record(self, record: RecordInput) -> TransferRecord:
        if isinstance(record, TransferRecord):
            return record
        if isinstance(record, dict):
            return TransferRecord.from_dict(record, self.encoding)
        if isinstance(record, str):
            found = self.registry.get(record)
            if found is None:
                raise StorageError(
                    f"Transfer not found: {record}",
                    code="TRANSFER_NOT_FOUND",
                    details={"id": record}
                )
            return found
        raise InvalidFormatError(
            f"Expected transfer record, dict or id, got {type(record).__name__}",
            details={"field": "record"}
        )

    # ========================================================================
    # IDENTITY
    # ========================================================================

    def create_identity(self) -> Dict[str, str]:
        """
        Genera nuova identità.

        Returns:
            dict: spending_public, viewing_public, spending_private,
                viewing_private, meta_address

        Security:
            - Le chiavi private vengono restituite al chiamante e
              dimenticate: nessuna persistenza lato service
        """
        return generate_identity().export_keys(self.encoding)

    # ========================================================================
    # SENDER
    # ========================================================================

    def derive_address(
        self,
        meta_address: Union[str, bytes],
        include_ephemeral_private: bool = False
    ) -> Dict[str, Any]:
        """
        Deriva one-time address per il destinatario.

        Args:
            meta_address: Meta-address codificato
            include_ephemeral_private: Restituisce anche lo scalare
                effimero, necessario per encrypt_payload()

        Returns:
            dict: address, ephemeral_public_key, view_tag
                (+ ephemeral_private se richiesto)
        """
        stealth, ephemeral_private = derive_address_with_ephemeral(meta_address, self.encoding)

        result = stealth.to_dict(self.encoding)
        if include_ephemeral_private:
            result["ephemeral_private"] = self._encode(ephemeral_private)
        return result

    def encrypt_payload(
        self,
        amount: Amount,
        memo: Optional[str],
        ephemeral_private: Union[str, bytes],
        viewing_public: Union[str, bytes]
    ) -> Dict[str, str]:
        """
        Cifra amount e memo per il destinatario.

        Returns:
            dict: encrypted_amount, encrypted_memo (se memo presente)
        """
        payload = self.cipher.encrypt_payload(
            amount,
            memo,
            self._decode(ephemeral_private, "ephemeral_private", SCALAR_SIZE),
            self._decode(viewing_public, "viewing_public", POINT_SIZE),
        )
        return payload.to_dict(self.encoding)

    def register_transfer(self, record: Union[TransferRecord, Dict[str, Any]]) -> bool:
        """
        Pubblica un transfer nel registry.

        Returns:
            bool: True se inserito, False se id duplicato (no-op)
        """
        if isinstance(record, str):
            raise InvalidFormatError("Cannot register a transfer by id", details={"field": "record"})

        transfer = self._resolve_record(record)
        inserted = self.registry.register(transfer)

        if self.audit:
            self.audit.log_transfer_registered(
                transfer.id, transfer.stealth_address.hex(), inserted
            )

        return inserted

    def send(
        self,
        meta_address: Union[str, bytes],
        amount: Amount,
        memo: Optional[str] = None,
        sender_hint: Optional[str] = None,
        timestamp: Optional[Union[int, float]] = None
    ) -> Dict[str, Any]:
        """
        Derive + encrypt + register con un unico scalare effimero.

        Returns:
            dict: Record pubblicato + flag "registered"
        """
        stealth, payload = self.cipher.prepare_payment(meta_address, amount, memo, self.encoding)
        record = TransferRecord.create(stealth, payload, sender_hint=sender_hint, timestamp=timestamp)

        inserted = self.register_transfer(record)

        logger.info(
            "Private transfer sent",
            extra_data={"id": record.id, "address": stealth.address.hex()[:16]}
        )

        result = record.to_dict(self.encoding)
        result["registered"] = inserted
        return result

    # ========================================================================
    # RECIPIENT
    # ========================================================================

    def scan(
        self,
        viewing_private: Union[str, bytes],
        spending_public: Union[str, bytes],
        since_timestamp: Optional[Union[int, float]] = None
    ) -> List[Dict[str, Any]]:
        """
        Trova i transfer destinati al chiamante.

        Returns:
            list: Record posseduti, codificati, in ordine di registro
        """
        records = self.registry.scan(
            self._decode(viewing_private, "viewing_private", SCALAR_SIZE),
            self._decode(spending_public, "spending_public", POINT_SIZE),
            since_timestamp,
        )
        return [record.to_dict(self.encoding) for record in records]

    def claim(
        self,
        record: RecordInput,
        viewing_private: Union[str, bytes],
        spending_private: Union[str, bytes]
    ) -> Dict[str, Any]:
        """
        Decifra un transfer posseduto e deriva lo spend scalar.

        Args:
            record: TransferRecord, dict codificato o id nel registry

        Amount e memo sono decifrati separatamente: se solo il memo
        fallisce l'autenticazione (o non è UTF-8), il claim riesce senza
        "memo" e con "memo_error" (dict dell'eccezione).

        Returns:
            dict: amount, memo (se presente), spend_scalar, memo_error (se memo illeggibile)

        Raises:
            CryptoError: Il record non appartiene alle chiavi (code NOT_OWNER)
            AuthenticationFailureError: Amount manomesso
            StorageError: Id non presente nel registry
        """
        transfer = self._resolve_record(record)
        view_scalar = validate_scalar(
            self._decode(viewing_private, "viewing_private", SCALAR_SIZE), "viewing_private"
        )
        spend_scalar = validate_scalar(
            self._decode(spending_private, "spending_private", SCALAR_SIZE), "spending_private"
        )

        if not is_owner(
            transfer.stealth_address,
            transfer.ephemeral_public_key,
            view_scalar,
            public_from_scalar(spend_scalar),
        ):
            raise CryptoError(
                "Transfer is not addressed to these keys",
                code="NOT_OWNER",
                details={"id": transfer.id}
            )

        amount = self.cipher.decrypt_amount(
            transfer.encrypted_amount, transfer.ephemeral_public_key, view_scalar
        )

        # Memo isolato: un memo corrotto non rende illeggibile l'amount
        memo, memo_error = None, None
        try:
            memo = self.cipher.decrypt_memo(
                transfer.encrypted_memo, transfer.ephemeral_public_key, view_scalar
            )
        except CryptoError as e:
            memo_error = e
            logger.warning(
                "Memo could not be decrypted",
                extra_data={"id": transfer.id, "error": e.code}
            )

        one_time_scalar = derive_spend_scalar(transfer.ephemeral_public_key, view_scalar, spend_scalar)

        if self.audit:
            self.audit.log_claim(transfer.id, transfer.stealth_address.hex())

        logger.info("Transfer claimed", extra_data={"id": transfer.id})

        result = ClaimResult(
            amount=amount,
            memo=memo,
            spend_scalar=one_time_scalar,
        ).to_dict(self.encoding)
        if memo_error is not None:
            result["memo_error"] = memo_error.to_dict()
        return result

    # ========================================================================
    # STATISTICS
    # ========================================================================

    def get_stats(self) -> Dict[str, Any]:
        """
        Statistiche pubbliche.

        Examples:
            >>> service.get_stats()
            {'total_private_transfers': 3, 'total_volume': None, ...}
        """
        stats = self.registry.stats()
        stats["payload_cipher"] = self.cipher.algorithm.value
        stats["registry_backend"] = type(self.registry).__name__
        return stats

    def close(self) -> None:
        self.registry.close()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "PrivacyService",
]
