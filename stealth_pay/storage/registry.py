"""
StealthPay - Transfer Registry
================================
Store append-only dei transfer privati e scanner a due fasi.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Registro in ordine di inserimento, id univoci (first write wins)
- Scan su snapshot: un register concorrente non altera lo scan in corso
- Fase 1: view tag (1 scalar mult, scarta ~255/256 record)
- Fase 2: ricostruzione esatta della stealth address
- Record malformati/estranei ignorati, mai fatali
"""

import threading
from collections import OrderedDict
from typing import Dict, Any, List, Optional, Union

from stealth_pay.crypto.ed25519 import decode_point, validate_scalar
from stealth_pay.domain.models import TransferRecord
from stealth_pay.domain.stealth import owns_record
from stealth_pay.errors import InvalidFormatError
from stealth_pay.logging_setup import get_logger, PerformanceLogger


logger = get_logger("registry")


# ============================================================================
# BASE REGISTRY
# ============================================================================

class TransferRegistry:
    """
    Interfaccia comune dei backend del registry.

    Le sottoclassi implementano register/get/snapshot/__len__;
    scan e stats sono condivisi e lavorano sempre su snapshot().
    """

    scan_warn_threshold_ms: Optional[int] = None

    def register(self, record: TransferRecord) -> bool:
        """
        Aggiunge un record.

        Returns:
            bool: True se inserito, False se l'id esisteva già (no-op)
        """
        raise NotImplementedError

    def get(self, transfer_id: str) -> Optional[TransferRecord]:
        raise NotImplementedError

    def snapshot(self) -> List[TransferRecord]:
        """Copia consistente dei record, in ordine di inserimento."""
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError

    def close(self) -> None:
        pass

    # ------------------------------------------------------------------
    # Scan
    # ------------------------------------------------------------------

    def scan(
        self,
        viewing_private: bytes,
        spending_public: bytes,
        since_timestamp: Optional[Union[int, float]] = None
    ) -> List[TransferRecord]:
        """
        Trova i transfer destinati al possessore delle chiavi.

        Args:
            viewing_private: Scalare viewing del destinatario
            spending_public: K_spend del destinatario
            since_timestamp: Se presente, esclude record con timestamp
                strettamente minore (0 è un bound valido, None = nessun filtro)

        Returns:
            List[TransferRecord]: Record posseduti, in ordine di registro

        Raises:
            InvalidFormatError: Chiavi del destinatario malformate
            InvalidPointError: spending_public non è un punto valido
        """
        view_scalar = validate_scalar(viewing_private, "viewing_private")
        spend_point = decode_point(spending_public, "spending_public")

        if since_timestamp is not None and (
            isinstance(since_timestamp, bool) or not isinstance(since_timestamp, (int, float))
        ):
            raise InvalidFormatError(
                "since_timestamp must be a number",
                details={"field": "since_timestamp"}
            )

        matches: List[TransferRecord] = []
        skipped = 0

        with PerformanceLogger(logger, "scan", threshold_ms=self.scan_warn_threshold_ms) as perf:
            records = self.snapshot()

            for record in records:
                if since_timestamp is not None and record.timestamp < since_timestamp:
                    continue

                owned = owns_record(
                    record.view_tag,
                    record.stealth_address,
                    record.ephemeral_public_key,
                    view_scalar,
                    spend_point,
                )

                if owned is None:
                    skipped += 1
                    continue

                if owned:
                    matches.append(record)

        logger.info(
            "Scan completed",
            extra_data={
                "records": len(records),
                "matches": len(matches),
                "skipped": skipped,
                "duration_ms": round(perf.elapsed_ms, 2),
            }
        )

        return matches

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    def stats(self) -> Dict[str, Any]:
        """
        Statistiche pubbliche del registry.

        total_volume è sempre None: gli importi sono cifrati.
        """
        return {
            "total_private_transfers": len(self),
            "total_volume": None,
        }


# ============================================================================
# IN-MEMORY BACKEND
# ============================================================================

class InMemoryTransferRegistry(TransferRegistry):
    """
    Registry in memoria, thread-safe.

    Examples:
        >>> registry = InMemoryTransferRegistry()
        >>> registry.register(record)
        True
        >>> registry.register(record)
        False
    """

    def __init__(self, scan_warn_threshold_ms: Optional[int] = None):
        self._records: "OrderedDict[str, TransferRecord]" = OrderedDict()
        self._lock = threading.RLock()
        self.scan_warn_threshold_ms = scan_warn_threshold_ms

    def register(self, record: TransferRecord) -> bool:
        if not isinstance(record, TransferRecord):
            raise InvalidFormatError(
                f"Expected TransferRecord, got {type(record).__name__}",
                details={"field": "record"}
            )

        with self._lock:
            if record.id in self._records:
                logger.debug("Duplicate transfer id ignored", extra_data={"id": record.id})
                return False
            self._records[record.id] = record

        logger.debug("Transfer registered", extra_data={"id": record.id})
        return True

    def get(self, transfer_id: str) -> Optional[TransferRecord]:
        with self._lock:
            return self._records.get(transfer_id)

    def snapshot(self) -> List[TransferRecord]:
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __repr__(self) -> str:
        return f"InMemoryTransferRegistry(records={len(self)})"


__all__ = [
    "TransferRegistry",
    "InMemoryTransferRegistry",
]
