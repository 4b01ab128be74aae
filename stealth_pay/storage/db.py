"""
StealthPay - SQLite Transfer Registry
=======================================
Backend persistente del registry con SQLite.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Connessioni thread-local, WAL per letture concorrenti
- Ordine di inserimento = rowid autoincrement
- id UNIQUE: INSERT OR IGNORE (first write wins)
- Nessun segreto persistito: solo i campi pubblici del record
"""

import sqlite3
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple, Union

from stealth_pay.domain.models import TransferRecord
from stealth_pay.errors import (
    DatabaseError,
    DatabaseConnectionError,
    InvalidFormatError,
    StealthPayException,
)
from stealth_pay.logging_setup import get_logger
from stealth_pay.storage.registry import TransferRegistry


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("storage")


# ============================================================================
# DATABASE SCHEMA
# ============================================================================

SCHEMA_VERSION = 1

CREATE_TABLES_SQL = """
-- Private transfers (append-only)
CREATE TABLE IF NOT EXISTS transfers (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    id TEXT UNIQUE NOT NULL,
    stealth_address BLOB NOT NULL,
    ephemeral_public_key BLOB NOT NULL,
    view_tag INTEGER NOT NULL,
    encrypted_amount BLOB NOT NULL,
    encrypted_memo BLOB,
    sender_hint TEXT,
    timestamp NUMERIC NOT NULL,
    created_at INTEGER NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_transfers_timestamp ON transfers(timestamp);

-- Metadata table
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);

INSERT OR REPLACE INTO metadata (key, value, updated_at)
VALUES ('schema_version', '1', strftime('%s', 'now'));
"""

SELECT_COLUMNS = """
    id, stealth_address, ephemeral_public_key, view_tag,
    encrypted_amount, encrypted_memo, sender_hint, timestamp
"""


# ============================================================================
# DATABASE CLASS
# ============================================================================

class SQLiteTransferRegistry(TransferRegistry):
    """
    Registry persistente su file SQLite.

    Thread-safe: una connessione per thread, scritture serializzate
    da un lock.

    Attributes:
        db_path: Path database file

    Examples:
        >>> registry = SQLiteTransferRegistry(Path("transfers.db"))
        >>> registry.register(record)
        True
        >>> registry.scan(viewing_private, spending_public)
    """

    def __init__(self, db_path: Union[Path, str], scan_warn_threshold_ms: Optional[int] = None):
        self.db_path = Path(db_path)
        self.scan_warn_threshold_ms = scan_warn_threshold_ms

        # Thread-local storage per connections
        self._local = threading.local()
        self._connections: List[Tuple[threading.Thread, sqlite3.Connection]] = []
        self._connections_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._closed = False

        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self._initialize_database()

        logger.info(
            "Database initialized",
            extra_data={"db_path": str(self.db_path)}
        )

    def _get_connection(self) -> sqlite3.Connection:
        """Ottieni connection thread-local"""
        # Dopo close() nessun thread riusa connessioni già chiuse
        if self._closed:
            raise DatabaseConnectionError(
                f"Registry is closed: {self.db_path}",
                code="DB_CLOSED"
            )

        if not hasattr(self._local, 'connection'):
            try:
                connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                    timeout=30.0
                )
                # WAL mode: i lettori non bloccano lo scrittore
                connection.execute("PRAGMA journal_mode = WAL")
            except sqlite3.Error as e:
                raise DatabaseConnectionError(
                    f"Failed to connect to database: {e}",
                    code="DB_CONNECTION_FAILED"
                )

            self._local.connection = connection
            with self._connections_lock:
                self._prune_dead_connections()
                self._connections.append((threading.current_thread(), connection))

        return self._local.connection

    def _prune_dead_connections(self) -> None:
        """Chiude le connessioni dei thread terminati (chiamare con _connections_lock)."""
        alive = []
        for thread, connection in self._connections:
            if thread.is_alive():
                alive.append((thread, connection))
            else:
                connection.close()
        self._connections = alive

    @property
    def open_connections(self) -> int:
        """Connessioni attualmente tracciate."""
        with self._connections_lock:
            return len(self._connections)

    def _initialize_database(self) -> None:
        """Inizializza database con schema"""
        try:
            conn = self._get_connection()
            with self._write_lock:
                conn.executescript(CREATE_TABLES_SQL)
                conn.commit()

            logger.debug("Database schema initialized")

        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                code="DB_INIT_FAILED"
            )

    @staticmethod
    def _row_to_record(row) -> Optional[TransferRecord]:
        try:
            return TransferRecord(
                id=row[0],
                stealth_address=bytes(row[1]),
                ephemeral_public_key=bytes(row[2]),
                view_tag=row[3],
                encrypted_amount=bytes(row[4]),
                encrypted_memo=bytes(row[5]) if row[5] is not None else None,
                sender_hint=row[6],
                timestamp=row[7],
            )
        except (StealthPayException, TypeError) as e:
            logger.warning(
                "Skipping unreadable transfer row",
                extra_data={"id": row[0], "error": str(e)}
            )
            return None

    # ========================================================================
    # TRANSFER OPERATIONS
    # ========================================================================

    def register(self, record: TransferRecord) -> bool:
        """
        Salva transfer su database.

        Returns:
            bool: True se inserito, False se l'id esisteva già

        Raises:
            DatabaseError: Se salvataggio fallisce
        """
        if not isinstance(record, TransferRecord):
            raise InvalidFormatError(
                f"Expected TransferRecord, got {type(record).__name__}",
                details={"field": "record"}
            )

        conn = self._get_connection()
        try:
            with self._write_lock:
                cursor = conn.execute("""
                    INSERT OR IGNORE INTO transfers (
                        id, stealth_address, ephemeral_public_key, view_tag,
                        encrypted_amount, encrypted_memo, sender_hint, timestamp, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    record.id,
                    record.stealth_address,
                    record.ephemeral_public_key,
                    record.view_tag,
                    record.encrypted_amount,
                    record.encrypted_memo,
                    record.sender_hint,
                    record.timestamp,
                    int(time.time()),
                ))
                conn.commit()
                inserted = cursor.rowcount == 1

        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(
                f"Failed to save transfer: {e}",
                code="TRANSFER_SAVE_FAILED"
            )

        logger.debug(
            "Transfer saved to database" if inserted else "Duplicate transfer id ignored",
            extra_data={"id": record.id}
        )

        return inserted

    def get(self, transfer_id: str) -> Optional[TransferRecord]:
        """Carica transfer per id (None se assente)."""
        try:
            cursor = self._get_connection().execute(
                f"SELECT {SELECT_COLUMNS} FROM transfers WHERE id = ?",
                (transfer_id,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to load transfer: {e}",
                code="TRANSFER_LOAD_FAILED"
            )

        return self._row_to_record(row) if row else None

    def snapshot(self) -> List[TransferRecord]:
        """
        Carica tutti i transfer (ordinati per inserimento).

        Una singola SELECT vede uno snapshot consistente in WAL mode.
        """
        try:
            cursor = self._get_connection().execute(
                f"SELECT {SELECT_COLUMNS} FROM transfers ORDER BY seq ASC"
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to load transfers: {e}",
                code="TRANSFERS_LOAD_FAILED"
            )

        records = []
        for row in rows:
            record = self._row_to_record(row)
            if record is not None:
                records.append(record)
        return records

    def __len__(self) -> int:
        try:
            cursor = self._get_connection().execute("SELECT COUNT(*) FROM transfers")
            return cursor.fetchone()[0]
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to count transfers: {e}")

    # ========================================================================
    # UTILITY
    # ========================================================================

    def close(self) -> None:
        """
        Chiudi database connections di tutti i thread.

        Idempotente. Ogni operazione successiva, da qualunque thread,
        solleva DatabaseConnectionError (code DB_CLOSED).
        """
        with self._connections_lock:
            if self._closed:
                return
            self._closed = True
            for _, connection in self._connections:
                connection.close()
            self._connections.clear()

        if hasattr(self._local, 'connection'):
            delattr(self._local, 'connection')

        logger.info("Database closed")

    def __repr__(self) -> str:
        return f"SQLiteTransferRegistry(db_path={self.db_path})"


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "SQLiteTransferRegistry",
    "SCHEMA_VERSION",
]
