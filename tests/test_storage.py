"""
StealthPay - Storage Tests
============================
Unit tests per SQLiteTransferRegistry.
"""

import sqlite3
import threading

import pytest

from stealth_pay.errors import DatabaseConnectionError, InvalidFormatError
from stealth_pay.storage import create_registry, InMemoryTransferRegistry
from stealth_pay.storage.db import SQLiteTransferRegistry


class TestSQLiteTransferRegistry:
    """Test SQLiteTransferRegistry class"""

    def test_database_initialization(self, sqlite_registry):
        """Test database initializes correctly"""
        assert sqlite_registry.db_path.exists()
        assert len(sqlite_registry) == 0

    def test_save_and_load_transfer(self, sqlite_registry, identity, make_transfer):
        """Test saving and loading transfers"""
        record = make_transfer(identity, 0.1, memo="persisted", sender_hint="alice", timestamp=1234)

        assert sqlite_registry.register(record) is True

        loaded = sqlite_registry.get(record.id)
        assert loaded == record
        assert loaded.encrypted_memo == record.encrypted_memo
        assert loaded.sender_hint == "alice"

    def test_register_rejects_non_record(self, sqlite_registry):
        """Test tipo errato"""
        with pytest.raises(InvalidFormatError):
            sqlite_registry.register({"id": "x"})

    def test_float_timestamp_preserved(self, sqlite_registry, identity, make_transfer):
        """Test timestamp float"""
        record = make_transfer(identity, timestamp=12.5)
        sqlite_registry.register(record)
        assert sqlite_registry.get(record.id).timestamp == 12.5

    def test_duplicate_id_is_noop(self, sqlite_registry, identity, make_transfer):
        """Test INSERT OR IGNORE"""
        first = make_transfer(identity, 1, transfer_id="dup")
        second = make_transfer(identity, 2, transfer_id="dup")

        assert sqlite_registry.register(first) is True
        assert sqlite_registry.register(second) is False
        assert len(sqlite_registry) == 1
        assert sqlite_registry.get("dup") == first

    def test_snapshot_insertion_order(self, sqlite_registry, identity, make_transfer):
        """Test ordine = rowid, non timestamp"""
        records = [make_transfer(identity, timestamp=ts) for ts in (30, 10, 20)]
        for record in records:
            sqlite_registry.register(record)

        assert sqlite_registry.snapshot() == records

    def test_scan(self, sqlite_registry, identity, other_identity, make_transfer):
        """Test scan sul backend SQLite"""
        mine = [make_transfer(identity, timestamp=ts) for ts in (10, 20, 30)]
        for record in mine:
            sqlite_registry.register(record)
            sqlite_registry.register(make_transfer(other_identity, timestamp=25))

        found = sqlite_registry.scan(
            identity.viewing.private_scalar, identity.spending.public_point, since_timestamp=20
        )
        assert [r.timestamp for r in found] == [20, 30]

    def test_malformed_row_skipped(self, sqlite_registry, identity, make_transfer):
        """Test riga illeggibile ignorata nello snapshot"""
        good = make_transfer(identity)
        sqlite_registry.register(good)

        conn = sqlite3.connect(str(sqlite_registry.db_path))
        conn.execute(
            "INSERT INTO transfers (id, stealth_address, ephemeral_public_key, view_tag, "
            "encrypted_amount, timestamp, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            ("broken", b"\x00" * 32, b"\x00" * 32, 999, b"", 1, 1)
        )
        conn.commit()
        conn.close()

        assert sqlite_registry.snapshot() == [good]
        assert sqlite_registry.scan(
            identity.viewing.private_scalar, identity.spending.public_point
        ) == [good]

    def test_persistence_across_instances(self, temp_data_dir, identity, make_transfer):
        """Test dati persistiti dopo close"""
        db_path = temp_data_dir / "persist.db"
        record = make_transfer(identity, 3)

        first = SQLiteTransferRegistry(db_path)
        first.register(record)
        first.close()

        second = SQLiteTransferRegistry(db_path)
        try:
            assert second.get(record.id) == record
            assert second.stats() == {"total_private_transfers": 1, "total_volume": None}
        finally:
            second.close()

    def test_concurrent_writers(self, sqlite_registry, identity, make_transfer):
        """Test register da più thread"""
        records = [make_transfer(identity, i) for i in range(30)]
        errors = []

        def writer(chunk):
            try:
                for record in chunk:
                    sqlite_registry.register(record)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(records[i::3],)) for i in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(sqlite_registry) == 30
        found = sqlite_registry.scan(identity.viewing.private_scalar, identity.spending.public_point)
        assert {r.id for r in found} == {r.id for r in records}

    def test_close_invalidates_all_threads(self, temp_data_dir, identity, make_transfer):
        """Test close(): ogni thread riceve DB_CLOSED, close ripetuto innocuo"""
        registry = SQLiteTransferRegistry(temp_data_dir / "closing.db")
        registry.register(make_transfer(identity))

        ready, closed = threading.Event(), threading.Event()
        outcome = {}

        def worker():
            outcome["before"] = len(registry)
            ready.set()
            closed.wait(5)
            try:
                len(registry)
            except DatabaseConnectionError as e:
                outcome["after"] = e.code

        thread = threading.Thread(target=worker)
        thread.start()
        ready.wait(5)
        registry.close()
        closed.set()
        thread.join()

        assert outcome == {"before": 1, "after": "DB_CLOSED"}
        with pytest.raises(DatabaseConnectionError):
            registry.get("any")
        registry.close()

    def test_dead_thread_connections_pruned(self, sqlite_registry):
        """Test connessioni dei thread terminati non si accumulano"""
        def reader():
            len(sqlite_registry)

        for _ in range(5):
            thread = threading.Thread(target=reader)
            thread.start()
            thread.join()

        assert sqlite_registry.open_connections == 2


class TestCreateRegistry:
    """Test factory del backend"""

    def test_memory_backend(self, test_settings):
        """Test backend memory"""
        assert isinstance(create_registry(test_settings), InMemoryTransferRegistry)

    def test_sqlite_backend(self, test_settings, temp_data_dir):
        """Test backend sqlite su db_path configurato"""
        settings = test_settings.model_copy(update={
            "registry_backend": "sqlite",
            "db_path": temp_data_dir / "sub" / "registry.db",
        })
        registry = create_registry(settings)
        try:
            assert isinstance(registry, SQLiteTransferRegistry)
            assert (temp_data_dir / "sub" / "registry.db").exists()
        finally:
            registry.close()
