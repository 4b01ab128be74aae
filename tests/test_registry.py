"""
StealthPay - Registry & Scanner Tests
=======================================
Unit tests per InMemoryTransferRegistry e scan a due fasi.
"""

import threading

import pytest

from stealth_pay.crypto.ed25519 import public_from_scalar
from stealth_pay.domain.models import TransferRecord
from stealth_pay.domain.payload import decrypt_payload
from stealth_pay.domain.stealth import derive_spend_scalar
from stealth_pay.errors import InvalidFormatError, InvalidPointError
from stealth_pay.storage.registry import InMemoryTransferRegistry


def _scan(registry, identity, since=None):
    return registry.scan(identity.viewing.private_scalar, identity.spending.public_point, since)


class TestRegister:
    """Test registrazione"""

    def test_register_and_get(self, registry, identity, make_transfer):
        """Test record registrato e recuperabile"""
        record = make_transfer(identity)
        assert registry.register(record) is True
        assert registry.get(record.id) == record
        assert len(registry) == 1

    def test_duplicate_id_is_noop(self, registry, identity, make_transfer):
        """Test id duplicato: first write wins"""
        first = make_transfer(identity, 1, transfer_id="tx-1")
        second = make_transfer(identity, 2, transfer_id="tx-1")

        assert registry.register(first) is True
        assert registry.register(second) is False
        assert registry.register(first) is False

        assert len(registry) == 1
        assert registry.get("tx-1") == first

        found = _scan(registry, identity)
        assert [r.id for r in found] == ["tx-1"]

    def test_get_missing(self, registry):
        """Test id assente"""
        assert registry.get("missing") is None

    def test_register_rejects_non_record(self, registry):
        """Test tipo errato"""
        with pytest.raises(InvalidFormatError):
            registry.register({"id": "x"})

    def test_stats(self, registry, identity, make_transfer):
        """Test statistiche: volume sconosciuto"""
        for _ in range(3):
            registry.register(make_transfer(identity))

        assert registry.stats() == {"total_private_transfers": 3, "total_volume": None}


class TestScan:
    """Test scanner a due fasi"""

    def test_concrete_scenario(self, registry, identity, other_identity, make_transfer):
        """Test pagamento da 0.1 trovato, decifrato e spendibile"""
        registry.register(make_transfer(other_identity, 5))
        record = make_transfer(identity, 0.1, memo="coffee")
        registry.register(record)
        registry.register(make_transfer(other_identity, 7))

        found = _scan(registry, identity)
        assert found == [record]

        payload = decrypt_payload(
            record.encrypted_amount,
            record.encrypted_memo,
            record.ephemeral_public_key,
            identity.viewing.private_scalar,
        )
        assert payload.amount == 0.1
        assert payload.memo == "coffee"

        spend_scalar = derive_spend_scalar(
            record.ephemeral_public_key,
            identity.viewing.private_scalar,
            identity.spending.private_scalar,
        )
        assert public_from_scalar(spend_scalar) == record.stealth_address

    def test_registry_order(self, registry, identity, other_identity, make_transfer):
        """Test risultati in ordine di inserimento"""
        records = [make_transfer(identity, i, timestamp=100 - i) for i in range(5)]
        for i, record in enumerate(records):
            registry.register(record)
            registry.register(make_transfer(other_identity, i))

        assert _scan(registry, identity) == records

    def test_since_timestamp_inclusive(self, registry, identity, make_transfer):
        """Test [10, 20, 30] con since=20 -> 20 e 30"""
        for ts in (10, 20, 30):
            registry.register(make_transfer(identity, timestamp=ts))

        assert [r.timestamp for r in _scan(registry, identity, 20)] == [20, 30]
        assert [r.timestamp for r in _scan(registry, identity, 31)] == []

    def test_since_zero_is_a_bound(self, registry, identity, make_transfer):
        """Test since=0 filtra davvero, None no"""
        for ts in (-5, 0, 10):
            registry.register(make_transfer(identity, timestamp=ts))

        assert [r.timestamp for r in _scan(registry, identity, 0)] == [0, 10]
        assert [r.timestamp for r in _scan(registry, identity, None)] == [-5, 0, 10]

    def test_since_rejects_non_number(self, registry, identity):
        """Test since non numerico"""
        with pytest.raises(InvalidFormatError):
            _scan(registry, identity, "20")

    def test_no_cross_results(self, registry, identity, other_identity, make_transfer):
        """Test ciascuno vede solo i propri"""
        mine = [make_transfer(identity) for _ in range(3)]
        theirs = [make_transfer(other_identity) for _ in range(4)]
        for record in mine + theirs:
            registry.register(record)

        assert _scan(registry, identity) == mine
        assert _scan(registry, other_identity) == theirs

    def test_malformed_records_skipped(self, registry, identity, make_transfer):
        """Test record estranei/malformati non interrompono lo scan"""
        good = make_transfer(identity)

        registry.register(TransferRecord(
            id="bad-ephemeral",
            stealth_address=good.stealth_address,
            ephemeral_public_key=bytes(32),
            view_tag=good.view_tag,
            encrypted_amount=b"\x00" * 40,
        ))
        registry.register(TransferRecord(
            id="short-ephemeral",
            stealth_address=good.stealth_address,
            ephemeral_public_key=b"\x01" * 7,
            view_tag=0,
            encrypted_amount=b"",
        ))
        registry.register(TransferRecord(
            id="short-address",
            stealth_address=b"\x02" * 3,
            ephemeral_public_key=good.ephemeral_public_key,
            view_tag=good.view_tag,
            encrypted_amount=b"",
        ))
        registry.register(good)

        assert _scan(registry, identity) == [good]

    def test_wrong_view_tag_filtered(self, registry, identity, make_transfer):
        """Test fase 1: tag alterato scarta il record"""
        record = make_transfer(identity)
        altered = TransferRecord(
            id="altered",
            stealth_address=record.stealth_address,
            ephemeral_public_key=record.ephemeral_public_key,
            view_tag=(record.view_tag + 1) % 256,
            encrypted_amount=record.encrypted_amount,
        )
        registry.register(altered)

        assert _scan(registry, identity) == []

    def test_invalid_recipient_keys(self, registry, identity, make_transfer):
        """Test chiavi del destinatario malformate sollevano"""
        registry.register(make_transfer(identity))

        with pytest.raises(InvalidFormatError):
            registry.scan(bytes(32), identity.spending.public_point)
        with pytest.raises(InvalidFormatError):
            registry.scan(identity.viewing.private_scalar, b"\x01" * 31)
        with pytest.raises(InvalidPointError):
            registry.scan(identity.viewing.private_scalar, bytes(32))

    def test_empty_registry(self, registry, identity):
        """Test scan su registry vuoto"""
        assert _scan(registry, identity) == []


class TestConcurrency:
    """Test register concorrenti durante lo scan"""

    def test_concurrent_register_and_scan(self, identity, other_identity, make_transfer):
        """Test nessun crash, nessun doppione"""
        registry = InMemoryTransferRegistry()
        mine = [make_transfer(identity, i) for i in range(40)]
        theirs = [make_transfer(other_identity, i) for i in range(40)]
        errors = []
        done = threading.Event()

        def writer(records):
            try:
                for record in records:
                    registry.register(record)
                    registry.register(record)
            except Exception as e:  # pragma: no cover
                errors.append(e)

        def reader():
            try:
                while not done.is_set():
                    found = _scan(registry, identity)
                    ids = [r.id for r in found]
                    assert len(ids) == len(set(ids))
                    # Prefisso dell'ordine di inserimento dei miei record
                    assert ids == [r.id for r in mine[:len(ids)]]
            except Exception as e:  # pragma: no cover
                errors.append(e)

        readers = [threading.Thread(target=reader) for _ in range(2)]
        writers = [threading.Thread(target=writer, args=(mine,)), threading.Thread(target=writer, args=(theirs,))]

        for t in readers + writers:
            t.start()
        for t in writers:
            t.join()
        done.set()
        for t in readers:
            t.join()

        assert errors == []
        assert len(registry) == 80
        assert _scan(registry, identity) == mine
