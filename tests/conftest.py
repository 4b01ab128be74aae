"""
StealthPay - Pytest Configuration
===================================
Fixtures e configurazione per testing.

Last Updated: 2026-10-18
Version: 1.0.0
"""

import pytest
from pathlib import Path
import tempfile
import shutil

# Internal imports
from stealth_pay.config import override_settings
from stealth_pay.domain.keypairs import generate_identity
from stealth_pay.domain.models import TransferRecord
from stealth_pay.domain.payload import PayloadCipher
from stealth_pay.services.privacy_service import PrivacyService
from stealth_pay.storage.db import SQLiteTransferRegistry
from stealth_pay.storage.registry import InMemoryTransferRegistry


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def temp_data_dir():
    """Temporary data directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_settings(temp_data_dir):
    """Test configuration"""
    return override_settings(
        dev_mode=True,
        registry_backend="memory",
        data_dir=temp_data_dir,
        log_dir=temp_data_dir / "logs",
        log_to_file=False,
    )


# ============================================================================
# IDENTITY FIXTURES
# ============================================================================

@pytest.fixture
def identity():
    """Recipient identity"""
    return generate_identity()


@pytest.fixture
def other_identity():
    """Unrelated identity"""
    return generate_identity()


# ============================================================================
# REGISTRY FIXTURES
# ============================================================================

@pytest.fixture
def registry():
    """In-memory registry"""
    return InMemoryTransferRegistry()


@pytest.fixture
def sqlite_registry(temp_data_dir):
    """SQLite registry su file temporaneo"""
    db = SQLiteTransferRegistry(temp_data_dir / "transfers.db")
    yield db
    db.close()


@pytest.fixture
def make_transfer():
    """
    Factory di TransferRecord verso un'identità.

    Usage:
        record = make_transfer(identity, 0.1, memo="hi", timestamp=10)
    """
    cipher = PayloadCipher()

    def _make(recipient, amount=1, memo=None, timestamp=None, transfer_id=None, sender_hint=None):
        stealth, payload = cipher.prepare_payment(recipient.meta_address, amount, memo)
        return TransferRecord.create(
            stealth,
            payload,
            sender_hint=sender_hint,
            timestamp=timestamp,
            transfer_id=transfer_id,
        )

    return _make


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest.fixture
def service(test_settings, registry):
    """PrivacyService su registry in memoria"""
    return PrivacyService(registry=registry, settings=test_settings)
