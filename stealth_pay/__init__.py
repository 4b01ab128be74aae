"""
StealthPay - Stealth Payment Protocol
=======================================
One-time address non collegabili e payload cifrati per pagamenti privati.

Version: 1.0.0
Author: StealthPay Team
License: MIT
"""

__version__ = "1.0.0"
__author__ = "StealthPay Team"
__license__ = "MIT"

# Core imports
from stealth_pay.domain.keypairs import Identity, generate_identity, parse_meta_address
from stealth_pay.domain.stealth import derive_address, is_owner, derive_spend_scalar
from stealth_pay.domain.payload import PayloadCipher, encrypt_payload, decrypt_payload
from stealth_pay.domain.models import TransferRecord, StealthAddress, EncryptedPayload
from stealth_pay.config import StealthSettings, get_settings

# Storage / services
from stealth_pay.storage import InMemoryTransferRegistry, SQLiteTransferRegistry
from stealth_pay.services.privacy_service import PrivacyService

__all__ = [
    # Version
    "__version__",

    # Core
    "Identity",
    "generate_identity",
    "parse_meta_address",
    "derive_address",
    "is_owner",
    "derive_spend_scalar",
    "PayloadCipher",
    "encrypt_payload",
    "decrypt_payload",
    "TransferRecord",
    "StealthAddress",
    "EncryptedPayload",
    "StealthSettings",
    "get_settings",

    # Storage / services
    "InMemoryTransferRegistry",
    "SQLiteTransferRegistry",
    "PrivacyService",
]
