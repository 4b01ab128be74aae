"""
StealthPay - Domain Package
=============================
Logica del protocollo: chiavi, stealth address, payload cifrato, modelli.
"""

from stealth_pay.domain.models import (
    Amount,
    StealthAddress,
    EncryptedPayload,
    DecryptedPayload,
    ClaimResult,
    TransferRecord,
)
from stealth_pay.domain.keypairs import (
    KeyPair,
    Identity,
    generate_keypair,
    keypair_from_private,
    generate_identity,
    encode_meta_address,
    parse_meta_address,
)
from stealth_pay.domain.stealth import (
    derive_address,
    derive_address_with_ephemeral,
    compute_view_tag,
    recover_stealth_public,
    is_owner,
    derive_spend_scalar,
)
from stealth_pay.domain.payload import (
    PayloadCipher,
    encrypt_payload,
    decrypt_payload,
    prepare_payment,
)

__all__ = [
    # Models
    "Amount",
    "StealthAddress",
    "EncryptedPayload",
    "DecryptedPayload",
    "ClaimResult",
    "TransferRecord",

    # Keys
    "KeyPair",
    "Identity",
    "generate_keypair",
    "keypair_from_private",
    "generate_identity",
    "encode_meta_address",
    "parse_meta_address",

    # Stealth
    "derive_address",
    "derive_address_with_ephemeral",
    "compute_view_tag",
    "recover_stealth_public",
    "is_owner",
    "derive_spend_scalar",

    # Payload
    "PayloadCipher",
    "encrypt_payload",
    "decrypt_payload",
    "prepare_payment",
]
