"""
StealthPay - Key Material Tests
=================================
Unit tests per KeyPair, Identity e meta-address.
"""

import base64

import pytest

from stealth_pay.constants import CURVE_ORDER
from stealth_pay.crypto import crypto_core
from stealth_pay.crypto.ed25519 import public_from_scalar, scalar_to_int
from stealth_pay.domain.keypairs import (
    Identity,
    generate_identity,
    generate_keypair,
    keypair_from_private,
    parse_meta_address,
)
from stealth_pay.errors import (
    InvalidFormatError,
    InvalidPointError,
    RandomnessFailureError,
)


IDENTITY_POINT = b"\x01" + bytes(31)


class TestKeyPair:
    """Test KeyPair generation"""

    def test_public_matches_private(self):
        """Test public_point == private_scalar * B"""
        kp = generate_keypair()
        assert len(kp.private_scalar) == 32
        assert len(kp.public_point) == 32
        assert public_from_scalar(kp.private_scalar) == kp.public_point

    def test_scalar_is_canonical(self):
        """Test scalare in [1, L)"""
        for _ in range(20):
            value = scalar_to_int(generate_keypair().private_scalar)
            assert 0 < value < CURVE_ORDER

    def test_repr_hides_private(self):
        """Test repr non espone lo scalare privato"""
        kp = generate_keypair()
        assert kp.private_scalar.hex() not in repr(kp)

    def test_from_private(self):
        """Test ricostruzione da scalare"""
        kp = generate_keypair()
        assert keypair_from_private(kp.private_scalar) == kp

    @pytest.mark.parametrize("scalar", [
        bytes(32),
        CURVE_ORDER.to_bytes(32, "little"),
        b"\xff" * 32,
        b"\x01" * 31,
    ])
    def test_from_private_rejects_invalid(self, scalar):
        """Test scalari nulli, non canonici o di lunghezza errata"""
        with pytest.raises(InvalidFormatError):
            keypair_from_private(scalar)


class TestIdentity:
    """Test Identity"""

    def test_keys_independent(self, identity):
        """Test spending e viewing distinti"""
        assert identity.spending.private_scalar != identity.viewing.private_scalar
        assert identity.spending.public_point != identity.viewing.public_point

    def test_meta_address_layout(self, identity):
        """Test meta-address = spending_public || viewing_public"""
        meta = identity.meta_address
        assert len(meta) == 64
        assert meta[:32] == identity.spending.public_point
        assert meta[32:] == identity.viewing.public_point

    def test_export_keys_hex(self, identity):
        """Test export in hex"""
        keys = identity.export_keys()
        assert len(keys["meta_address"]) == 128
        assert len(keys["spending_private"]) == 64
        assert bytes.fromhex(keys["viewing_public"]) == identity.viewing.public_point

    def test_export_keys_base64(self, identity):
        """Test export in base64"""
        keys = identity.export_keys("base64")
        assert len(keys["meta_address"]) == 88
        assert base64.b64decode(keys["meta_address"]) == identity.meta_address

    def test_import_from_private_keys(self, identity):
        """Test import identità custodita"""
        keys = identity.export_keys()
        restored = Identity.from_private_keys(keys["spending_private"], keys["viewing_private"])
        assert restored.meta_address == identity.meta_address

    def test_from_dict_missing_key(self):
        """Test from_dict senza viewing_private"""
        with pytest.raises(InvalidFormatError):
            Identity.from_dict({"spending_private": "00" * 32})

    def test_identities_are_fresh(self):
        """Test due identità diverse"""
        assert generate_identity().meta_address != generate_identity().meta_address

    def test_randomness_failure(self, monkeypatch):
        """Test CSPRNG non disponibile"""
        def broken(length):
            raise OSError("no entropy")

        monkeypatch.setattr(crypto_core.secrets, "token_bytes", broken)

        with pytest.raises(RandomnessFailureError) as exc_info:
            generate_identity()
        assert exc_info.value.code == "RNG_FAILURE"


class TestParseMetaAddress:
    """Test parse_meta_address"""

    def test_parse_bytes(self, identity):
        """Test parse da bytes raw"""
        spend, view = parse_meta_address(identity.meta_address)
        assert spend == identity.spending.public_point
        assert view == identity.viewing.public_point

    def test_parse_hex(self, identity):
        """Test parse da hex"""
        spend, view = parse_meta_address(identity.meta_address.hex())
        assert spend == identity.spending.public_point

    def test_parse_base64(self, identity):
        """Test parse da base64"""
        encoded = base64.b64encode(identity.meta_address).decode()
        _, view = parse_meta_address(encoded, "base64")
        assert view == identity.viewing.public_point

    @pytest.mark.parametrize("length", [0, 32, 63, 65, 128])
    def test_wrong_length(self, identity, length):
        """Test lunghezza diversa da 64 bytes"""
        data = (identity.meta_address * 2)[:length]
        with pytest.raises(InvalidFormatError):
            parse_meta_address(data)

    def test_undecodable_text(self):
        """Test testo non hex"""
        with pytest.raises(InvalidFormatError):
            parse_meta_address("zz" * 64)

    def test_spaced_hex_rejected(self, identity):
        """Test hex con spazi: una sola forma testuale accettata"""
        text = identity.meta_address.hex()
        with pytest.raises(InvalidFormatError):
            parse_meta_address(text[:64] + " " + text[64:])

    def test_invalid_spending_point(self, identity):
        """Test metà spending non valida"""
        data = bytes(32) + identity.viewing.public_point
        with pytest.raises(InvalidPointError) as exc_info:
            parse_meta_address(data)
        assert exc_info.value.code == "INVALID_POINT"

    def test_invalid_viewing_point(self, identity):
        """Test metà viewing = identità (small order)"""
        data = identity.spending.public_point + IDENTITY_POINT
        with pytest.raises(InvalidPointError):
            parse_meta_address(data)

    def test_non_canonical_point(self, identity):
        """Test encoding non canonico"""
        data = b"\xff" * 32 + identity.viewing.public_point
        with pytest.raises(InvalidPointError):
            parse_meta_address(data)
