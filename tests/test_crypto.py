"""
StealthPay - Crypto Primitives Tests
======================================
Test ed25519 helpers, AEAD e wire encoding.
"""

import pytest

from stealth_pay.constants import CURVE_ORDER
from stealth_pay.crypto import crypto_core
from stealth_pay.crypto.crypto_core import (
    AES_GCM_NONCE_SIZE,
    XCHACHA_NONCE_SIZE,
    compute_sha256,
    decrypt_aes_gcm,
    decrypt_xchacha20poly1305,
    encrypt_aes_gcm,
    encrypt_xchacha20poly1305,
    generate_random_bytes,
)
from stealth_pay.crypto.ed25519 import (
    decode_point,
    int_to_scalar,
    is_valid_point,
    point_add,
    public_from_scalar,
    random_scalar,
    reduce_scalar,
    scalar_add,
    scalar_to_int,
    validate_scalar,
)
from stealth_pay.errors import (
    AuthenticationFailureError,
    CryptoError,
    InvalidFormatError,
    InvalidPointError,
    RandomnessFailureError,
)
from stealth_pay.utils.encoding import decode_bytes, encode_bytes


BASE_POINT = bytes.fromhex("58" + "66" * 31)
IDENTITY_POINT = bytes.fromhex("01" + "00" * 31)


class TestEd25519:
    """Test operazioni di curva"""

    def test_base_point(self):
        """Test 1*B = B"""
        assert public_from_scalar(int_to_scalar(1)) == BASE_POINT

    def test_scalar_add_homomorphism(self):
        """Test (a+b)*B = a*B + b*B"""
        a, b = random_scalar(), random_scalar()
        left = public_from_scalar(scalar_add(a, b))
        right = point_add(public_from_scalar(a), public_from_scalar(b))
        assert left == right

    def test_reduce_scalar_little_endian(self):
        """Test riduzione di un digest da 32 bytes"""
        digest = compute_sha256(b"tweak")
        expected = int.from_bytes(digest, "little") % CURVE_ORDER
        assert scalar_to_int(reduce_scalar(digest)) == expected

    def test_reduce_scalar_too_long(self):
        """Test input oltre 64 bytes"""
        with pytest.raises(CryptoError):
            reduce_scalar(bytes(65))

    def test_random_scalar_range(self):
        """Test 0 < s < L"""
        for _ in range(20):
            value = scalar_to_int(random_scalar())
            assert 0 < value < CURVE_ORDER

    def test_validate_scalar(self):
        """Test scalari non canonici o nulli"""
        assert validate_scalar(int_to_scalar(7)) == int_to_scalar(7)

        with pytest.raises(InvalidFormatError):
            validate_scalar(bytes(32))
        with pytest.raises(InvalidFormatError):
            validate_scalar(CURVE_ORDER.to_bytes(32, "little"))
        with pytest.raises(InvalidFormatError):
            validate_scalar(b"\x01" * 31)
        with pytest.raises(InvalidFormatError):
            validate_scalar("01" * 32)

    def test_is_valid_point(self):
        """Test punti validi e degeneri"""
        assert is_valid_point(BASE_POINT)
        assert not is_valid_point(IDENTITY_POINT)
        assert not is_valid_point(bytes(32))
        assert not is_valid_point(b"\xff" * 32)
        assert not is_valid_point(BASE_POINT[:31])
        assert not is_valid_point("58" * 32)

    def test_decode_point_errors(self):
        """Test errori di formato vs punto invalido"""
        assert decode_point(BASE_POINT) == BASE_POINT

        with pytest.raises(InvalidFormatError):
            decode_point(BASE_POINT[:31])
        with pytest.raises(InvalidPointError) as exc_info:
            decode_point(IDENTITY_POINT, "spending_public")
        assert exc_info.value.code == "INVALID_POINT"
        assert exc_info.value.details["field"] == "spending_public"


class TestCryptoCore:
    """Test hash, CSPRNG e AEAD"""

    def test_sha256_vector(self):
        """Test vettore noto"""
        assert compute_sha256(b"abc").hex() == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_sha256_rejects_str(self):
        """Test input non bytes"""
        with pytest.raises(CryptoError):
            compute_sha256("abc")

    def test_random_bytes_failure(self, monkeypatch):
        """Test CSPRNG non disponibile"""
        def broken(_length):
            raise OSError("no entropy")

        monkeypatch.setattr(crypto_core.secrets, "token_bytes", broken)
        with pytest.raises(RandomnessFailureError) as exc_info:
            generate_random_bytes(32)
        assert exc_info.value.code == "RNG_FAILURE"

    def test_random_bytes_invalid_length(self):
        """Test lunghezza non positiva"""
        with pytest.raises(CryptoError):
            generate_random_bytes(0)

    @pytest.mark.parametrize("encrypt,decrypt,nonce_size", [
        (encrypt_xchacha20poly1305, decrypt_xchacha20poly1305, XCHACHA_NONCE_SIZE),
        (encrypt_aes_gcm, decrypt_aes_gcm, AES_GCM_NONCE_SIZE),
    ])
    def test_aead_authentication(self, encrypt, decrypt, nonce_size):
        """Test ciphertext alterato e chiave errata"""
        key = generate_random_bytes(32)
        nonce = generate_random_bytes(nonce_size)
        ciphertext = encrypt(b"payload", key, nonce)
        assert len(ciphertext) == len(b"payload") + 16
        assert decrypt(ciphertext, key, nonce) == b"payload"

        tampered = bytes([ciphertext[0] ^ 1]) + ciphertext[1:]
        with pytest.raises(AuthenticationFailureError):
            decrypt(tampered, key, nonce)
        with pytest.raises(AuthenticationFailureError):
            decrypt(ciphertext, generate_random_bytes(32), nonce)

    def test_nonce_sizes(self):
        """Test 24 bytes XChaCha, 12 bytes GCM"""
        assert XCHACHA_NONCE_SIZE == 24
        assert AES_GCM_NONCE_SIZE == 12

        key = generate_random_bytes(32)
        with pytest.raises(CryptoError):
            encrypt_aes_gcm(b"x", key, bytes(24))
        with pytest.raises(CryptoError):
            encrypt_xchacha20poly1305(b"x", key, bytes(12))


class TestWireEncoding:
    """Test encode_bytes / decode_bytes"""

    def test_hex_and_base64(self):
        """Test valori noti"""
        assert encode_bytes(b"\x01\xff") == "01ff"
        assert encode_bytes(b"\x01\xff", "base64") == "Af8="
        assert decode_bytes("Af8=", "BASE64") == b"\x01\xff"

    def test_bytes_passthrough(self):
        """Test bytes già decodificati"""
        assert decode_bytes(b"\x00\x01", "base64") == b"\x00\x01"

    def test_expected_size(self):
        """Test lunghezza errata"""
        with pytest.raises(InvalidFormatError) as exc_info:
            decode_bytes("00" * 31, "hex", "ephemeral_public_key", 32)
        assert exc_info.value.details["field"] == "ephemeral_public_key"

    @pytest.mark.parametrize("value,encoding", [
        ("zz", "hex"),
        ("abc", "hex"),
        ("not base64!", "base64"),
    ])
    def test_undecodable(self, value, encoding):
        """Test testo non decodificabile"""
        with pytest.raises(InvalidFormatError):
            decode_bytes(value, encoding)

    @pytest.mark.parametrize("value,encoding", [
        ("01 ff", "hex"),
        (" 01ff", "hex"),
        ("01ff\n", "hex"),
        ("01\tff", "hex"),
        ("Af8= ", "base64"),
    ])
    def test_whitespace_rejected(self, value, encoding):
        """Test testo con spazi rifiutato (forma canonica unica)"""
        with pytest.raises(InvalidFormatError):
            decode_bytes(value, encoding, "x", 2)

    def test_unsupported_encoding(self):
        """Test encoding sconosciuto"""
        with pytest.raises(InvalidFormatError):
            encode_bytes(b"x", "base32")

    def test_wrong_type(self):
        """Test tipo non supportato"""
        with pytest.raises(InvalidFormatError):
            decode_bytes(42)
