"""
StealthPay - Wire Encoding
============================
Encoding testuale lossless dei campi binari (punti, scalari, ciphertext).
"""

import base64
import binascii
from typing import Optional, Union

from stealth_pay.constants import WireEncoding
from stealth_pay.errors import InvalidFormatError, format_field_error


BytesLike = Union[bytes, bytearray, memoryview]


def _normalize_encoding(encoding: str) -> WireEncoding:
    try:
        return WireEncoding(encoding.lower() if isinstance(encoding, str) else encoding)
    except ValueError:
        raise InvalidFormatError(
            f"Unsupported wire encoding: {encoding}",
            details={"supported": [e.value for e in WireEncoding]}
        )


def encode_bytes(data: BytesLike, encoding: str = "hex") -> str:
    """
    Codifica bytes per il trasporto.

    Examples:
        >>> encode_bytes(b"\\x01\\xff")
        '01ff'
        >>> encode_bytes(b"\\x01\\xff", "base64")
        'Af8='
    """
    enc = _normalize_encoding(encoding)
    if enc is WireEncoding.HEX:
        return bytes(data).hex()
    return base64.b64encode(bytes(data)).decode("ascii")


def decode_bytes(
    value: Union[str, BytesLike],
    encoding: str = "hex",
    field: str = "value",
    expected_size: Optional[int] = None
) -> bytes:
    """
    Decodifica un campo dal trasporto, con check di lunghezza opzionale.

    Bytes già decodificati vengono accettati così come sono.

    Args:
        value: Stringa codificata (o bytes)
        encoding: hex / base64
        field: Nome campo (per i messaggi d'errore)
        expected_size: Lunghezza attesa in bytes, se fissa

    Returns:
        bytes: Valore decodificato

    Raises:
        InvalidFormatError: Testo non decodificabile o lunghezza errata
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
    elif isinstance(value, str):
        enc = _normalize_encoding(encoding)
        # Una sola forma testuale per valore: bytes.fromhex tollera spazi
        if any(c.isspace() for c in value):
            raise format_field_error(field, "text with whitespace", f"{enc.value} string")
        try:
            if enc is WireEncoding.HEX:
                raw = bytes.fromhex(value)
            else:
                raw = base64.b64decode(value, validate=True)
        except (ValueError, binascii.Error):
            raise format_field_error(field, "undecodable text", f"{enc.value} string")
    else:
        raise format_field_error(field, type(value).__name__, "bytes or encoded string")

    if expected_size is not None and len(raw) != expected_size:
        raise format_field_error(field, f"{len(raw)} bytes", f"{expected_size} bytes")

    return raw


__all__ = [
    "encode_bytes",
    "decode_bytes",
]
