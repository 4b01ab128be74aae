"""
StealthPay - Custom Exceptions
================================
Gerarchia di eccezioni per il protocollo stealth payment.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class StealthPayException(Exception):
    """
    Eccezione base per tutte le eccezioni StealthPay.

    Attributes:
        message (str): Messaggio errore
        code (str): Codice errore (es. "INVALID_POINT")
        details (dict): Dettagli aggiuntivi
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Serializza eccezione per logging/collaboratori esterni"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(StealthPayException):
    """Errore configurazione sistema"""
    pass


# ============================================================================
# CRYPTO ERRORS
# ============================================================================

class CryptoError(StealthPayException):
    """Errore crittografico generico"""
    pass


class InvalidFormatError(CryptoError):
    """Lunghezza o struttura invalida di address, chiave o payload"""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, code=code or "INVALID_FORMAT", details=details)


class InvalidPointError(CryptoError):
    """Bytes che non decodificano a un punto valido della curva"""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, code=code or "INVALID_POINT", details=details)


class AuthenticationFailureError(CryptoError):
    """Tag AEAD non valido: ciphertext manomesso o chiave errata"""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, code=code or "AUTH_FAILED", details=details)


class RandomnessFailureError(CryptoError):
    """CSPRNG non disponibile. Fatale, mai ritentato."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, code=code or "RNG_FAILURE", details=details)


# ============================================================================
# STORAGE ERRORS
# ============================================================================

class StorageError(StealthPayException):
    """Errore storage registry"""
    pass


class DatabaseError(StorageError):
    """Errore database"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Connessione database fallita"""
    pass


# ============================================================================
# ERROR HELPERS
# ============================================================================

def format_field_error(
    field: str,
    value: Any,
    expected: str,
    code: Optional[str] = None
) -> InvalidFormatError:
    """
    Helper per creare InvalidFormatError formattati.

    Args:
        field: Nome campo invalido
        value: Valore ricevuto (solo descrizione, mai segreti)
        expected: Valore/formato atteso
        code: Codice errore custom

    Returns:
        InvalidFormatError: Eccezione formattata

    Example:
        >>> raise format_field_error("meta_address", "63 bytes", "64 bytes")
    """
    return InvalidFormatError(
        message=f"Invalid field '{field}': expected {expected}, got {value}",
        code=code,
        details={"field": field, "value": value, "expected": expected}
    )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    # Base
    "StealthPayException",

    # Config
    "ConfigError",

    # Crypto
    "CryptoError",
    "InvalidFormatError",
    "InvalidPointError",
    "AuthenticationFailureError",
    "RandomnessFailureError",

    # Storage
    "StorageError",
    "DatabaseError",
    "DatabaseConnectionError",

    # Helpers
    "format_field_error",
]
