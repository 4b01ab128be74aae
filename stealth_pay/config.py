"""
StealthPay - Configuration Management
=======================================
Gestione centralizzata configurazione con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso STEALTHPAY_
- File .env support
- Profile multipli (dev/prod)
"""

from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from stealth_pay.constants import (
    DEFAULT_PAYLOAD_CIPHER,
    DEFAULT_WIRE_ENCODING,
    DEFAULT_MEMO_MAX_BYTES,
    PayloadCipherAlgorithm,
    WireEncoding,
)


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class StealthSettings(BaseSettings):
    """
    Configurazione principale StealthPay.

    Example:
        # Da environment
        export STEALTHPAY_PAYLOAD_CIPHER="aes-256-gcm"
        export STEALTHPAY_REGISTRY_BACKEND=sqlite

        # Da codice
        settings = StealthSettings(wire_encoding="base64")

        # Da .env file
        settings = StealthSettings(_env_file=".env")
    """

    model_config = SettingsConfigDict(
        env_prefix='STEALTHPAY_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # PROTOCOL
    # ========================================================================

    payload_cipher: str = Field(
        default=DEFAULT_PAYLOAD_CIPHER,
        description="AEAD per amount/memo: xchacha20poly1305, aes-256-gcm"
    )

    wire_encoding: str = Field(
        default=DEFAULT_WIRE_ENCODING,
        description="Encoding campi binari verso i collaboratori: hex, base64"
    )

    memo_max_bytes: int = Field(
        default=DEFAULT_MEMO_MAX_BYTES,
        ge=0,
        le=65536,
        description="Lunghezza massima memo (bytes UTF-8)"
    )

    # ========================================================================
    # REGISTRY
    # ========================================================================

    registry_backend: str = Field(
        default="memory",
        description="Backend registry: memory, sqlite"
    )

    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory dati"
    )

    db_path: Optional[Path] = Field(
        default=None,
        description="Path database SQLite (default: data_dir/transfers.db)"
    )

    scan_warn_threshold_ms: int = Field(
        default=1000,
        ge=1,
        description="Soglia oltre la quale uno scan logga un warning"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level"
    )

    log_to_file: bool = Field(
        default=False,
        description="Scrivi log su file"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_format: str = Field(
        default="json",
        description="Formato log su file: json, text"
    )

    audit_log_enabled: bool = Field(
        default=False,
        description="Audit trail di registrazioni e claim"
    )

    dev_mode: bool = Field(
        default=False,
        description="Modalità sviluppo"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('payload_cipher')
    @classmethod
    def validate_payload_cipher(cls, v: str) -> str:
        """Valida algoritmo AEAD"""
        valid = [a.value for a in PayloadCipherAlgorithm]
        v_lower = v.lower()
        if v_lower not in valid:
            raise ValueError(f"Invalid payload_cipher: {v}. Must be one of {valid}")
        return v_lower

    @field_validator('wire_encoding')
    @classmethod
    def validate_wire_encoding(cls, v: str) -> str:
        """Valida wire encoding"""
        valid = [e.value for e in WireEncoding]
        v_lower = v.lower()
        if v_lower not in valid:
            raise ValueError(f"Invalid wire_encoding: {v}. Must be one of {valid}")
        return v_lower

    @field_validator('registry_backend')
    @classmethod
    def validate_registry_backend(cls, v: str) -> str:
        """Valida backend registry"""
        valid = ['memory', 'sqlite']
        v_lower = v.lower()
        if v_lower not in valid:
            raise ValueError(f"Invalid registry_backend: {v}. Must be one of {valid}")
        return v_lower

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid}")
        return v_lower

    # ========================================================================
    # POST-INIT PROCESSING
    # ========================================================================

    def model_post_init(self, __context) -> None:
        """Post-initialization: path derivati"""
        if self.db_path is None:
            self.db_path = self.data_dir / "transfers.db"

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def ensure_directories(self) -> None:
        """Crea data_dir / log_dir se servono"""
        if self.registry_backend == "sqlite":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        if self.log_to_file or self.audit_log_enabled:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict:
        """Serializza config"""
        return self.model_dump()

    def to_json(self) -> str:
        """Serializza config in JSON"""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "StealthSettings":
        """Carica config da JSON"""
        return cls.model_validate_json(json_str)

    def __repr__(self) -> str:
        return (
            f"StealthSettings("
            f"payload_cipher={self.payload_cipher}, "
            f"wire_encoding={self.wire_encoding}, "
            f"registry_backend={self.registry_backend})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> StealthSettings:
    """
    Ottieni singleton instance di StealthSettings.

    Cached: chiamate multiple restituiscono la stessa istanza.

    Example:
        >>> settings = get_settings()
        >>> settings.payload_cipher
        'xchacha20poly1305'
    """
    return StealthSettings()


def reload_settings() -> StealthSettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables a runtime.
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> StealthSettings:
    """
    Settings con valori custom, senza toccare il singleton.

    Utile per testing.

    Example:
        >>> test_settings = override_settings(payload_cipher="aes-256-gcm")
    """
    return StealthSettings(**kwargs)


# ============================================================================
# PROFILE PRESETS
# ============================================================================

def get_development_config() -> StealthSettings:
    """
    Config preset per development.

    - Registry in memoria
    - Log DEBUG su console
    """
    return StealthSettings(
        dev_mode=True,
        registry_backend="memory",
        log_level="DEBUG",
        log_to_file=False,
    )


def get_production_config() -> StealthSettings:
    """
    Config preset per production.

    - Registry SQLite persistente
    - Log JSON su file + audit trail
    """
    return StealthSettings(
        dev_mode=False,
        registry_backend="sqlite",
        log_level="WARNING",
        log_to_file=True,
        audit_log_enabled=True,
    )


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(settings: StealthSettings) -> tuple[bool, list[str]]:
    """
    Valida coerenza della configurazione.

    Returns:
        tuple: (is_valid, errors_list)

    Example:
        >>> is_valid, errors = validate_config(get_settings())
    """
    errors = []

    if settings.registry_backend == "memory" and not settings.dev_mode:
        errors.append("WARNING: memory registry loses all transfers on restart")

    if settings.registry_backend == "sqlite" and settings.db_path.suffix not in (".db", ".sqlite", ".sqlite3"):
        errors.append(f"Unexpected database file extension: {settings.db_path}")

    if settings.audit_log_enabled and settings.log_dir.exists() and not settings.log_dir.is_dir():
        errors.append(f"log_dir is not a directory: {settings.log_dir}")

    # I warning non invalidano la configurazione
    blocking = [e for e in errors if not e.startswith("WARNING")]
    return (len(blocking) == 0, errors)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "StealthSettings",
    "get_settings",
    "reload_settings",
    "override_settings",
    "get_development_config",
    "get_production_config",
    "validate_config",
]
