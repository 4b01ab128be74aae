"""
StealthPay - Logging System
=============================
Sistema logging strutturato JSON per audit e debugging.

Security Level: HIGH
Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Logging JSON strutturato
- Rotation automatica
- Context enrichment
- Performance tracking (scan del registry)
- Audit trail (registrazioni e claim)

Regola: chiavi private, shared secret e plaintext non vanno MAI nei log.
Solo prefissi corti di valori pubblici.
"""

import logging
import logging.handlers
import json
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import traceback


# ============================================================================
# JSON FORMATTER
# ============================================================================

def _utc_from_timestamp(created: float) -> datetime:
    return datetime.fromtimestamp(created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """
    Formatter per log in formato JSON.

    Output structure:
    {
        "timestamp": "2026-10-18T10:00:00.000000Z",
        "level": "INFO",
        "logger": "stealthpay.registry",
        "message": "Transfer registered",
        "extra_data": {...},
        "exception": {...}
    }
    """

    def __init__(
        self,
        include_extra: bool = True,
        include_stack: bool = True
    ):
        super().__init__()
        self.include_extra = include_extra
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        """
        Formatta LogRecord in JSON.

        Args:
            record: LogRecord da formattare

        Returns:
            str: JSON string
        """
        log_data = {
            "timestamp": _utc_from_timestamp(record.created).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.thread:
            log_data["thread_id"] = record.thread
            log_data["thread_name"] = record.threadName

        if record.process:
            log_data["process_id"] = record.process

        if self.include_extra and hasattr(record, 'extra_data'):
            log_data["extra_data"] = record.extra_data

        if record.exc_info and self.include_stack:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, default=str)


# ============================================================================
# TEXT FORMATTER (Human-Readable)
# ============================================================================

class ColoredTextFormatter(logging.Formatter):
    """
    Formatter colorato per console.

    Colors:
    - DEBUG: Gray
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red
    """

    COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[1;91m',
        'RESET': '\033[0m'
    }

    def format(self, record: logging.LogRecord) -> str:
        """Formatta con colori"""
        levelname = record.levelname
        if levelname in self.COLORS:
            levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"

        timestamp = _utc_from_timestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')

        message = f"{timestamp} [{levelname}] {record.name}: {record.getMessage()}"

        if hasattr(record, 'extra_data'):
            message += f" | {record.extra_data}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


# ============================================================================
# LOGGER CLASS
# ============================================================================

class StealthPayLogger:
    """
    Wrapper logger con context enrichment e structured logging.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._context: Dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._logger.name

    def set_context(self, **kwargs):
        """
        Imposta context (aggiunto a tutti i log di questo wrapper).

        Example:
            >>> logger.set_context(registry="memory")
        """
        self._context.update(kwargs)

    def clear_context(self):
        """Clear context"""
        self._context.clear()

    def _log(
        self,
        level: int,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None,
        exc_info=None
    ):
        merged_extra = {**self._context}
        if extra_data:
            merged_extra.update(extra_data)

        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={'extra_data': merged_extra} if merged_extra else {},
            stacklevel=3
        )

    def debug(self, message: str, extra_data: Optional[Dict] = None):
        """Log DEBUG"""
        self._log(logging.DEBUG, message, extra_data)

    def info(self, message: str, extra_data: Optional[Dict] = None):
        """Log INFO"""
        self._log(logging.INFO, message, extra_data)

    def warning(self, message: str, extra_data: Optional[Dict] = None):
        """Log WARNING"""
        self._log(logging.WARNING, message, extra_data)

    def error(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        """Log ERROR"""
        self._log(logging.ERROR, message, extra_data, exc_info)

    def critical(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        """Log CRITICAL"""
        self._log(logging.CRITICAL, message, extra_data, exc_info)

    def exception(self, message: str, extra_data: Optional[Dict] = None):
        """Log exception con traceback"""
        self._log(logging.ERROR, message, extra_data, exc_info=sys.exc_info())


# ============================================================================
# SETUP FUNCTION
# ============================================================================

ROOT_LOGGER_NAME = "stealthpay"


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 50,
    log_retention_days: int = 14,
    enable_console: bool = True,
) -> StealthPayLogger:
    """
    Setup logging system completo.

    Args:
        log_level: Level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Salva su file
        log_dir: Directory log files
        log_format: Formato file (json, text)
        log_rotation_mb: MB prima della rotation
        log_retention_days: Numero file di backup
        enable_console: Log anche su console (stderr)

    Returns:
        StealthPayLogger: Logger root configurato

    Example:
        >>> logger = setup_logging(log_level="DEBUG", log_to_file=False)
        >>> logger.info("Registry ready", extra_data={"backend": "memory"})
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    root_logger.handlers.clear()

    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "stealthpay.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )

        if log_format == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                )
            )

        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "stealthpay_errors.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter(include_stack=True))

        root_logger.addHandler(error_handler)

    if enable_console:
        # stderr: stdout resta libero per l'output JSON della CLI
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColoredTextFormatter())
        root_logger.addHandler(console_handler)

    return StealthPayLogger(root_logger)


# ============================================================================
# CATEGORY LOGGERS
# ============================================================================

def get_logger(category: str) -> StealthPayLogger:
    """
    Ottieni logger per categoria specifica.

    Args:
        category: Categoria (crypto, stealth, payload, registry, service, cli)

    Returns:
        StealthPayLogger: Logger per categoria

    Example:
        >>> registry_logger = get_logger("registry")
        >>> registry_logger.info("Scan started")
    """
    return StealthPayLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Context manager per tracking performance.

    Example:
        >>> logger = get_logger("registry")
        >>> with PerformanceLogger(logger, "scan", threshold_ms=500):
        ...     registry.scan(viewing_private, spending_public)
    """

    def __init__(
        self,
        logger: StealthPayLogger,
        operation: str,
        threshold_ms: Optional[int] = None
    ):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.start_time: Optional[float] = None
        self.elapsed_ms: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        extra = {
            "operation": self.operation,
            "duration_ms": round(self.elapsed_ms, 2)
        }

        if self.threshold_ms and self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation} took {self.elapsed_ms:.2f}ms (threshold: {self.threshold_ms}ms)",
                extra_data=extra
            )
        else:
            self.logger.debug(
                f"{self.operation} completed in {self.elapsed_ms:.2f}ms",
                extra_data=extra
            )


# ============================================================================
# AUDIT LOGGER
# ============================================================================

class AuditLogger:
    """
    Logger specializzato per audit trail.

    Registra solo metadati pubblici: id transfer, prefisso della stealth
    address, view tag. Mai importi, memo o chiavi.
    """

    def __init__(self, log_dir: Path = Path("./logs")):
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit")
        self.logger.setLevel(logging.INFO)

        audit_file = (log_dir / "audit.log").resolve()
        already_attached = any(
            isinstance(h, logging.FileHandler) and Path(h.baseFilename) == audit_file
            for h in self.logger.handlers
        )
        if not already_attached:
            # No rotation: l'audit trail si conserva interamente
            handler = logging.FileHandler(audit_file, encoding='utf-8')
            handler.setFormatter(JSONFormatter(include_extra=True))
            self.logger.addHandler(handler)

    def _audit(self, message: str, **fields):
        fields["timestamp"] = datetime.now(timezone.utc).isoformat()
        self.logger.info(message, extra={'extra_data': fields})

    def log_transfer_registered(self, transfer_id: str, stealth_address: str, inserted: bool):
        """Log registrazione transfer"""
        self._audit(
            "Transfer registered" if inserted else "Duplicate transfer ignored",
            action="transfer_registered",
            transfer_id=transfer_id,
            stealth_address=stealth_address[:16],
            inserted=inserted,
        )

    def log_claim(self, transfer_id: str, stealth_address: str):
        """Log claim (derivazione spend scalar) eseguito"""
        self._audit(
            "Transfer claimed",
            action="transfer_claimed",
            transfer_id=transfer_id,
            stealth_address=stealth_address[:16],
        )


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "setup_logging",
    "get_logger",
    "StealthPayLogger",
    "PerformanceLogger",
    "AuditLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
    "ROOT_LOGGER_NAME",
]
