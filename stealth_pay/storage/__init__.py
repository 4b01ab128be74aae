"""
StealthPay - Storage Package
==============================
Registry dei transfer privati (in memoria o SQLite).
"""

from stealth_pay.storage.registry import TransferRegistry, InMemoryTransferRegistry
from stealth_pay.storage.db import SQLiteTransferRegistry


def create_registry(settings) -> TransferRegistry:
    """
    Factory del backend configurato (settings.registry_backend).

    Examples:
        >>> registry = create_registry(get_settings())
    """
    if settings.registry_backend == "sqlite":
        settings.ensure_directories()
        return SQLiteTransferRegistry(
            settings.db_path,
            scan_warn_threshold_ms=settings.scan_warn_threshold_ms
        )
    return InMemoryTransferRegistry(scan_warn_threshold_ms=settings.scan_warn_threshold_ms)


__all__ = [
    "TransferRegistry",
    "InMemoryTransferRegistry",
    "SQLiteTransferRegistry",
    "create_registry",
]
