"""
StealthPay - Services Package
===============================
Service layer indipendente dal trasporto.
"""

from stealth_pay.services.privacy_service import PrivacyService

__all__ = [
    "PrivacyService",
]
