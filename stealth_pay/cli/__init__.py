"""
StealthPay - CLI Package
==========================
Entry point: stealthpay (typer).
"""
