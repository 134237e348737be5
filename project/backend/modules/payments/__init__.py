"""
Payments module.

Verifies that a download was paid for.
"""

from modules.payments.client import PaymentClient

__all__ = ["PaymentClient"]
