"""
Stock footage module.

Finds downloadable stock video clips for search terms.
"""

from modules.stock_footage.client import StockFootageClient

__all__ = ["StockFootageClient"]
