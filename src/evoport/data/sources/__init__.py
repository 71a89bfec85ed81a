"""Market data sources."""

from .yf import download_prices

__all__ = ["download_prices"]
