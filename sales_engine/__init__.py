"""
Sales Engine

In-memory merchant, item, invoice and customer collections with an
analytics layer for averages, outliers and revenue rankings.
"""
from .engine import SalesEngine

__version__ = "1.0.0"

__all__ = ["SalesEngine", "__version__"]
